from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, Optional

from pydantic import Field, computed_field

from docketdesk.schemas.common import ApiModel, DomainModel, Money, Text

MAX_ITINERARY_DAYS = 10


class LeadStatus(str, Enum):
    COLD = "cold"
    WARM = "warm"
    FINAL = "final"


class TravelDates(DomainModel):
    departure_date: Text = ""
    return_date: Text = ""


class Quotation(DomainModel):
    flights: Money = 0
    hotels: Money = 0
    excursions: Money = 0
    transfers: Money = 0

    @computed_field
    @property
    def total(self) -> Decimal:
        return self.flights + self.hotels + self.excursions + self.transfers


class Lead(DomainModel):
    id: str = ""
    name: Text = ""
    email: Text = ""
    phone: Text = ""
    company: Text = ""
    source: Text = "Walk-in"
    status: LeadStatus = LeadStatus.COLD
    description: Text = ""
    assigned_to: Text = ""
    expected_value: Money = 0
    created_date: Text = ""
    last_contact_date: Optional[str] = None
    next_follow_up_date: Optional[str] = None
    notes: Text = ""
    travel_dates: TravelDates = Field(default_factory=TravelDates)
    number_of_pax: int = 1
    number_of_nights: int = 0
    itinerary: Dict[str, str] = Field(default_factory=dict)  # day1..day10
    quotation: Quotation = Field(default_factory=Quotation)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class LeadIn(ApiModel):
    name: str
    email: str = ""
    phone: str = ""
    company: str = ""
    source: str = "Walk-in"
    status: LeadStatus = LeadStatus.COLD
    description: str = ""
    assigned_to: str = ""
    expected_value: Decimal = Decimal(0)
    created_date: Optional[date] = None
    last_contact_date: Optional[str] = None
    next_follow_up_date: Optional[str] = None
    notes: str = ""
    travel_dates: Optional[dict] = None
    number_of_pax: int = 1
    number_of_nights: int = 0
    itinerary: Optional[Dict[str, str]] = None
    quotation: Optional[dict] = None
