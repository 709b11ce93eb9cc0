import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Literal, Optional

from pydantic import Field

from docketdesk.schemas.common import DomainModel, Money, RoomCount, Text


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:12].upper()}"


class BookingStatus(str, Enum):
    IN_PROGRESS = "In Progress"
    CONFIRMED = "Confirmed"
    CANCELLED = "Cancelled"


class Tag(str, Enum):
    INDIVIDUAL = "Individual"
    GROUP = "Group"


class PaymentType(str, Enum):
    CASH = "Cash"
    BANK_TRANSFER = "Bank Transfer"
    CREDIT_CARD = "Credit Card"
    OTHER = "Other"


class PassengerType(str, Enum):
    ADULT = "Adult"
    CHILD = "Child"
    INFANT = "Infant"


class Gender(str, Enum):
    MALE = "Male"
    FEMALE = "Female"
    OTHER = "Other"


class LeadSource(str, Enum):
    WALK_IN = "Walk-in"
    REFERRAL = "Referral"
    SOCIAL_MEDIA = "Social Media"
    WEBSITE = "Website"
    COLD_CALL = "Cold Call"
    OTHER = "Other"


CostField = Literal["net_cost", "gross_billed"]
CommonCostField = Literal["common_net_cost", "common_gross_billed"]


class Client(DomainModel):
    name: Text = ""
    contact_info: Text = ""
    lead_source: LeadSource = LeadSource.WALK_IN


class SupplierRef(DomainModel):
    id: str
    name: Text = ""
    contact_person: Text = ""
    contact_number: Text = ""


class Passenger(DomainModel):
    id: str = Field(default_factory=lambda: new_id("PAX"))
    full_name: Text = ""
    type: PassengerType = PassengerType.ADULT
    gender: Gender = Gender.MALE
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    gstin: Optional[str] = None


class FlightPassengerDetail(DomainModel):
    passenger_id: str
    passenger_type: PassengerType = PassengerType.ADULT
    net_cost: Money = 0
    gross_billed: Money = 0


class Flight(DomainModel):
    id: str = Field(default_factory=lambda: new_id("FL"))
    airline: Text = ""
    pnr: Text = ""
    booking_id: Text = ""
    flight_number: Text = ""
    departure_airport: Text = ""
    departure_date: Text = ""
    departure_time: Text = ""
    arrival_airport: Text = ""
    arrival_date: Text = ""
    arrival_time: Text = ""
    return_date: Text = ""
    supplier: Optional[SupplierRef] = None
    uniform_pricing: bool = Field(default=False, alias="isNetGrossSameForAll")
    common_net_cost: Money = 0
    common_gross_billed: Money = 0
    passenger_details: List[FlightPassengerDetail] = Field(default_factory=list)

    def passenger_ids(self) -> list[str]:
        return [pd.passenger_id for pd in self.passenger_details]


class Hotel(DomainModel):
    id: str = Field(default_factory=lambda: new_id("HO"))
    name: Text = ""
    check_in: Text = ""
    check_out: Text = ""
    number_of_rooms: RoomCount = 1
    net_cost: Money = 0
    gross_billed: Money = 0
    supplier: Optional[SupplierRef] = None
    pax_refs: List[str] = Field(default_factory=list)


class Excursion(DomainModel):
    id: str = Field(default_factory=lambda: new_id("EX"))
    name: Text = ""
    date: Text = ""
    net_cost: Money = 0
    gross_billed: Money = 0
    supplier: Optional[SupplierRef] = None


class Transfer(DomainModel):
    id: str = Field(default_factory=lambda: new_id("TR"))
    provider: Text = ""
    date: Text = ""
    net_cost: Money = 0
    gross_billed: Money = 0
    supplier: Optional[SupplierRef] = None


class Itinerary(DomainModel):
    flights: List[Flight] = Field(default_factory=list)
    hotels: List[Hotel] = Field(default_factory=list)
    excursions: List[Excursion] = Field(default_factory=list)
    transfers: List[Transfer] = Field(default_factory=list)


class Payment(DomainModel):
    id: str = Field(default_factory=lambda: new_id("PAY"))
    amount: Money = 0
    date: Text = ""
    type: PaymentType = PaymentType.CASH
    notes: Optional[str] = None


class Comment(DomainModel):
    id: str = Field(default_factory=lambda: new_id("COM"))
    text: Text = ""
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    author: Optional[str] = None
    is_system: bool = False


class UploadedFile(DomainModel):
    id: str = Field(default_factory=lambda: new_id("FILE"))
    name: Text = ""
    type: Text = ""
    size: int = 0
    content: Text = ""  # base64
    linked_item_id: Optional[str] = None
    linked_item_type: Optional[Literal["flight", "hotel", "excursion", "transfer"]] = None


class Docket(DomainModel):
    id: str = ""
    docket_no: Optional[str] = None
    client: Client = Field(default_factory=Client)
    status: BookingStatus = BookingStatus.IN_PROGRESS
    tag: Tag = Tag.INDIVIDUAL
    agent_id: Optional[str] = None
    passengers: List[Passenger] = Field(default_factory=list)
    itinerary: Itinerary = Field(default_factory=Itinerary)
    files: List[UploadedFile] = Field(default_factory=list)
    comments: List[Comment] = Field(default_factory=list)
    payments: List[Payment] = Field(default_factory=list)
    invoices: List[dict] = Field(default_factory=list)  # issued invoice snapshots, camelCase JSON
    search_tags: List[str] = Field(default_factory=list)
    created_by: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def passenger(self, passenger_id: str) -> Optional[Passenger]:
        return next((p for p in self.passengers if p.id == passenger_id), None)

    def flight(self, flight_id: str) -> Optional[Flight]:
        return next((f for f in self.itinerary.flights if f.id == flight_id), None)
