import base64
import json
import logging
from typing import Optional

import requests

from docketdesk.core.config import settings
from docketdesk.core.errors import ExtractionError, ExtractionMismatch, NotFoundError
from docketdesk.schemas.docket import Docket, Flight, Hotel, UploadedFile
from docketdesk.services.docket_service import merge_passengers_by_name
from docketdesk.services.flight_pricing_service import add_passengers

logger = logging.getLogger(__name__)

_PASSENGERS = {"type": "ARRAY", "items": {"type": "OBJECT", "properties": {"fullName": {"type": "STRING"}}}}

FLIGHT_FIELDS = [
    "airline", "pnr", "flightNumber", "departureDate", "departureTime",
    "departureAirport", "arrivalDate", "arrivalTime", "arrivalAirport",
]
FLIGHT_TICKET_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "passengers": _PASSENGERS,
        "flight": {"type": "OBJECT", "properties": {f: {"type": "STRING"} for f in FLIGHT_FIELDS}},
    },
}
FLIGHT_TICKET_PROMPT = (
    "From this e-ticket, extract all passenger full names and the primary flight segment details. "
    "Ensure dates are in YYYY-MM-DD format and times are in HH:MM (24-hour) format."
)

HOTEL_FIELDS = ["name", "checkIn", "checkOut"]
HOTEL_VOUCHER_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "passengers": _PASSENGERS,
        "hotel": {"type": "OBJECT", "properties": {f: {"type": "STRING"} for f in HOTEL_FIELDS}},
    },
}
HOTEL_VOUCHER_PROMPT = (
    "From this hotel voucher, extract the guest full names and hotel booking details. "
    "Ensure dates are in YYYY-MM-DD format."
)


class GeminiExtractor:
    """Structured extraction through the Gemini generateContent REST endpoint."""

    def __init__(self, api_key: str | None = None, model: str | None = None,
                 api_base: str | None = None, timeout: int | None = None):
        self.api_key = api_key if api_key is not None else settings.GEMINI_API_KEY
        self.model = model or settings.GEMINI_MODEL
        self.api_base = (api_base or settings.GEMINI_API_BASE).rstrip("/")
        self.timeout = timeout or settings.EXTRACTION_TIMEOUT_SECONDS

    def extract(self, content: bytes, mime_type: str, schema: dict, prompt: str) -> dict:
        if not self.api_key:
            raise ExtractionError("document extraction is not configured (GEMINI_API_KEY)")
        payload = {
            "contents": [{"parts": [
                {"text": prompt},
                {"inline_data": {"mime_type": mime_type, "data": base64.b64encode(content).decode("ascii")}},
            ]}],
            "generationConfig": {"responseMimeType": "application/json", "responseSchema": schema},
        }
        try:
            r = requests.post(
                f"{self.api_base}/models/{self.model}:generateContent",
                json=payload,
                headers={"x-goog-api-key": self.api_key},
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise ExtractionError(f"Gemini request failed: {e}") from e
        if r.status_code >= 400:
            raise ExtractionError(f"Gemini error {r.status_code}: {r.text[:500]}")
        try:
            text = r.json()["candidates"][0]["content"]["parts"][0]["text"]
            data = json.loads(text.strip())
        except (ValueError, KeyError, IndexError, TypeError) as e:
            raise ExtractionError("Gemini returned an unreadable response") from e
        if not isinstance(data, dict):
            raise ExtractionError("Gemini returned a non-object response")
        return data


def _names(extracted: dict) -> list[str]:
    return [(p or {}).get("fullName") or "" for p in (extracted.get("passengers") or [])]


def _attach(docket: Docket, content: bytes, filename: str, mime_type: str, item_id: str, item_type: str) -> list[UploadedFile]:
    f = UploadedFile(
        name=filename,
        type=mime_type,
        size=len(content),
        content=base64.b64encode(content).decode("ascii"),
        linked_item_id=item_id,
        linked_item_type=item_type,
    )
    return [*docket.files, f]


def apply_flight_ticket(docket: Docket, extracted: dict, flight_id: Optional[str] = None,
                        content: bytes = b"", filename: str = "", mime_type: str = "") -> Docket:
    """Merge an extracted e-ticket.

    With flight_id the flight's header is overwritten and its passengers
    replaced by the ticket's; otherwise a new flight with uniform pricing on
    and zero common values is appended.
    """
    data = (extracted or {}).get("flight")
    if not data:
        logger.warning("e-ticket extraction for docket %s returned no flight", docket.id or "(new)")
        raise ExtractionMismatch("Could not detect flight details from the e-ticket. Please fill them in manually.")

    docket, pax_ids = merge_passengers_by_name(docket, _names(extracted))
    passengers = [docket.passenger(pid) for pid in pax_ids]
    header = {k: v for k, v in data.items() if k in FLIGHT_FIELDS and v is not None}

    if flight_id:
        current = docket.flight(flight_id)
        if current is None:
            raise NotFoundError(f"flight {flight_id} not found")
        base = Flight.model_validate({**current.to_json(), **header, "passengerDetails": []})
        flight = add_passengers(base, passengers)
        flights = [flight if f.id == flight_id else f for f in docket.itinerary.flights]
    else:
        base = Flight.model_validate({**header, "isNetGrossSameForAll": True, "commonNetCost": 0, "commonGrossBilled": 0})
        flight = add_passengers(base, passengers)
        flights = [*docket.itinerary.flights, flight]

    update = {"itinerary": docket.itinerary.model_copy(update={"flights": flights})}
    if content:
        update["files"] = _attach(docket, content, filename, mime_type, flight.id, "flight")
    return docket.model_copy(update=update)


def apply_hotel_voucher(docket: Docket, extracted: dict,
                        content: bytes = b"", filename: str = "", mime_type: str = "") -> Docket:
    data = (extracted or {}).get("hotel")
    if not data:
        logger.warning("hotel voucher extraction for docket %s returned no hotel", docket.id or "(new)")
        raise ExtractionMismatch("Could not detect hotel details from the voucher. Please fill them in manually.")

    docket, pax_ids = merge_passengers_by_name(docket, _names(extracted))
    fields = {k: v for k, v in data.items() if k in HOTEL_FIELDS and v is not None}
    hotel = Hotel.model_validate({**fields, "numberOfRooms": 1, "netCost": 0, "grossBilled": 0, "paxRefs": pax_ids})

    update = {"itinerary": docket.itinerary.model_copy(update={"hotels": [*docket.itinerary.hotels, hotel]})}
    if content:
        update["files"] = _attach(docket, content, filename, mime_type, hotel.id, "hotel")
    return docket.model_copy(update=update)


def extract_flight_ticket(extractor, docket: Docket, content: bytes, filename: str, mime_type: str,
                          flight_id: Optional[str] = None) -> Docket:
    extracted = extractor.extract(content, mime_type, FLIGHT_TICKET_SCHEMA, FLIGHT_TICKET_PROMPT)
    return apply_flight_ticket(docket, extracted, flight_id, content, filename, mime_type)


def extract_hotel_voucher(extractor, docket: Docket, content: bytes, filename: str, mime_type: str) -> Docket:
    extracted = extractor.extract(content, mime_type, HOTEL_VOUCHER_SCHEMA, HOTEL_VOUCHER_PROMPT)
    return apply_hotel_voucher(docket, extracted, content, filename, mime_type)
