import logging
from typing import Callable, Iterable

from docketdesk.core.errors import NotFoundError, ValidationError
from docketdesk.schemas.common import coerce_money
from docketdesk.schemas.docket import (
    CommonCostField, CostField, Docket, Flight, FlightPassengerDetail, Passenger,
)

logger = logging.getLogger(__name__)

_COMMON_TO_DETAIL = {"common_net_cost": "net_cost", "common_gross_billed": "gross_billed"}


def _synced(flight: Flight) -> list[FlightPassengerDetail]:
    return [
        pd.model_copy(update={"net_cost": flight.common_net_cost, "gross_billed": flight.common_gross_billed})
        for pd in flight.passenger_details
    ]


def add_passengers(flight: Flight, passengers: Iterable[Passenger]) -> Flight:
    """Attach passengers not already on the flight. Re-adding is a no-op."""
    present = set(flight.passenger_ids())
    added = []
    for p in passengers:
        if p.id in present:
            continue
        present.add(p.id)
        if flight.uniform_pricing:
            net, gross = flight.common_net_cost, flight.common_gross_billed
        else:
            net, gross = coerce_money(0), coerce_money(0)
        added.append(FlightPassengerDetail(passenger_id=p.id, passenger_type=p.type, net_cost=net, gross_billed=gross))
    if not added:
        return flight
    return flight.model_copy(update={"passenger_details": [*flight.passenger_details, *added]})


def remove_passenger(flight: Flight, passenger_id: str) -> Flight:
    return flight.model_copy(update={
        "passenger_details": [pd for pd in flight.passenger_details if pd.passenger_id != passenger_id]
    })


def set_passenger_cost(flight: Flight, passenger_id: str, field: CostField, value) -> Flight:
    if field not in ("net_cost", "gross_billed"):
        raise ValidationError(f"unknown cost field: {field}")
    if flight.uniform_pricing:
        logger.info("flight %s: per-passenger %s edit ignored, uniform pricing is on", flight.id, field)
        return flight
    amount = coerce_money(value)
    return flight.model_copy(update={
        "passenger_details": [
            pd.model_copy(update={field: amount}) if pd.passenger_id == passenger_id else pd
            for pd in flight.passenger_details
        ]
    })


def toggle_uniform_pricing(flight: Flight) -> Flight:
    if flight.uniform_pricing:
        # switching off keeps the last broadcast values, now independently editable
        return flight.model_copy(update={"uniform_pricing": False})
    on = flight.model_copy(update={"uniform_pricing": True})
    return on.model_copy(update={"passenger_details": _synced(on)})


def set_common_cost(flight: Flight, field: CommonCostField, value) -> Flight:
    if field not in _COMMON_TO_DETAIL:
        raise ValidationError(f"unknown common cost field: {field}")
    amount = coerce_money(value)
    updated = flight.model_copy(update={field: amount})
    if not updated.uniform_pricing:
        return updated
    detail_field = _COMMON_TO_DETAIL[field]
    return updated.model_copy(update={
        "passenger_details": [pd.model_copy(update={detail_field: amount}) for pd in updated.passenger_details]
    })


# --- docket-level commands ---

def update_flight(docket: Docket, flight_id: str, change: Callable[[Flight], Flight]) -> Docket:
    if docket.flight(flight_id) is None:
        raise NotFoundError(f"flight {flight_id} not found")
    flights = [change(f) if f.id == flight_id else f for f in docket.itinerary.flights]
    return docket.model_copy(update={"itinerary": docket.itinerary.model_copy(update={"flights": flights})})


def add_passengers_to_flight(docket: Docket, flight_id: str, passenger_ids: Iterable[str]) -> Docket:
    """Ids that are not passengers of this docket are ignored."""
    wanted = [docket.passenger(pid) for pid in passenger_ids]
    return update_flight(docket, flight_id, lambda f: add_passengers(f, [p for p in wanted if p is not None]))


def remove_passenger_from_flight(docket: Docket, flight_id: str, passenger_id: str) -> Docket:
    return update_flight(docket, flight_id, lambda f: remove_passenger(f, passenger_id))


def set_flight_passenger_cost(docket: Docket, flight_id: str, passenger_id: str, field: CostField, value) -> Docket:
    return update_flight(docket, flight_id, lambda f: set_passenger_cost(f, passenger_id, field, value))


def toggle_flight_uniform_pricing(docket: Docket, flight_id: str) -> Docket:
    return update_flight(docket, flight_id, toggle_uniform_pricing)


def set_flight_common_cost(docket: Docket, flight_id: str, field: CommonCostField, value) -> Docket:
    return update_flight(docket, flight_id, lambda f: set_common_cost(f, field, value))
