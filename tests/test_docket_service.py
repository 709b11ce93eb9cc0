from datetime import datetime, timezone

import pytest

from docketdesk.core.errors import NotFoundError, ValidationError
from docketdesk.models.deletion_log import DocketDeletionLog
from docketdesk.models.docket import DocketRecord
from docketdesk.models.supplier import Agent
from docketdesk.schemas.docket import BookingStatus, Hotel, Passenger
from docketdesk.services import docket_service as ds

NOW = datetime(2026, 10, 19, 9, 30, 0, tzinfo=timezone.utc)


def test_remove_passenger_cascades(sample_docket):
    d = ds.remove_passenger(sample_docket, "PAX-A")
    assert [p.id for p in d.passengers] == ["PAX-B"]
    assert d.flight("FL-1").passenger_ids() == ["PAX-B"]
    assert d.flight("FL-1").passenger_details[0].gross_billed == 15000
    assert d.itinerary.hotels[0].pax_refs == ["PAX-B"]
    # the original value is untouched
    assert len(sample_docket.passengers) == 2


def test_create_assigns_number_tags_and_cost_log(db, admin, sample_docket):
    db.add(Agent(id="AG-1", name="Priya Menon"))
    db.commit()
    d = ds.create_docket(db, sample_docket.model_copy(update={"agent_id": "AG-1"}), admin, now=NOW)

    assert d.id and len(d.docket_no) == 5 and d.docket_no.isdigit()
    assert d.created_by == admin.id
    assert d.search_tags[:2] == ["asha verma", "+91 90000 00000"]
    assert "vikram verma" in d.search_tags and "indigo" in d.search_tags and "priya menon" in d.search_tags
    assert d.search_tags.count("asha verma") == 1

    logs = [c.text for c in d.comments if c.is_system]
    assert logs == [
        "2026-10-19 09:30:00 – Net Cost: ₹20,000, Gross Cost: ₹25,000 – Flight",
        "2026-10-19 09:30:00 – Net Cost: ₹4,000, Gross Cost: ₹5,000 – Hotel",
    ]


def test_cost_log_on_confirm_skips_unchanged_categories(db, admin, sample_docket):
    d = ds.create_docket(db, sample_docket, admin, now=NOW)
    d = ds.save_docket(db, d, admin, now=NOW)
    assert len([c for c in d.comments if c.is_system]) == 2

    d = ds.save_docket(db, d.model_copy(update={"status": BookingStatus.CONFIRMED}), admin, now=NOW)
    assert len([c for c in d.comments if c.is_system]) == 2

    hotel = d.itinerary.hotels[0].model_copy(update={"gross_billed": 6000})
    d = d.model_copy(update={"status": BookingStatus.IN_PROGRESS,
                             "itinerary": d.itinerary.model_copy(update={"hotels": [hotel]})})
    d = ds.save_docket(db, d, admin, now=NOW)
    d = ds.save_docket(db, d.model_copy(update={"status": BookingStatus.CONFIRMED}), admin, now=NOW)
    system = [c.text for c in d.comments if c.is_system]
    assert len(system) == 3
    assert system[0].endswith("Gross Cost: ₹6,000 – Hotel")


def test_add_payment_logs_comment(sample_docket):
    d = ds.add_payment(sample_docket, 2500, "2026-10-18", "Bank Transfer", now=NOW)
    assert d.payments[0].amount == 2500
    assert d.comments[0].is_system
    assert d.comments[0].text == "Auto-log: Payment of ₹2,500 recorded. Type: Bank Transfer, Date: 18/10/2026."


def test_add_comment_requires_text(sample_docket):
    with pytest.raises(ValidationError):
        ds.add_comment(sample_docket, "   ")
    d = ds.add_comment(sample_docket, "Called client", author="agent@example.com")
    assert d.comments[0].text == "Called client" and not d.comments[0].is_system


def test_itinerary_item_commands(sample_docket):
    d = ds.add_item(sample_docket, "hotels", Hotel(id="HO-2", name="Leela"))
    d = ds.update_item(d, "hotels", "HO-2", gross_billed="3000")
    assert d.itinerary.hotels[1].gross_billed == 3000
    d = ds.toggle_hotel_passenger(d, "HO-2", "PAX-A")
    assert d.itinerary.hotels[1].pax_refs == ["PAX-A"]
    d = ds.toggle_hotel_passenger(d, "HO-2", "PAX-A")
    assert d.itinerary.hotels[1].pax_refs == []
    d = ds.remove_item(d, "hotels", "HO-2")
    assert len(d.itinerary.hotels) == 1

    with pytest.raises(ValidationError):
        ds.add_item(d, "cruises")
    with pytest.raises(ValidationError):
        ds.update_item(d, "flights", "FL-1", common_net_cost=1)
    with pytest.raises(NotFoundError):
        ds.update_item(d, "hotels", "HO-NOPE", name="x")


@pytest.mark.parametrize("rooms,expected", [("", 1), (None, 1), ("abc", 1), (0, 1), ("3", 3), (2, 2)])
def test_hotel_room_count_from_partial_form(sample_docket, rooms, expected):
    assert Hotel.model_validate({"name": "Leela", "numberOfRooms": rooms}).number_of_rooms == expected
    d = ds.update_item(sample_docket, "hotels", "HO-1", number_of_rooms=rooms)
    assert d.itinerary.hotels[0].number_of_rooms == expected


def test_update_passenger(sample_docket):
    d = ds.update_passenger(sample_docket, "PAX-B", email="vikram@example.com")
    assert d.passenger("PAX-B").email == "vikram@example.com"
    with pytest.raises(NotFoundError):
        ds.update_passenger(sample_docket, "PAX-Z", email="x")


def test_merge_passengers_by_name(sample_docket):
    d, ids = ds.merge_passengers_by_name(sample_docket, [" asha verma ", "Ravi Kumar", "RAVI KUMAR", ""])
    assert ids[0] == "PAX-A"
    assert len(d.passengers) == 3
    assert d.passenger(ids[1]).full_name == "Ravi Kumar"


def test_non_admin_cannot_edit_someone_elses_docket(db, agent_user, other_user, sample_docket):
    d = ds.create_docket(db, sample_docket, agent_user)
    assert ds.can_edit(d, agent_user)
    assert not ds.can_edit(d, other_user)
    with pytest.raises(ValidationError):
        ds.save_docket(db, d, other_user)


def test_admin_can_edit_any_docket(db, admin, agent_user, sample_docket):
    d = ds.create_docket(db, sample_docket, agent_user)
    d = ds.save_docket(db, ds.add_passenger(d, Passenger(full_name="New Pax")), admin)
    assert len(d.passengers) == 3
    assert d.created_by == agent_user.id


def test_delete_requires_reason_and_logs(db, admin, sample_docket):
    d = ds.create_docket(db, sample_docket, admin)
    with pytest.raises(ValidationError):
        ds.delete_docket(db, d.id, "", admin)
    entry = ds.delete_docket(db, d.id, "Duplicate booking", admin)
    assert entry.client_name == "Asha Verma"
    assert entry.deleted_by == admin.email
    assert db.get(DocketRecord, d.id) is None
    assert db.query(DocketDeletionLog).count() == 1
    with pytest.raises(NotFoundError):
        ds.get_docket(db, d.id)


def test_list_dockets_search(db, admin, sample_docket):
    ds.create_docket(db, sample_docket, admin)
    assert len(ds.list_dockets(db, q="taj fort")) == 1
    assert ds.list_dockets(db, q="nobody") == []
    assert len(ds.list_dockets(db, status="In Progress")) == 1
    assert ds.list_dockets(db, status="Confirmed") == []
