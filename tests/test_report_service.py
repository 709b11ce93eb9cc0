import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal

import pytest

from docketdesk.schemas.docket import BookingStatus
from docketdesk.services import report_service as rs


def _confirmed(d, **kw):
    return d.model_copy(update={"status": BookingStatus.CONFIRMED, **kw})


def test_departure_date_falls_back_to_hotel(sample_docket):
    assert rs.departure_date(sample_docket) == date(2026, 12, 1)
    no_flights = sample_docket.model_copy(update={
        "itinerary": sample_docket.itinerary.model_copy(update={"flights": []})
    })
    assert rs.departure_date(no_flights) == date(2026, 12, 1)


def test_outstanding_only_confirmed_with_balance(sample_docket):
    owing = _confirmed(sample_docket, id="D1")
    paid_up = _confirmed(sample_docket, id="D2", payments=[])
    paid_up = paid_up.model_copy(update={"payments": [p.model_copy(update={"amount": 30000}) for p in sample_docket.payments[:1]]})
    pending = sample_docket.model_copy(update={"id": "D3"})

    rows = rs.outstanding_balances([owing, paid_up, pending])
    assert [r.docket_id for r in rows] == ["D1"]
    row = rows[0]
    assert row.outstanding == Decimal("10000")
    assert row.gross_billed == Decimal("30000")
    assert row.profit == Decimal("6000")
    assert row.destination == "GOI"


def test_outstanding_sorts_undated_last(sample_docket):
    undated = _confirmed(sample_docket, id="U", itinerary=sample_docket.itinerary.model_copy(update={
        "flights": [sample_docket.itinerary.flights[0].model_copy(update={"departure_date": ""})],
        "hotels": [sample_docket.itinerary.hotels[0].model_copy(update={"check_in": ""})],
    }))
    dated = _confirmed(sample_docket, id="D")
    assert [r.docket_id for r in rs.outstanding_balances([undated, dated])] == ["D", "U"]


def test_agent_performance(sample_docket):
    a = sample_docket.model_copy(update={"id": "A", "agent_id": "AG-1"})
    b = sample_docket.model_copy(update={"id": "B", "agent_id": "AG-GONE"})
    outside = sample_docket.model_copy(update={"id": "C", "agent_id": "AG-2"})
    outside = outside.model_copy(update={"itinerary": outside.itinerary.model_copy(update={
        "flights": [outside.itinerary.flights[0].model_copy(update={"departure_date": "2027-03-01"})],
    })})
    rows = rs.agent_performance([a, b, outside], {"AG-1": "Priya", "AG-2": "Karan"},
                                date(2026, 12, 1), date(2026, 12, 31))
    assert {r.name for r in rows} == {"Priya", "Unassigned"}
    assert all(r.bookings == 1 and r.sales == Decimal("30000") for r in rows)


def test_agent_performance_by_creation_date(sample_docket):
    d = sample_docket.model_copy(update={"agent_id": "AG-1", "created_at": datetime(2026, 10, 2, tzinfo=timezone.utc)})
    rows = rs.agent_performance([d], {"AG-1": "Priya"}, date(2026, 10, 1), date(2026, 10, 31), basis="creation")
    assert [(r.name, r.profit) for r in rows] == [("Priya", Decimal("6000"))]


def _with_invoices(d, *invoices):
    return d.model_copy(update={"invoices": list(invoices)})


def _inv(number, on, total, name="Asha Verma"):
    return {"invoiceNumber": number, "date": on, "grandTotal": str(total), "billedTo": {"name": name}}


def test_invoice_report_filters_and_totals(sample_docket):
    d = _with_invoices(sample_docket.model_copy(update={"id": "D1", "docket_no": "DKT-1"}),
                       _inv("INV-26-1001", "2026-02-10", 1000),
                       _inv("INV-26-1002", "2026-05-03", 3000, name="Vikram Verma"))

    everything = rs.invoice_report([d])
    assert [r.invoice_number for r in everything.rows] == ["INV-26-1002", "INV-26-1001"]
    assert everything.total_amount == Decimal("4000")
    assert everything.average_amount == Decimal("2000")

    assert rs.invoice_report([d], search="vikram").total_invoices == 1
    assert rs.invoice_report([d], search="dkt-1").total_invoices == 2
    assert [r.invoice_number for r in rs.invoice_report([d], month="2026-02").rows] == ["INV-26-1001"]
    assert [r.invoice_number for r in rs.invoice_report([d], quarter=2, year=2026).rows] == ["INV-26-1002"]
    assert rs.invoice_report([d], start=date(2026, 6, 1)).total_invoices == 0
    assert rs.invoice_report([d], start=date(2026, 6, 1)).average_amount == 0

    with pytest.raises(ValueError):
        rs.invoice_report([d], quarter=5)


def test_visible_dockets(sample_docket, admin, agent_user):
    mine = sample_docket.model_copy(update={"id": "M", "created_by": agent_user.id})
    theirs = sample_docket.model_copy(update={"id": "T", "created_by": "someone"})
    assert [d.id for d in rs.visible_dockets([mine, theirs], agent_user)] == ["M"]
    assert len(rs.visible_dockets([mine, theirs], admin)) == 2


def test_invoice_export_csv(sample_docket):
    d = _with_invoices(sample_docket.model_copy(update={"id": "D1", "docket_no": "DKT-1"}),
                       _inv("INV-26-1001", "2026-02-10", "1000.5"),
                       {**_inv("INV-26-1002", "2026-05-03", 3000), "billedTo": {"name": "Acme", "gstin": "29ABCDE1234F1Z5"}})
    report = rs.invoice_report([d], year=2026)
    filters = rs.describe_invoice_filters(year=2026, search=" acme ")
    assert filters == "Year: 2026, Search: acme"

    text = rs.export_invoice_report(report, filters=filters, date_range="01/01/2026 to 31/12/2026",
                                    generated_at=datetime(2026, 10, 19, 9, 30, tzinfo=timezone.utc))
    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == ["Invoice Report"]
    assert rows[2] == ["Generated on:", "19/10/2026 09:30:00"]
    assert rows[3] == ["Date Range:", "01/01/2026 to 31/12/2026"]
    assert rows[4] == ["Filters:", "Year: 2026, Search: acme"]
    assert rows[6] == rs.INVOICE_EXPORT_HEADERS
    assert rows[7] == ["03/05/2026", "INV-26-1002", "Acme", "29ABCDE1234F1Z5", "3000.00", "DKT-1", "N/A", "N/A"]
    assert rows[8][:5] == ["10/02/2026", "INV-26-1001", "Asha Verma", "N/A", "1000.50"]
    assert rows[-1] == ["TOTALS", "", "", "", "4000.50", "", "", ""]


def test_describe_filters_defaults():
    assert rs.describe_invoice_filters() == "All filters"
    assert rs.describe_invoice_filters(quarter=2, year=2026) == "Quarter: Q2 2026"
    assert rs.describe_invoice_filters(month="2026-02") == "Month: 2026-02"


def test_pax_calendar_groups_by_travel_date(sample_docket):
    flight_day = sample_docket.model_copy(update={"id": "F", "status": BookingStatus.CONFIRMED})
    hotel_only = sample_docket.model_copy(update={
        "id": "H",
        "payments": [],
        "itinerary": sample_docket.itinerary.model_copy(update={
            "flights": [],
            "hotels": [sample_docket.itinerary.hotels[0].model_copy(update={"check_in": "2026-12-05"})],
        }),
    })
    next_month = sample_docket.model_copy(update={"id": "N", "itinerary": sample_docket.itinerary.model_copy(update={
        "flights": [sample_docket.itinerary.flights[0].model_copy(update={"departure_date": "2027-01-02"})],
    })})

    days = rs.pax_calendar([hotel_only, flight_day, next_month], 2026, 12)
    assert list(days) == [date(2026, 12, 1), date(2026, 12, 5)]
    first = days[date(2026, 12, 1)][0]
    assert (first.docket_id, first.client_name, first.balance_due, first.has_outstanding_balance) == (
        "F", "Asha Verma", Decimal("10000"), True)
    assert days[date(2026, 12, 5)][0].balance_due == Decimal("5000")

    with pytest.raises(ValueError):
        rs.pax_calendar([], 2026, 13)
