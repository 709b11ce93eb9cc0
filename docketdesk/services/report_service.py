import csv
import io
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Literal, Optional

from pydantic import Field

from docketdesk.core.errors import ValidationError
from docketdesk.models.user import User
from docketdesk.schemas.common import DomainModel, Money, coerce_money, to_paise
from docketdesk.schemas.docket import BookingStatus, Docket
from docketdesk.services.cost_service import docket_summary
from docketdesk.utils.formatting import format_date, parse_date

DateBasis = Literal["creation", "departure"]


class OutstandingRow(DomainModel):
    docket_id: str
    docket_no: Optional[str] = None
    client_name: str = ""
    destination: str = ""
    departure_date: Optional[date] = None
    gross_billed: Money = 0
    net_cost: Money = 0
    profit: Money = 0
    outstanding: Money = 0


class AgentPerformanceRow(DomainModel):
    agent_id: Optional[str] = None
    name: str
    sales: Money = 0
    profit: Money = 0
    bookings: int = 0


class InvoiceReportRow(DomainModel):
    invoice_number: str
    invoice_date: Optional[date] = None
    docket_id: str
    docket_number: str
    pax_name: str
    gstin: str = ""
    email: str = ""
    phone: str = ""
    grand_total: Money = 0


class InvoiceReport(DomainModel):
    rows: list[InvoiceReportRow] = Field(default_factory=list)
    total_amount: Money = 0
    total_invoices: int = 0
    average_amount: Money = 0


def visible_dockets(dockets: Iterable[Docket], user: User) -> list[Docket]:
    """Admins report on every docket, other users on their own."""
    if user.role == "admin":
        return list(dockets)
    return [d for d in dockets if d.created_by == user.id]


def departure_date(docket: Docket) -> Optional[date]:
    """First flight's departure, else first hotel's check-in."""
    it = docket.itinerary
    value = (it.flights[0].departure_date if it.flights else "") or (it.hotels[0].check_in if it.hotels else "")
    return parse_date(value)


def _report_date(docket: Docket, basis: DateBasis) -> Optional[date]:
    if basis == "creation":
        return docket.created_at.date() if docket.created_at else None
    return departure_date(docket)


def _undated_last(d: Optional[date]) -> tuple:
    return (d is None, d or date.min)


def outstanding_balances(dockets: Iterable[Docket]) -> list[OutstandingRow]:
    rows = []
    for d in dockets:
        if d.status != BookingStatus.CONFIRMED:
            continue
        s = docket_summary(d)
        if s.balance_due <= 0:
            continue
        it = d.itinerary
        rows.append(OutstandingRow(
            docket_id=d.id,
            docket_no=d.docket_no,
            client_name=d.client.name,
            destination=(it.flights[0].arrival_airport if it.flights else "") or (it.hotels[0].name if it.hotels else "") or "N/A",
            departure_date=departure_date(d),
            gross_billed=s.grand_total_gross,
            net_cost=s.grand_total_net,
            profit=s.grand_total_profit,
            outstanding=s.balance_due,
        ))
    return sorted(rows, key=lambda r: _undated_last(r.departure_date))


def agent_performance(dockets: Iterable[Docket], agents: dict[str, str], start: date, end: date,
                      basis: DateBasis = "departure") -> list[AgentPerformanceRow]:
    """Sales and profit per agent for dockets dated within [start, end].

    Dockets without an agent, or with an unknown one, count as Unassigned.
    Agents with no bookings in the window are left out.
    """
    acc: dict[Optional[str], list] = {aid: [name, Decimal(0), Decimal(0), 0] for aid, name in agents.items()}
    acc[None] = ["Unassigned", Decimal(0), Decimal(0), 0]
    for d in dockets:
        when = _report_date(d, basis)
        if when is None or not (start <= when <= end):
            continue
        s = docket_summary(d)
        key = d.agent_id if d.agent_id in agents else None
        acc[key][1] += s.grand_total_gross
        acc[key][2] += s.grand_total_profit
        acc[key][3] += 1
    rows = [
        AgentPerformanceRow(agent_id=aid, name=v[0], sales=v[1], profit=v[2], bookings=v[3])
        for aid, v in acc.items() if v[3] > 0
    ]
    return sorted(rows, key=lambda r: r.sales, reverse=True)


def _in_period(d: Optional[date], start: Optional[date], end: Optional[date], month: Optional[str],
               quarter: Optional[int], year: Optional[int]) -> bool:
    if d is None:
        return not (start or end or month or quarter or year)
    if start and d < start:
        return False
    if end and d > end:
        return False
    if month:
        y, m = (int(x) for x in month.split("-")[:2])
        if (d.year, d.month) != (y, m):
            return False
    if year and d.year != year:
        return False
    if quarter and (d.month - 1) // 3 + 1 != quarter:
        return False
    return True


def invoice_report(dockets: Iterable[Docket], search: str = "", start: Optional[date] = None,
                   end: Optional[date] = None, month: Optional[str] = None,
                   quarter: Optional[int] = None, year: Optional[int] = None) -> InvoiceReport:
    """Every invoice across dockets, newest first, with optional filters.

    month is YYYY-MM; quarter (1-4) applies together with year.
    """
    if quarter is not None and not 1 <= quarter <= 4:
        raise ValueError("quarter must be between 1 and 4")
    rows = []
    for d in dockets:
        for inv in d.invoices:
            billed = inv.get("billedTo") or {}
            rows.append(InvoiceReportRow(
                invoice_number=inv.get("invoiceNumber", ""),
                invoice_date=parse_date(inv.get("date")),
                docket_id=d.id,
                docket_number=d.docket_no or d.id,
                pax_name=billed.get("name") or "Unknown",
                gstin=billed.get("gstin") or "",
                email=billed.get("email") or "",
                phone=billed.get("phone") or "",
                grand_total=coerce_money(inv.get("grandTotal")),
            ))

    q = search.strip().lower()
    if q:
        rows = [r for r in rows if any(q in v.lower() for v in (r.invoice_number, r.pax_name, r.docket_number, r.email, r.phone))]
    rows = [r for r in rows if _in_period(r.invoice_date, start, end, month, quarter, year)]
    rows.sort(key=lambda r: r.invoice_date or date.min, reverse=True)

    total = sum((r.grand_total for r in rows), Decimal(0))
    count = len(rows)
    return InvoiceReport(
        rows=rows,
        total_amount=total,
        total_invoices=count,
        average_amount=total / count if count else Decimal(0),
    )


INVOICE_EXPORT_HEADERS = [
    "Date", "Invoice Number", "Passenger Name", "GST Number", "Amount", "Docket Number", "Email", "Phone",
]


def describe_invoice_filters(search: str = "", start: Optional[date] = None, end: Optional[date] = None,
                             month: Optional[str] = None, quarter: Optional[int] = None,
                             year: Optional[int] = None) -> str:
    parts = []
    if start or end:
        parts.append(f"Date Range: {format_date(start)} to {format_date(end)}")
    if month:
        parts.append(f"Month: {month}")
    if quarter:
        parts.append(f"Quarter: Q{quarter} {year or ''}".rstrip())
    elif year:
        parts.append(f"Year: {year}")
    if search.strip():
        parts.append(f"Search: {search.strip()}")
    return ", ".join(parts) or "All filters"


def export_invoice_report(report: InvoiceReport, filters: str = "All filters", date_range: str = "",
                          generated_at: Optional[datetime] = None) -> str:
    """CSV with a title block, one row per invoice and a totals row."""
    generated_at = generated_at or datetime.now(timezone.utc)
    buf = io.StringIO()
    writer = csv.writer(buf)
    writer.writerow(["Invoice Report"])
    writer.writerow([])
    writer.writerow(["Generated on:", generated_at.strftime("%d/%m/%Y %H:%M:%S")])
    if date_range:
        writer.writerow(["Date Range:", date_range])
    writer.writerow(["Filters:", filters])
    writer.writerow([])
    writer.writerow(INVOICE_EXPORT_HEADERS)
    for r in report.rows:
        writer.writerow([
            format_date(r.invoice_date), r.invoice_number, r.pax_name, r.gstin or "N/A",
            f"{to_paise(r.grand_total):f}", r.docket_number, r.email or "N/A", r.phone or "N/A",
        ])
    writer.writerow(["TOTALS", "", "", "", f"{to_paise(report.total_amount):f}", "", "", ""])
    return buf.getvalue()


class PaxCalendarEntry(DomainModel):
    docket_id: str
    docket_no: Optional[str] = None
    client_name: str = ""
    status: BookingStatus
    balance_due: Money = 0
    has_outstanding_balance: bool = False


def pax_calendar(dockets: Iterable[Docket], year: int, month: int) -> dict[date, list[PaxCalendarEntry]]:
    """Dockets of one month keyed by travel date (first flight departure, else first check-in)."""
    if not 1 <= month <= 12:
        raise ValidationError("month must be between 1 and 12")
    days: dict[date, list[PaxCalendarEntry]] = {}
    for d in dockets:
        when = departure_date(d)
        if when is None or (when.year, when.month) != (year, month):
            continue
        balance = docket_summary(d).balance_due
        days.setdefault(when, []).append(PaxCalendarEntry(
            docket_id=d.id,
            docket_no=d.docket_no,
            client_name=d.client.name,
            status=d.status,
            balance_due=balance,
            has_outstanding_balance=balance > 0,
        ))
    return dict(sorted(days.items()))
