from datetime import date
from typing import Literal

from fastapi import APIRouter, Depends
from fastapi.responses import Response
from sqlalchemy.orm import Session

from docketdesk.db.session import get_db
from docketdesk.api.deps import get_current_user
from docketdesk.models.user import User
from docketdesk.services import docket_service, report_service
from docketdesk.services.master_data_service import agent_names
from docketdesk.utils.formatting import format_date

router = APIRouter(tags=["reports"])


def _dockets(db: Session, me: User):
    return report_service.visible_dockets(docket_service.list_dockets(db, limit=100000), me)


@router.get("/reports/outstanding")
def outstanding(db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    return [r.to_json() for r in report_service.outstanding_balances(_dockets(db, me))]


@router.get("/reports/agent-performance")
def agent_performance(start: date, end: date, basis: Literal["creation", "departure"] = "departure",
                      db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    rows = report_service.agent_performance(_dockets(db, me), agent_names(db), start, end, basis)
    return [r.to_json() for r in rows]


@router.get("/reports/invoices")
def invoices(q: str = "", start: date | None = None, end: date | None = None, month: str | None = None,
             quarter: int | None = None, year: int | None = None,
             db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    report = report_service.invoice_report(_dockets(db, me), search=q, start=start, end=end,
                                           month=month, quarter=quarter, year=year)
    return report.to_json()


@router.get("/reports/invoices/export")
def export_invoices(q: str = "", start: date | None = None, end: date | None = None, month: str | None = None,
                    quarter: int | None = None, year: int | None = None,
                    db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    report = report_service.invoice_report(_dockets(db, me), search=q, start=start, end=end,
                                           month=month, quarter=quarter, year=year)
    date_range = f"{format_date(start)} to {format_date(end)}" if (start or end) else ""
    body = report_service.export_invoice_report(
        report,
        filters=report_service.describe_invoice_filters(q, start, end, month, quarter, year),
        date_range=date_range,
    )
    return Response(
        content=body,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="Invoice_Report_{date.today().isoformat()}.csv"'},
    )


@router.get("/reports/pax-calendar")
def pax_calendar(year: int, month: int, db: Session = Depends(get_db), me: User = Depends(get_current_user)):
    days = report_service.pax_calendar(_dockets(db, me), year, month)
    return {day.isoformat(): [e.to_json() for e in entries] for day, entries in days.items()}
