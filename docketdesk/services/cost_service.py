from decimal import Decimal
from typing import Iterable

from pydantic import Field

from docketdesk.schemas.common import DomainModel, Money
from docketdesk.schemas.docket import Docket, Flight, Itinerary, Payment

CATEGORIES = ("flights", "hotels", "excursions", "transfers")


class CostTotals(DomainModel):
    net_cost: Money = 0
    gross_billed: Money = 0

    @property
    def profit(self) -> Decimal:
        return self.gross_billed - self.net_cost

    def __add__(self, other: "CostTotals") -> "CostTotals":
        return CostTotals(net_cost=self.net_cost + other.net_cost,
                          gross_billed=self.gross_billed + other.gross_billed)


class CategorySummary(DomainModel):
    net_cost: Money = 0
    gross_billed: Money = 0
    profit: Money = 0


class FinancialSummary(DomainModel):
    per_category: dict[str, CategorySummary] = Field(default_factory=dict)
    grand_total_net: Money = 0
    grand_total_gross: Money = 0
    grand_total_profit: Money = 0
    amount_paid: Money = 0
    balance_due: Money = 0


def _sum_items(items: Iterable) -> CostTotals:
    total = CostTotals()
    for item in items:
        total = total + CostTotals(net_cost=item.net_cost, gross_billed=item.gross_billed)
    return total


def flight_totals(flight: Flight) -> CostTotals:
    return _sum_items(flight.passenger_details)


def category_totals(itinerary: Itinerary) -> dict[str, CostTotals]:
    flights = CostTotals()
    for f in itinerary.flights:
        flights = flights + flight_totals(f)
    return {
        "flights": flights,
        "hotels": _sum_items(itinerary.hotels),
        "excursions": _sum_items(itinerary.excursions),
        "transfers": _sum_items(itinerary.transfers),
    }


def total_paid(payments: Iterable[Payment]) -> Decimal:
    return sum((p.amount for p in payments), Decimal(0))


def summarize_itinerary(itinerary: Itinerary, payments: Iterable[Payment]) -> FinancialSummary:
    totals = category_totals(itinerary)
    grand = CostTotals()
    for name in CATEGORIES:
        grand = grand + totals[name]
    paid = total_paid(payments)

    # profit and balance are never clamped: negative profit and overpayment are surfaced as-is
    return FinancialSummary(
        per_category={
            name: CategorySummary(net_cost=t.net_cost, gross_billed=t.gross_billed, profit=t.profit)
            for name, t in totals.items()
        },
        grand_total_net=grand.net_cost,
        grand_total_gross=grand.gross_billed,
        grand_total_profit=grand.gross_billed - grand.net_cost,
        amount_paid=paid,
        balance_due=grand.gross_billed - paid,
    )


def docket_summary(docket: Docket) -> FinancialSummary:
    return summarize_itinerary(docket.itinerary, docket.payments)
