"""Per-owner expense statistics: category breakdown, monthly trend and grand total.

Everything here is a read-only reduce over the owner's records. Amounts are
accumulated as ``Decimal`` and never rounded; rounding is a display concern.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable
from dataclasses import dataclass, field
from decimal import Decimal
import logging
from typing import TypeVar
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.expense import Expense, ExpenseCategory
from app.services.date_range import DateRange
from app.services.expense_store import find_expenses

logger = logging.getLogger(__name__)

MONTHLY_TREND_LIMIT = 12
ZERO = Decimal("0")

K = TypeVar("K", bound=Hashable)

_CATEGORY_ORDER = {category: index for index, category in enumerate(ExpenseCategory)}


def to_decimal(amount: float | int | str | Decimal) -> Decimal:
    if isinstance(amount, Decimal):
        return amount
    # str() keeps the shortest repr of a float, so 0.1 stays 0.1.
    return Decimal(str(amount))


@dataclass(slots=True)
class GroupTotals:
    total: Decimal = ZERO
    count: int = 0

    def add(self, amount: Decimal) -> None:
        self.total += amount
        self.count += 1

    @property
    def average(self) -> Decimal:
        if self.count == 0:
            return ZERO
        return self.total / self.count


@dataclass(slots=True)
class CategoryTotal:
    category: ExpenseCategory
    total: Decimal
    count: int
    average: Decimal


@dataclass(slots=True)
class MonthlyTotal:
    year: int
    month: int
    total: Decimal
    count: int


@dataclass(slots=True)
class GrandTotal:
    total_amount: Decimal = ZERO
    total_count: int = 0
    average_amount: Decimal = ZERO


@dataclass(slots=True)
class AggregationResult:
    category_breakdown: list[CategoryTotal] = field(default_factory=list)
    monthly_trend: list[MonthlyTotal] = field(default_factory=list)
    grand_total: GrandTotal = field(default_factory=GrandTotal)


def group_by(key_fn: Callable[[Expense], K], records: Iterable[Expense]) -> dict[K, GroupTotals]:
    groups: dict[K, GroupTotals] = {}
    for record in records:
        key = key_fn(record)
        bucket = groups.get(key)
        if bucket is None:
            bucket = groups[key] = GroupTotals()
        bucket.add(to_decimal(record.amount))
    return groups


def _category_breakdown(records: list[Expense]) -> list[CategoryTotal]:
    groups = group_by(lambda record: ExpenseCategory(record.category), records)
    ordered = sorted(
        groups.items(),
        key=lambda item: (-item[1].total, _CATEGORY_ORDER[item[0]]),
    )
    return [
        CategoryTotal(
            category=category,
            total=totals.total,
            count=totals.count,
            average=totals.average,
        )
        for category, totals in ordered
    ]


def _monthly_trend(records: list[Expense]) -> list[MonthlyTotal]:
    groups = group_by(lambda record: (record.date.year, record.date.month), records)
    newest = sorted(groups.items(), key=lambda item: item[0], reverse=True)
    return [
        MonthlyTotal(year=year, month=month, total=totals.total, count=totals.count)
        for (year, month), totals in newest[:MONTHLY_TREND_LIMIT]
    ]


def _grand_total(records: list[Expense]) -> GrandTotal:
    totals = group_by(lambda _: None, records).get(None)
    if totals is None:
        return GrandTotal()
    return GrandTotal(
        total_amount=totals.total,
        total_count=totals.count,
        average_amount=totals.average,
    )


def summarize_expenses(records: Iterable[Expense]) -> AggregationResult:
    selected = list(records)
    return AggregationResult(
        category_breakdown=_category_breakdown(selected),
        monthly_trend=_monthly_trend(selected),
        grand_total=_grand_total(selected),
    )


async def aggregate(
    session: AsyncSession,
    owner_id: UUID,
    date_range: DateRange | None = None,
) -> AggregationResult:
    """Compute statistics over ``owner_id``'s expenses inside ``date_range``.

    Store errors propagate unchanged to the caller.
    """
    records = await find_expenses(session, owner_id, date_range)
    logger.debug(
        "Aggregating %d expense(s) for user=%s range=%s",
        len(records),
        owner_id,
        date_range,
    )
    return summarize_expenses(records)
