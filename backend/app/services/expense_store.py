from collections.abc import Sequence
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from app.models.expense import Expense, ExpenseCategory
from app.services.date_range import DateRange


def _categories_matching(term: str) -> list[ExpenseCategory]:
    needle = term.lower()
    return [category for category in ExpenseCategory if needle in category.value.lower()]


def build_expense_filters(
    owner_id: UUID,
    *,
    date_range: DateRange | None = None,
    category: ExpenseCategory | None = None,
    search: str | None = None,
) -> list:
    # The owner filter is always first and is never optional.
    filters = [Expense.user_id == owner_id]
    if date_range is not None:
        if date_range.start is not None:
            filters.append(Expense.date >= date_range.start)
        if date_range.end is not None:
            filters.append(Expense.date <= date_range.end)
    if category is not None:
        filters.append(Expense.category == category)
    term = (search or "").strip()
    if term:
        filters.append(
            or_(
                Expense.description.icontains(term, autoescape=True),
                Expense.category.in_(_categories_matching(term)),
            )
        )
    return filters


def _newest_first(statement):
    return statement.order_by(Expense.date.desc(), Expense.created_at.desc())


async def find_expenses(
    session: AsyncSession,
    owner_id: UUID,
    date_range: DateRange | None = None,
) -> Sequence[Expense]:
    result = await session.execute(
        _newest_first(
            select(Expense).where(*build_expense_filters(owner_id, date_range=date_range))
        )
    )
    return result.scalars().all()


async def count_expenses(session: AsyncSession, filters: list) -> int:
    result = await session.execute(select(func.count()).select_from(Expense).where(*filters))
    return int(result.scalar_one() or 0)


async def list_expenses_page(
    session: AsyncSession,
    filters: list,
    *,
    page: int,
    limit: int,
) -> Sequence[Expense]:
    result = await session.execute(
        _newest_first(select(Expense).where(*filters))
        .offset((page - 1) * limit)
        .limit(limit)
    )
    return result.scalars().all()


async def get_owned_expense(
    session: AsyncSession,
    owner_id: UUID,
    expense_id: UUID,
) -> Expense | None:
    result = await session.execute(
        select(Expense).where(Expense.id == expense_id, Expense.user_id == owner_id)
    )
    return result.scalar_one_or_none()
