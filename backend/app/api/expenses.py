from datetime import UTC, datetime
import logging
import math
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.core.config import get_settings
from app.core.db import get_session
from app.models.expense import Expense, ExpenseCategory
from app.models.user import User
from app.schemas.expense import (
    BudgetStatusResponse,
    CategoryStatPoint,
    DashboardResponse,
    ExpenseCreateRequest,
    ExpenseDeleteResponse,
    ExpenseItem,
    ExpenseListResponse,
    ExpenseMutationResponse,
    ExpenseStatsResponse,
    ExpenseUpdateRequest,
    MonthlyStatPoint,
    TotalStats,
)
from app.services.aggregation import AggregationResult, GrandTotal, aggregate
from app.services.budget import BudgetStatus, current_month_range, evaluate_budget
from app.services.date_range import DateRange, InvalidDateRangeError, parse_date_range
from app.services.expense_store import (
    build_expense_filters,
    count_expenses,
    get_owned_expense,
    list_expenses_page,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/expenses", tags=["expenses"])
settings = get_settings()

RECENT_EXPENSES_LIMIT = 5


def _utc_now_naive() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


def _to_expense_item(expense: Expense) -> ExpenseItem:
    return ExpenseItem(
        id=str(expense.id),
        amount=expense.amount,
        category=expense.category,
        description=expense.description,
        date=expense.date.isoformat(),
        tags=list(expense.tags or []),
        created_at=expense.created_at.isoformat(),
        updated_at=expense.updated_at.isoformat(),
    )


def _to_total_stats(grand_total: GrandTotal) -> TotalStats:
    return TotalStats(
        total_amount=float(grand_total.total_amount),
        total_count=grand_total.total_count,
        average_amount=float(grand_total.average_amount),
    )


def _to_stats_response(result: AggregationResult) -> ExpenseStatsResponse:
    return ExpenseStatsResponse(
        category_stats=[
            CategoryStatPoint(
                category=item.category,
                total=float(item.total),
                count=item.count,
                average=float(item.average),
            )
            for item in result.category_breakdown
        ],
        monthly_stats=[
            MonthlyStatPoint(
                year=item.year,
                month=item.month,
                total=float(item.total),
                count=item.count,
            )
            for item in result.monthly_trend
        ],
        total_stats=_to_total_stats(result.grand_total),
    )


def _to_budget_response(budget: BudgetStatus) -> BudgetStatusResponse:
    return BudgetStatusResponse(
        monthly_budget=float(budget.monthly_budget),
        spent=float(budget.spent),
        remaining=float(budget.remaining),
        percentage_used=float(budget.percentage_used),
        alert=budget.alert,
    )


def _resolve_date_range(start_date: str | None, end_date: str | None) -> DateRange:
    try:
        return parse_date_range(start_date, end_date)
    except InvalidDateRangeError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        ) from exc


def _parse_expense_id(expense_id: str) -> UUID:
    try:
        return UUID(expense_id)
    except ValueError as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail="Invalid expense_id",
        ) from exc


async def _load_owned_expense(session: AsyncSession, user: User, expense_id: str) -> Expense:
    expense = await get_owned_expense(session, user.id, _parse_expense_id(expense_id))
    if not expense:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Expense not found",
        )
    return expense


@router.get("", response_model=ExpenseListResponse)
async def list_expenses(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=settings.default_page_size, ge=1, le=settings.max_page_size),
    category: ExpenseCategory | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    search: str | None = Query(default=None, max_length=200),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ExpenseListResponse:
    filters = build_expense_filters(
        user.id,
        date_range=_resolve_date_range(start_date, end_date),
        category=category,
        search=search,
    )
    expenses = await list_expenses_page(session, filters, page=page, limit=limit)
    total = await count_expenses(session, filters)

    return ExpenseListResponse(
        expenses=[_to_expense_item(expense) for expense in expenses],
        total_pages=math.ceil(total / limit),
        current_page=page,
        total=total,
    )


@router.get("/stats", response_model=ExpenseStatsResponse)
async def get_expense_stats(
    start_date: str | None = Query(default=None, alias="startDate"),
    end_date: str | None = Query(default=None, alias="endDate"),
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ExpenseStatsResponse:
    date_range = _resolve_date_range(start_date, end_date)
    result = await aggregate(session, user.id, date_range)
    return _to_stats_response(result)


@router.get("/dashboard", response_model=DashboardResponse)
async def get_dashboard(
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> DashboardResponse:
    now = _utc_now_naive()
    overall = await aggregate(session, user.id)
    current_month = await aggregate(session, user.id, current_month_range(now))
    budget = evaluate_budget(user.monthly_budget, current_month.grand_total.total_amount)
    if budget.alert:
        logger.info(
            "Budget alert user=%s spent=%s budget=%s",
            user.id,
            budget.spent,
            budget.monthly_budget,
        )

    recent = await list_expenses_page(
        session,
        build_expense_filters(user.id),
        page=1,
        limit=RECENT_EXPENSES_LIMIT,
    )
    return DashboardResponse(
        period_month=now.strftime("%Y-%m"),
        stats=_to_stats_response(overall),
        current_month=_to_total_stats(current_month.grand_total),
        budget=_to_budget_response(budget),
        recent_expenses=[_to_expense_item(expense) for expense in recent],
    )


@router.post("", response_model=ExpenseMutationResponse, status_code=status.HTTP_201_CREATED)
async def create_expense(
    payload: ExpenseCreateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ExpenseMutationResponse:
    now = _utc_now_naive()
    expense = Expense(
        user_id=user.id,
        amount=payload.amount,
        category=payload.category,
        description=payload.description,
        date=payload.date or now,
        tags=payload.tags,
        created_at=now,
        updated_at=now,
    )
    session.add(expense)
    await session.commit()
    await session.refresh(expense)

    logger.info("Created expense=%s user=%s", expense.id, user.id)
    return ExpenseMutationResponse(
        message="Expense added successfully",
        expense=_to_expense_item(expense),
    )


@router.put("/{expense_id}", response_model=ExpenseMutationResponse)
async def update_expense(
    expense_id: str,
    payload: ExpenseUpdateRequest,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ExpenseMutationResponse:
    expense = await _load_owned_expense(session, user, expense_id)

    for field_name, value in payload.model_dump(exclude_unset=True, exclude_none=True).items():
        setattr(expense, field_name, value)
    expense.updated_at = _utc_now_naive()
    session.add(expense)
    await session.commit()
    await session.refresh(expense)

    logger.info("Updated expense=%s user=%s", expense.id, user.id)
    return ExpenseMutationResponse(
        message="Expense updated successfully",
        expense=_to_expense_item(expense),
    )


@router.delete("/{expense_id}", response_model=ExpenseDeleteResponse)
async def delete_expense(
    expense_id: str,
    user: User = Depends(get_current_user),
    session: AsyncSession = Depends(get_session),
) -> ExpenseDeleteResponse:
    expense = await _load_owned_expense(session, user, expense_id)
    deleted_id = str(expense.id)

    await session.delete(expense)
    await session.commit()

    logger.info("Deleted expense=%s user=%s", deleted_id, user.id)
    return ExpenseDeleteResponse(
        expense_id=deleted_id,
        message="Expense deleted successfully",
    )
