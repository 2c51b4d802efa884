from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.expense import DESCRIPTION_MAX_LENGTH, ExpenseCategory
from app.services.date_range import to_naive_utc


class _ExpenseInput(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    @field_validator("date", check_fields=False)
    @classmethod
    def _normalize_date(cls, value: datetime | None) -> datetime | None:
        return None if value is None else to_naive_utc(value)

    @field_validator("tags", check_fields=False)
    @classmethod
    def _drop_blank_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        return [tag for tag in value if tag]


class ExpenseCreateRequest(_ExpenseInput):
    amount: float = Field(ge=0.01)
    category: ExpenseCategory
    description: str = Field(min_length=1, max_length=DESCRIPTION_MAX_LENGTH)
    date: datetime | None = None
    tags: list[str] = Field(default_factory=list, max_length=20)


class ExpenseUpdateRequest(_ExpenseInput):
    amount: float | None = Field(default=None, ge=0.01)
    category: ExpenseCategory | None = None
    description: str | None = Field(
        default=None, min_length=1, max_length=DESCRIPTION_MAX_LENGTH
    )
    date: datetime | None = None
    tags: list[str] | None = Field(default=None, max_length=20)


class ExpenseItem(BaseModel):
    id: str
    amount: float
    category: ExpenseCategory
    description: str
    date: str
    tags: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class ExpenseListResponse(BaseModel):
    expenses: list[ExpenseItem]
    total_pages: int
    current_page: int
    total: int


class ExpenseMutationResponse(BaseModel):
    message: str
    expense: ExpenseItem


class ExpenseDeleteResponse(BaseModel):
    expense_id: str
    message: str


class CategoryStatPoint(BaseModel):
    category: ExpenseCategory
    total: float
    count: int
    average: float


class MonthlyStatPoint(BaseModel):
    year: int
    month: int
    total: float
    count: int


class TotalStats(BaseModel):
    total_amount: float = 0.0
    total_count: int = 0
    average_amount: float = 0.0


class ExpenseStatsResponse(BaseModel):
    category_stats: list[CategoryStatPoint]
    monthly_stats: list[MonthlyStatPoint]
    total_stats: TotalStats


class BudgetStatusResponse(BaseModel):
    monthly_budget: float
    spent: float
    remaining: float
    percentage_used: float
    alert: bool


class DashboardResponse(BaseModel):
    period_month: str
    stats: ExpenseStatsResponse
    current_month: TotalStats
    budget: BudgetStatusResponse
    recent_expenses: list[ExpenseItem]
