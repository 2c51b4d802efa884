from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from app.services.aggregation import ZERO, to_decimal
from app.services.date_range import DateRange, month_range

# Alert once spending passes this fraction of the monthly budget.
BUDGET_ALERT_THRESHOLD = Decimal("0.8")


@dataclass(slots=True)
class BudgetStatus:
    monthly_budget: Decimal
    spent: Decimal
    remaining: Decimal
    percentage_used: Decimal
    alert: bool


def is_budget_alert(monthly_budget: float | Decimal, current_month_total: float | Decimal) -> bool:
    budget = to_decimal(monthly_budget)
    if budget <= ZERO:
        return False
    return to_decimal(current_month_total) > budget * BUDGET_ALERT_THRESHOLD


def evaluate_budget(
    monthly_budget: float | Decimal,
    current_month_total: float | Decimal,
) -> BudgetStatus:
    budget = to_decimal(monthly_budget)
    spent = to_decimal(current_month_total)
    percentage = spent / budget * 100 if budget > ZERO else ZERO
    return BudgetStatus(
        monthly_budget=budget,
        spent=spent,
        remaining=budget - spent,
        percentage_used=percentage,
        alert=is_budget_alert(budget, spent),
    )


def current_month_range(now: datetime) -> DateRange:
    return month_range(now)
