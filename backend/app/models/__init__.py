from app.models.expense import Expense, ExpenseCategory
from app.models.user import User

__all__ = [
    "Expense",
    "ExpenseCategory",
    "User",
]
