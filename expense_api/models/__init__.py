"""SQLAlchemy models."""

from expense_api.models.enums import TransactionType
from expense_api.models.transaction import Transaction
from expense_api.models.user import User

__all__ = [
    "User",
    "Transaction",
    "TransactionType",
]
