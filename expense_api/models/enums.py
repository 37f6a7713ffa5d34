"""Enums for model fields."""

from enum import Enum


class TransactionType(str, Enum):
    """Direction of a transaction."""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"
