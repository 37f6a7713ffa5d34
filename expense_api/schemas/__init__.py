"""Pydantic schemas for API requests and responses."""

from expense_api.schemas.auth import AuthResponse, UserLogin, UserRegister, UserResponse
from expense_api.schemas.transaction import (
    Pagination,
    SummaryResponse,
    TransactionCreate,
    TransactionFilter,
    TransactionResponse,
    TransactionUpdate,
)

__all__ = [
    "AuthResponse",
    "UserLogin",
    "UserRegister",
    "UserResponse",
    "Pagination",
    "SummaryResponse",
    "TransactionCreate",
    "TransactionFilter",
    "TransactionResponse",
    "TransactionUpdate",
]
