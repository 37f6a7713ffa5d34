"""Transaction schemas."""

import datetime as dt
import re
from decimal import Decimal
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from expense_api.models.enums import TransactionType

Amount = Annotated[Decimal, Field(gt=0, le=Decimal("999999.99"), decimal_places=2)]


def sanitize_description(value: str | None) -> str | None:
    """Trim, drop angle brackets and collapse whitespace. Blank becomes None."""
    if value is None:
        return None
    cleaned = re.sub(r"\s+", " ", value.replace("<", "").replace(">", "")).strip()
    return cleaned or None


def check_not_far_future(value: dt.date) -> dt.date:
    """Reject dates more than one year ahead of today."""
    today = dt.date.today()
    try:
        limit = today.replace(year=today.year + 1)
    except ValueError:  # Feb 29
        limit = today.replace(year=today.year + 1, day=28)
    if value > limit:
        raise ValueError("Date cannot be more than 1 year in the future")
    return value


class TransactionCreate(BaseModel):
    """Create a new transaction."""

    type: TransactionType
    amount: Amount
    description: str | None = Field(None, max_length=500)
    date: dt.date

    @field_validator("description")
    @classmethod
    def clean_description(cls, value: str | None) -> str | None:
        return sanitize_description(value)

    @field_validator("date")
    @classmethod
    def check_date(cls, value: dt.date) -> dt.date:
        return check_not_far_future(value)


class TransactionUpdate(BaseModel):
    """Update a transaction. Only the fields sent are changed."""

    type: TransactionType | None = None
    amount: Amount | None = None
    description: str | None = Field(None, max_length=500)
    date: dt.date | None = None

    @field_validator("description")
    @classmethod
    def clean_description(cls, value: str | None) -> str | None:
        return sanitize_description(value)

    @field_validator("date")
    @classmethod
    def check_date(cls, value: dt.date | None) -> dt.date | None:
        return None if value is None else check_not_far_future(value)

    @model_validator(mode="after")
    def check_not_empty(self) -> "TransactionUpdate":
        if not self.model_fields_set:
            raise ValueError("At least one field must be provided for update")
        for field in ("type", "amount", "date"):
            if field in self.model_fields_set and getattr(self, field) is None:
                raise ValueError(f"{field} cannot be null")
        return self

    def changes(self) -> dict:
        """Fields explicitly supplied by the client."""
        return self.model_dump(include=self.model_fields_set)


class TransactionFilter(BaseModel):
    """Optional, AND-combined filters for listing transactions."""

    type: TransactionType | None = None
    start_date: dt.date | None = None
    end_date: dt.date | None = None

    @model_validator(mode="after")
    def check_range(self) -> "TransactionFilter":
        if self.start_date and self.end_date and self.start_date > self.end_date:
            raise ValueError("Start date cannot be after end date")
        return self


class Pagination(BaseModel):
    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=100)

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


class TransactionResponse(BaseModel):
    """Transaction response."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    type: TransactionType
    amount: float
    description: str | None
    date: dt.date
    created_at: dt.datetime
    updated_at: dt.datetime


class SummaryResponse(BaseModel):
    """Totals across all of a user's transactions."""

    model_config = ConfigDict(from_attributes=True)

    total_income: float
    total_expense: float
    balance: float
    transaction_count: int
