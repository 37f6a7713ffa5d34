"""Transaction API endpoints."""

from datetime import date
from typing import Annotated, Any

from fastapi import APIRouter, Body, Depends, Path, Query, status
from pydantic import ValidationError

from expense_api.api.dependencies import AuthenticatedUser, get_current_user, get_transaction_service
from expense_api.errors import ValidationFailedError
from expense_api.models.enums import TransactionType
from expense_api.schemas.transaction import (
    Pagination,
    SummaryResponse,
    TransactionCreate,
    TransactionFilter,
    TransactionResponse,
)
from expense_api.services.transactions import TransactionService

router = APIRouter(prefix="/api/v1/transactions", tags=["transactions"])

# Upper bounds keep ids and row offsets inside the store's integer range
MAX_ID = 2_147_483_647
MAX_PAGE = 10_000_000

TransactionId = Annotated[int, Path(gt=0, le=MAX_ID)]


def get_filter(
    type: TransactionType | None = None,
    start_date: date | None = None,
    end_date: date | None = None,
) -> TransactionFilter:
    try:
        return TransactionFilter(type=type, start_date=start_date, end_date=end_date)
    except ValidationError as e:
        raise ValidationFailedError.from_errors(e.errors()) from e


def get_pagination(
    page: int | None = Query(default=None, ge=1, le=MAX_PAGE),
    limit: int | None = Query(default=None, ge=1, le=100),
) -> Pagination | None:
    """Pagination is applied only when the client asks for it."""
    if page is None and limit is None:
        return None
    return Pagination(page=page or 1, limit=limit or 10)


@router.get("", response_model=list[TransactionResponse])
def get_transactions(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[TransactionService, Depends(get_transaction_service)],
    filter: Annotated[TransactionFilter, Depends(get_filter)],
    pagination: Annotated[Pagination | None, Depends(get_pagination)],
):
    """Get the current user's transactions, newest first."""
    return service.get_transactions(current_user.id, filter, pagination)


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[TransactionService, Depends(get_transaction_service)],
):
    """Get income, expense and balance totals."""
    return service.get_summary(current_user.id)


@router.get("/{transaction_id}", response_model=TransactionResponse)
def get_transaction(
    transaction_id: TransactionId,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[TransactionService, Depends(get_transaction_service)],
):
    """Get a single transaction."""
    return service.get_transaction(transaction_id, current_user.id)


@router.post("", response_model=TransactionResponse, status_code=status.HTTP_201_CREATED)
def create_transaction(
    transaction_data: TransactionCreate,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[TransactionService, Depends(get_transaction_service)],
):
    """Record a new income or expense."""
    return service.create_transaction(current_user.id, transaction_data)


@router.put("/{transaction_id}", response_model=TransactionResponse)
def update_transaction(
    transaction_id: TransactionId,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[TransactionService, Depends(get_transaction_service)],
    payload: Annotated[Any, Body()] = None,
):
    """Update a transaction. Fields left out are not changed.

    The body is taken as is and validated by the service once ownership is
    confirmed.
    """
    return service.update_transaction(transaction_id, current_user.id, payload)


@router.delete("/{transaction_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_transaction(
    transaction_id: TransactionId,
    current_user: Annotated[AuthenticatedUser, Depends(get_current_user)],
    service: Annotated[TransactionService, Depends(get_transaction_service)],
):
    """Delete a transaction."""
    service.delete_transaction(transaction_id, current_user.id)
