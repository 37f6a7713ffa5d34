"""Transaction business rules: ownership checks around the repository."""

import logging
from typing import Any

from pydantic import ValidationError
from sqlalchemy.orm import Session

from expense_api.errors import ForbiddenError, NotFoundError, ValidationFailedError
from expense_api.models.transaction import Transaction
from expense_api.repositories.transactions import TransactionRepository, TransactionSummary
from expense_api.schemas.transaction import (
    Pagination,
    TransactionCreate,
    TransactionFilter,
    TransactionUpdate,
)

logger = logging.getLogger(__name__)


def ensure_owner(transaction: Transaction, user_id: int) -> None:
    """Raise ForbiddenError unless ``user_id`` owns the transaction."""
    if transaction.user_id != user_id:
        logger.warning(
            f"Access denied: user {user_id} attempted to access transaction "
            f"{transaction.id} owned by user {transaction.user_id}"
        )
        raise ForbiddenError("You do not have access to this transaction")


class TransactionService:
    """Service for transaction-related operations.

    Single-record operations always check existence before ownership, and
    ownership before any change, so a missing record is NOT_FOUND for everyone
    and someone else's record is FORBIDDEN.
    """

    def __init__(self, db: Session):
        self.repository = TransactionRepository(db)

    def get_transactions(
        self,
        user_id: int,
        filter: TransactionFilter | None = None,
        pagination: Pagination | None = None,
    ) -> list[Transaction]:
        if pagination is None:
            return self.repository.find_by_owner(user_id, filter)
        return self.repository.find_by_owner(
            user_id, filter, offset=pagination.offset, limit=pagination.limit
        )

    def get_transaction(self, transaction_id: int, user_id: int) -> Transaction:
        transaction = self.repository.find_by_id(transaction_id)
        if transaction is None:
            raise NotFoundError("Transaction not found")
        ensure_owner(transaction, user_id)
        return transaction

    def create_transaction(self, user_id: int, data: TransactionCreate) -> Transaction:
        return self.repository.create(
            user_id=user_id,
            type=data.type,
            amount=data.amount,
            date=data.date,
            description=data.description,
        )

    def update_transaction(self, transaction_id: int, user_id: int, payload: Any) -> Transaction:
        """Apply a partial update. The payload is validated only once ownership is confirmed."""
        self.get_transaction(transaction_id, user_id)

        try:
            data = TransactionUpdate.model_validate(payload)
        except ValidationError as e:
            raise ValidationFailedError.from_errors(e.errors()) from e

        transaction = self.repository.update(transaction_id, user_id, data.changes())
        if transaction is None:
            # Deleted between the ownership check and the update
            raise NotFoundError("Transaction not found")
        return transaction

    def delete_transaction(self, transaction_id: int, user_id: int) -> None:
        self.get_transaction(transaction_id, user_id)

        if not self.repository.delete(transaction_id):
            raise NotFoundError("Transaction not found")

    def get_summary(self, user_id: int) -> TransactionSummary:
        return self.repository.summary(user_id)
