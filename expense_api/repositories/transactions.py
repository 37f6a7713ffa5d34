"""Transaction persistence."""

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any

from sqlalchemy import case, func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from expense_api.errors import DatabaseError
from expense_api.models.enums import TransactionType
from expense_api.models.transaction import Transaction
from expense_api.observability import timed
from expense_api.schemas.transaction import TransactionFilter

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"type", "amount", "description", "date"})
CENTS = Decimal("0.01")


@dataclass(frozen=True)
class TransactionSummary:
    total_income: Decimal
    total_expense: Decimal
    balance: Decimal
    transaction_count: int


def _to_money(value: Any) -> Decimal:
    if value is None:
        return Decimal("0.00")
    return Decimal(str(value)).quantize(CENTS)


class TransactionRepository:
    """Transactions scoped by owning user.

    Input is validated before it gets here; the repository only fails on
    persistence errors, which surface as ``DatabaseError``.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(
        self,
        user_id: int,
        type: TransactionType,
        amount: Decimal,
        date: date,
        description: str | None = None,
    ) -> Transaction:
        transaction = Transaction(
            user_id=user_id,
            type=type,
            amount=amount,
            description=description,
            date=date,
        )
        self.db.add(transaction)
        self._commit("create")
        self.db.refresh(transaction)
        logger.info(f"Transaction {transaction.id} created for user {user_id}")
        return transaction

    def find_by_id(self, transaction_id: int) -> Transaction | None:
        try:
            return self.db.get(Transaction, transaction_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve transaction {transaction_id}: {e}")
            raise DatabaseError(f"Failed to retrieve transaction with ID {transaction_id}", "find_by_id") from e

    def find_by_owner(
        self,
        user_id: int,
        filter: TransactionFilter | None = None,
        offset: int | None = None,
        limit: int | None = None,
    ) -> list[Transaction]:
        """Get a user's transactions, newest first."""
        query = self.db.query(Transaction).filter(Transaction.user_id == user_id)

        if filter is not None:
            if filter.type is not None:
                query = query.filter(Transaction.type == filter.type)
            if filter.start_date is not None:
                query = query.filter(Transaction.date >= filter.start_date)
            if filter.end_date is not None:
                query = query.filter(Transaction.date <= filter.end_date)

        query = query.order_by(Transaction.date.desc(), Transaction.id.desc())
        if offset:
            query = query.offset(offset)
        if limit is not None:
            query = query.limit(limit)

        try:
            return query.all()
        except SQLAlchemyError as e:
            logger.error(f"Failed to retrieve transactions for user {user_id}: {e}")
            raise DatabaseError(f"Failed to retrieve transactions for user {user_id}", "find_by_owner") from e

    def update(self, transaction_id: int, user_id: int, fields: dict[str, Any]) -> Transaction | None:
        """Change only the supplied fields. Returns None if no row matches."""
        unknown = set(fields) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update fields: {', '.join(sorted(unknown))}")
        transaction = (
            self.db.query(Transaction)
            .filter(Transaction.id == transaction_id, Transaction.user_id == user_id)
            .first()
        )
        if transaction is None:
            logger.warning(f"Transaction {transaction_id} not found for update")
            return None

        if not fields:
            return transaction

        for name, value in fields.items():
            setattr(transaction, name, value)
        self._commit("update")
        self.db.refresh(transaction)
        logger.info(f"Transaction {transaction_id} updated")
        return transaction

    def delete(self, transaction_id: int) -> bool:
        """Delete a transaction. Returns False if none matched."""
        transaction = self.find_by_id(transaction_id)
        if transaction is None:
            logger.warning(f"Transaction {transaction_id} not found for deletion")
            return False
        self.db.delete(transaction)
        self._commit("delete")
        logger.info(f"Transaction {transaction_id} deleted")
        return True

    @timed("transactions.summary")
    def summary(self, user_id: int) -> TransactionSummary:
        """Totals for a user, computed in a single aggregate query."""
        income = func.sum(case((Transaction.type == TransactionType.INCOME, Transaction.amount), else_=0))
        expense = func.sum(case((Transaction.type == TransactionType.EXPENSE, Transaction.amount), else_=0))
        try:
            total_income, total_expense, count = (
                self.db.query(income, expense, func.count(Transaction.id))
                .filter(Transaction.user_id == user_id)
                .one()
            )
        except SQLAlchemyError as e:
            logger.error(f"Failed to calculate summary for user {user_id}: {e}")
            raise DatabaseError(f"Failed to calculate financial summary for user {user_id}", "summary") from e

        total_income = _to_money(total_income)
        total_expense = _to_money(total_expense)
        return TransactionSummary(
            total_income=total_income,
            total_expense=total_expense,
            balance=total_income - total_expense,
            transaction_count=int(count or 0),
        )

    def _commit(self, operation: str) -> None:
        try:
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Database error during transaction {operation}: {e}")
            raise DatabaseError(f"Failed to {operation} transaction", operation) from e
