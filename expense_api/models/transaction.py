"""Transaction model."""

from sqlalchemy import CheckConstraint, Column, Date, Enum, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from expense_api.database import Base
from expense_api.models.enums import TransactionType
from expense_api.models.mixins import TimestampMixin


class Transaction(Base, TimestampMixin):
    """A single income or expense entry owned by one user."""

    __tablename__ = "transactions"
    __table_args__ = (CheckConstraint("amount > 0", name="ck_transactions_amount_positive"),)

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(TransactionType, name="transaction_type"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    description = Column(String(500), nullable=True)
    date = Column(Date, nullable=False, index=True)

    # Relationships
    user = relationship("User", back_populates="transactions")
