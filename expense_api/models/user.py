"""User model."""

from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from expense_api.database import Base
from expense_api.models.mixins import TimestampMixin


class User(Base, TimestampMixin):
    """User model for authentication and ownership."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    # Always stored lower-cased, which makes the unique index case-insensitive
    email = Column(String(254), unique=True, nullable=False, index=True)
    password_hash = Column(String(255), nullable=False)

    transactions = relationship("Transaction", back_populates="user")
