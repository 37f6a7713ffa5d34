"""User persistence."""

import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from expense_api.errors import DatabaseError, DuplicateEmailError
from expense_api.models.user import User

logger = logging.getLogger(__name__)


class UserRepository:
    """Lookup and creation of users, with email uniqueness enforced by the store."""

    def __init__(self, db: Session):
        self.db = db

    def find_by_email(self, email: str) -> User | None:
        """Get a user by email, ignoring case."""
        try:
            return self.db.query(User).filter(func.lower(User.email) == email.strip().lower()).first()
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up user by email: {e}")
            raise DatabaseError("Failed to retrieve user", "find_by_email") from e

    def find_by_id(self, user_id: int) -> User | None:
        try:
            return self.db.get(User, user_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to look up user {user_id}: {e}")
            raise DatabaseError("Failed to retrieve user", "find_by_id") from e

    def create(self, email: str, password_hash: str) -> User:
        """Create a new user. Raises DuplicateEmailError if the email is taken."""
        user = User(email=email.strip().lower(), password_hash=password_hash)
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as e:
            self.db.rollback()
            logger.info(f"Registration rejected, email already taken: {user.email}")
            raise DuplicateEmailError() from e
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Failed to create user: {e}")
            raise DatabaseError("Failed to create user", "create_user") from e
        self.db.refresh(user)
        return user
