"""Authentication service for password handling, registration and login."""

import logging
from dataclasses import dataclass

from passlib.context import CryptContext
from sqlalchemy.orm import Session

from expense_api.errors import DuplicateEmailError, UnauthenticatedError
from expense_api.models.user import User
from expense_api.observability import timed
from expense_api.repositories.users import UserRepository
from expense_api.services.tokens import TokenService

logger = logging.getLogger(__name__)


class PasswordHasher:
    """One-way bcrypt hashing with a fixed work factor."""

    def __init__(self, rounds: int = 12):
        self.context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=rounds)

    def hash(self, password: str) -> str:
        """Hash a password."""
        return self.context.hash(password)

    def verify(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against its hash."""
        if not plain_password or not hashed_password:
            return False
        try:
            return self.context.verify(plain_password, hashed_password)
        except ValueError as e:
            logger.warning(f"Stored password hash could not be checked: {e}")
            return False


@dataclass
class AuthResult:
    token: str
    user: User


class AuthService:
    """Registration, login and user lookup."""

    def __init__(self, db: Session, tokens: TokenService, hasher: PasswordHasher):
        self.users = UserRepository(db)
        self.tokens = tokens
        self.hasher = hasher

    @timed("auth.register")
    def register(self, email: str, password: str) -> AuthResult:
        """Create a user and issue a token. Emails are unique regardless of case."""
        if self.users.find_by_email(email):
            raise DuplicateEmailError()

        user = self.users.create(email, self.hasher.hash(password))
        logger.info(f"User {user.email} registered successfully")
        return AuthResult(token=self.tokens.issue(user.id, user.email), user=user)

    @timed("auth.login")
    def login(self, email: str, password: str) -> AuthResult:
        """Authenticate a user by email and password."""
        user = self.users.find_by_email(email)
        if user is None or not self.hasher.verify(password, user.password_hash):
            logger.info("Login failed: invalid email or password")
            raise UnauthenticatedError("Invalid email or password")

        logger.info(f"User {user.email} logged in successfully")
        return AuthResult(token=self.tokens.issue(user.id, user.email), user=user)

    def get_user(self, user_id: int) -> User:
        """Load the user behind an authenticated request."""
        user = self.users.find_by_id(user_id)
        if user is None:
            raise UnauthenticatedError("User not found")
        return user
