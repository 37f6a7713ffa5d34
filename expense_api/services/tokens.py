"""JWT bearer tokens: issuing, verification and header parsing."""

import logging
import re
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import ExpiredSignatureError, JWTError, jwt

from expense_api.config import Settings

logger = logging.getLogger(__name__)

# "Bearer <header>.<payload>.<signature>" with base64url segments
BEARER_HEADER_PATTERN = re.compile(r"Bearer ([A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+)")


@dataclass(frozen=True)
class TokenClaims:
    """Identity recovered from a verified token."""

    user_id: int
    email: str


class TokenService:
    """Issues and verifies signed, time-limited access tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        expires_minutes: int = 10080,
        issuer: str = "expense-management-api",
        audience: str = "expense-management-client",
    ):
        self.secret = secret
        self.algorithm = algorithm
        self.expires_minutes = expires_minutes
        self.issuer = issuer
        self.audience = audience

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenService":
        return cls(
            secret=settings.jwt_secret,
            algorithm=settings.jwt_algorithm,
            expires_minutes=settings.jwt_expiration_minutes,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
        )

    def issue(self, user_id: int, email: str, now: datetime | None = None) -> str:
        """Create a signed access token for a user."""
        if not user_id or not email:
            raise ValueError("Invalid user data for token generation")
        issued_at = now or datetime.now(UTC)
        to_encode = {
            "sub": str(user_id),
            "email": email,
            "iat": issued_at,
            "exp": issued_at + timedelta(minutes=self.expires_minutes),
            "iss": self.issuer,
            "aud": self.audience,
        }
        token = jwt.encode(to_encode, self.secret, algorithm=self.algorithm)
        logger.debug(f"Access token issued for user {user_id}")
        return token

    def verify(self, token: str) -> TokenClaims | None:
        """Decode and validate a token. Returns None when it is not acceptable."""
        if not token or not isinstance(token, str):
            return None
        try:
            payload = jwt.decode(
                token,
                self.secret,
                algorithms=[self.algorithm],
                audience=self.audience,
                issuer=self.issuer,
            )
        except ExpiredSignatureError:
            logger.debug("Token has expired")
            return None
        except JWTError as e:
            logger.debug(f"Token rejected: {e}")
            return None

        subject = payload.get("sub")
        email = payload.get("email")
        if not subject or not email:
            logger.warning("Token payload missing required fields")
            return None
        try:
            user_id = int(subject)
        except (TypeError, ValueError):
            logger.warning("Token subject is not a user id")
            return None
        return TokenClaims(user_id=user_id, email=email)

    @staticmethod
    def extract_from_header(header: str | None) -> str | None:
        """Pull the token out of an ``Authorization: Bearer <token>`` value."""
        if not header or not isinstance(header, str):
            return None
        match = BEARER_HEADER_PATTERN.fullmatch(header)
        if match is None:
            logger.debug("Authorization header is not a bearer token")
            return None
        return match.group(1)
