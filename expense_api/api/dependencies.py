"""FastAPI dependencies for request context, authentication and services."""

import logging
from dataclasses import dataclass
from typing import Annotated

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from expense_api.database import get_db
from expense_api.errors import RateLimitedError, UnauthenticatedError
from expense_api.services.auth import AuthService, PasswordHasher
from expense_api.services.rate_limiter import FixedWindowRateLimiter
from expense_api.services.tokens import TokenService
from expense_api.services.transactions import TransactionService

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuthenticatedUser:
    """Identity taken from a verified token claim."""

    id: int
    email: str


@dataclass(frozen=True)
class RequestContext:
    """Per-request state: at most one verified identity and the raw token."""

    user: AuthenticatedUser | None = None
    token: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.user is not None


def get_token_service(request: Request) -> TokenService:
    return request.app.state.token_service


def get_password_hasher(request: Request) -> PasswordHasher:
    return request.app.state.password_hasher


def build_request_context(
    request: Request,
    tokens: Annotated[TokenService, Depends(get_token_service)],
) -> RequestContext:
    """Attach the caller's identity to the request, if it presented a valid token.

    Never fails: a missing, malformed, invalid or expired credential simply
    yields an anonymous context. The claim is trusted as is; the user store is
    not consulted here.
    """
    try:
        token = tokens.extract_from_header(request.headers.get("Authorization"))
        if token is None:
            return RequestContext()
        claims = tokens.verify(token)
        if claims is None:
            return RequestContext()
        return RequestContext(user=AuthenticatedUser(id=claims.user_id, email=claims.email), token=token)
    except Exception as e:
        logger.warning(f"Context creation error: {e}")
        return RequestContext()


def get_current_user(
    context: Annotated[RequestContext, Depends(build_request_context)],
) -> AuthenticatedUser:
    """Require an authenticated caller before any store access."""
    if context.user is None:
        raise UnauthenticatedError("You must be logged in to perform this action")
    return context.user


def get_auth_service(
    db: Annotated[Session, Depends(get_db)],
    tokens: Annotated[TokenService, Depends(get_token_service)],
    hasher: Annotated[PasswordHasher, Depends(get_password_hasher)],
) -> AuthService:
    """Get auth service with dependencies."""
    return AuthService(db, tokens, hasher)


def get_transaction_service(
    db: Annotated[Session, Depends(get_db)],
) -> TransactionService:
    """Get transaction service with dependencies."""
    return TransactionService(db)


def client_address(request: Request) -> str:
    return request.client.host if request.client else "unknown"


async def limit_auth_attempts(request: Request) -> None:
    """Stricter per-address budget for register and login."""
    limiter: FixedWindowRateLimiter = request.app.state.auth_rate_limiter
    decision = await limiter.hit(client_address(request))
    if not decision.allowed:
        raise RateLimitedError(decision.retry_after, "Too many authentication attempts, please try again later.")
