"""Tests for issuing, verifying and extracting bearer tokens."""

from datetime import UTC, datetime, timedelta

import pytest
from jose import jwt

from expense_api.services.tokens import TokenClaims, TokenService


def test_issue_then_verify_round_trip(token_service):
    """A freshly issued token verifies to the same identity."""
    token = token_service.issue(7, "user@example.com")

    assert token_service.verify(token) == TokenClaims(user_id=7, email="user@example.com")


def test_token_carries_issuer_and_audience(token_service):
    token = token_service.issue(7, "user@example.com")
    claims = jwt.get_unverified_claims(token)

    assert claims["sub"] == "7"
    assert claims["iss"] == "expense-management-api"
    assert claims["aud"] == "expense-management-client"
    assert claims["exp"] - claims["iat"] == 10080 * 60


def test_verify_rejects_expired_token(token_service):
    """Tokens are invalid once the configured lifetime has elapsed."""
    issued = datetime.now(UTC) - timedelta(minutes=token_service.expires_minutes + 1)
    token = token_service.issue(7, "user@example.com", now=issued)

    assert token_service.verify(token) is None


def test_verify_accepts_token_just_before_expiry(token_service):
    issued = datetime.now(UTC) - timedelta(minutes=token_service.expires_minutes - 1)
    token = token_service.issue(7, "user@example.com", now=issued)

    assert token_service.verify(token) is not None


def test_verify_rejects_wrong_secret(token_service):
    other = TokenService(secret="another-secret")
    token = other.issue(7, "user@example.com")

    assert token_service.verify(token) is None


def test_verify_rejects_wrong_issuer(token_service):
    other = TokenService(secret=token_service.secret, issuer="someone-else")
    token = other.issue(7, "user@example.com")

    assert token_service.verify(token) is None


def test_verify_rejects_wrong_audience(token_service):
    other = TokenService(secret=token_service.secret, audience="another-client")
    token = other.issue(7, "user@example.com")

    assert token_service.verify(token) is None


def test_verify_rejects_token_without_email(token_service):
    now = datetime.now(UTC)
    token = jwt.encode(
        {
            "sub": "7",
            "iat": now,
            "exp": now + timedelta(minutes=5),
            "iss": token_service.issuer,
            "aud": token_service.audience,
        },
        token_service.secret,
        algorithm=token_service.algorithm,
    )

    assert token_service.verify(token) is None


@pytest.mark.parametrize("token", ["", "garbage", "a.b.c", None, 42])
def test_verify_never_raises_on_junk(token_service, token):
    assert token_service.verify(token) is None


@pytest.mark.parametrize(
    ("user_id", "email"),
    [(None, "user@example.com"), (0, "user@example.com"), (7, ""), (7, None)],
)
def test_issue_requires_id_and_email(token_service, user_id, email):
    with pytest.raises(ValueError):
        token_service.issue(user_id, email)


def test_extract_from_header(token_service):
    token = token_service.issue(7, "user@example.com")

    assert TokenService.extract_from_header(f"Bearer {token}") == token


@pytest.mark.parametrize(
    "header",
    [
        None,
        "",
        "Bearer",
        "Bearer ",
        "bearer aaa.bbb.ccc",
        "Basic aaa.bbb.ccc",
        "Token aaa.bbb.ccc",
        "Bearer aaa.bbb",
        "Bearer aaa.bbb.ccc.ddd",
        "Bearer aaa.bbb.ccc extra",
        "Bearer  aaa.bbb.ccc",
        "Bearer aaa.bbb.ccc\n",
        "Bearer aa+a.bbb.ccc",
        "aaa.bbb.ccc",
        12345,
    ],
)
def test_extract_from_header_returns_none_for_malformed(header):
    """Anything that is not exactly "Bearer <jwt>" yields no token, never an error."""
    assert TokenService.extract_from_header(header) is None
