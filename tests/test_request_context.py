"""Tests for the request context builder and the authorization gate."""

from unittest.mock import MagicMock

import pytest

from expense_api.api.dependencies import (
    AuthenticatedUser,
    RequestContext,
    build_request_context,
    get_current_user,
)
from expense_api.errors import ForbiddenError, UnauthenticatedError
from expense_api.models.transaction import Transaction
from expense_api.services.transactions import ensure_owner


def make_request(authorization: str | None = None):
    request = MagicMock()
    request.headers = {} if authorization is None else {"Authorization": authorization}
    return request


def test_context_with_valid_token(token_service):
    token = token_service.issue(3, "user@example.com")

    context = build_request_context(make_request(f"Bearer {token}"), token_service)

    assert context.user == AuthenticatedUser(id=3, email="user@example.com")
    assert context.token == token
    assert context.is_authenticated


def test_context_trusts_claim_without_store_lookup(token_service):
    """The builder has no database access; identity comes from the token alone."""
    token = token_service.issue(424242, "nobody@example.com")

    context = build_request_context(make_request(f"Bearer {token}"), token_service)

    assert context.user.id == 424242


@pytest.mark.parametrize("header", [None, "", "Bearer", "Basic dXNlcjpwYXNz", "Bearer a.b.c"])
def test_context_is_anonymous_without_usable_token(token_service, header):
    context = build_request_context(make_request(header), token_service)

    assert context == RequestContext()
    assert not context.is_authenticated


def test_context_swallows_unexpected_errors(token_service, caplog):
    tokens = MagicMock(wraps=token_service)
    tokens.extract_from_header.return_value = "aaa.bbb.ccc"
    tokens.verify.side_effect = RuntimeError("boom")

    context = build_request_context(make_request("Bearer aaa.bbb.ccc"), tokens)

    assert context == RequestContext()
    assert "Context creation error" in caplog.text


def test_gate_rejects_anonymous_context():
    with pytest.raises(UnauthenticatedError):
        get_current_user(RequestContext())


def test_gate_returns_user():
    user = AuthenticatedUser(id=1, email="user@example.com")
    assert get_current_user(RequestContext(user=user, token="t")) is user


def test_ensure_owner():
    transaction = Transaction(id=5, user_id=1)

    ensure_owner(transaction, 1)
    with pytest.raises(ForbiddenError):
        ensure_owner(transaction, 2)
