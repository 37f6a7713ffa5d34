"""Tests for the user and transaction stores."""

from datetime import date
from decimal import Decimal

import pytest

from expense_api.errors import DuplicateEmailError
from expense_api.models.enums import TransactionType
from expense_api.repositories.transactions import TransactionRepository
from expense_api.repositories.users import UserRepository
from expense_api.schemas.transaction import TransactionFilter
from expense_api.services.auth import PasswordHasher


@pytest.fixture
def user(db):
    return UserRepository(db).create("owner@example.com", "not-a-real-hash")


@pytest.fixture
def repository(db):
    return TransactionRepository(db)


class TestUserRepository:
    def test_find_by_email_ignores_case(self, db, user):
        assert UserRepository(db).find_by_email("OWNER@Example.com").id == user.id

    def test_create_stores_lowercase_email(self, db):
        created = UserRepository(db).create("Someone@Example.com", "hash")
        assert created.email == "someone@example.com"

    def test_create_duplicate_raises(self, db, user):
        with pytest.raises(DuplicateEmailError):
            UserRepository(db).create("owner@example.com", "hash")

    def test_find_by_id_missing(self, db):
        assert UserRepository(db).find_by_id(123456) is None


class TestTransactionRepository:
    def test_update_returns_none_when_missing(self, repository, user):
        assert repository.update(98765, user.id, {"amount": Decimal("1.00")}) is None

    def test_update_rejects_unknown_fields(self, repository, user):
        with pytest.raises(ValueError):
            repository.update(1, user.id, {"user_id": 2})

    def test_update_scoped_to_owner(self, repository, user):
        transaction = repository.create(user.id, TransactionType.EXPENSE, Decimal("5.00"), date(2025, 1, 1))
        assert repository.update(transaction.id, user.id + 1, {"amount": Decimal("6.00")}) is None

    def test_delete_returns_false_when_missing(self, repository):
        assert repository.delete(98765) is False

    def test_delete_returns_true_when_removed(self, repository, user):
        transaction = repository.create(user.id, TransactionType.INCOME, Decimal("5.00"), date(2025, 1, 1))
        assert repository.delete(transaction.id) is True
        assert repository.find_by_id(transaction.id) is None

    def test_find_by_owner_filters(self, repository, user):
        repository.create(user.id, TransactionType.INCOME, Decimal("1.00"), date(2025, 1, 1))
        repository.create(user.id, TransactionType.EXPENSE, Decimal("2.00"), date(2025, 1, 2))

        found = repository.find_by_owner(user.id, TransactionFilter(type=TransactionType.INCOME))

        assert [t.amount for t in found] == [Decimal("1.00")]

    def test_summary_is_zero_when_empty(self, repository, user):
        summary = repository.summary(user.id)

        assert summary.total_income == Decimal("0.00")
        assert summary.total_expense == Decimal("0.00")
        assert summary.balance == Decimal("0.00")
        assert summary.transaction_count == 0

    def test_summary_balance_and_count(self, repository, user):
        amounts = [
            (TransactionType.INCOME, "0.10"),
            (TransactionType.INCOME, "0.20"),
            (TransactionType.EXPENSE, "0.05"),
        ]
        for kind, amount in amounts:
            repository.create(user.id, kind, Decimal(amount), date(2025, 1, 1))

        summary = repository.summary(user.id)

        assert summary.total_income == Decimal("0.30")
        assert summary.total_expense == Decimal("0.05")
        assert summary.balance == summary.total_income - summary.total_expense
        assert summary.transaction_count == len(amounts)


class TestPasswordHasher:
    def test_hash_and_verify(self):
        hasher = PasswordHasher(rounds=4)
        hashed = hasher.hash("GoodPass123")

        assert hashed != "GoodPass123"
        assert hasher.verify("GoodPass123", hashed)
        assert not hasher.verify("BadPass123", hashed)

    def test_uses_configured_work_factor(self):
        hashed = PasswordHasher(rounds=5).hash("GoodPass123")
        assert hashed.split("$")[2] == "05"

    def test_malformed_hash_does_not_verify(self):
        assert PasswordHasher(rounds=4).verify("GoodPass123", "not-a-real-hash") is False
