"""Unit tests for the Account and RoleAssignment models."""

from __future__ import annotations

import pytest
from sqlalchemy.exc import IntegrityError
from storefront.models.account import Account, AccountStatus, Role, RoleAssignment
from storefront.models.base import utcnow
from tests.factories.account import AccountFactory


class TestAccountModel:
    def test_defaults_to_pending(self, session):
        account = Account(username="neo", email="neo@example.com")
        account.password = "Str0ng!Pass"
        session.add(account)
        session.flush()

        assert account.id and len(account.id) == 36
        assert account.status is AccountStatus.PENDING
        assert account.is_email_verified is False
        assert account.created_at is not None

    def test_email_is_normalized(self):
        account = Account(username="  trinity ", email="  Trinity@Example.COM ")
        assert account.email == "trinity@example.com"
        assert account.username == "trinity"

    @pytest.mark.parametrize("email", ["", "no-at-sign", "user@localhost"])
    def test_email_validation(self, email):
        with pytest.raises(ValueError):
            Account(username="x", email=email)

    def test_password_is_write_only_and_hashed(self):
        account = Account(username="morpheus", email="m@example.com")
        account.password = "Red!Pill9"

        assert account.password_hash.startswith("$argon2id$")
        assert account.verify_password("Red!Pill9")
        assert not account.verify_password("Blue!Pill9")
        with pytest.raises(AttributeError):
            _ = account.password

    def test_effective_role_prefers_admin(self, session):
        account = AccountFactory()
        assert account.effective_role is Role.CUSTOMER

        account.roles.append(RoleAssignment(role=Role.ADMIN))
        session.flush()
        assert account.role_names == {Role.ADMIN, Role.CUSTOMER}
        assert account.effective_role is Role.ADMIN

    def test_role_is_unique_per_account(self, session):
        account = AccountFactory(role=Role.ADMIN)
        account.roles.append(RoleAssignment(role=Role.ADMIN))
        with pytest.raises(IntegrityError):
            session.flush()

    def test_email_unique_among_live_accounts(self, session):
        AccountFactory(email="dup@example.com")
        with pytest.raises(IntegrityError):
            AccountFactory(email="dup@example.com")

    def test_soft_deleted_email_can_be_reused(self, session):
        first = AccountFactory(email="reuse@example.com")
        first.deleted_at = utcnow()
        session.flush()

        second = AccountFactory(email="reuse@example.com")
        assert second.id != first.id
        assert first.is_deleted and not second.is_deleted
