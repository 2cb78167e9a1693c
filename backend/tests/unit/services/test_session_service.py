"""Unit tests for SessionService: login, logout, refresh, password reset, profile."""

from __future__ import annotations

import logging

import pytest
from storefront.core.security import default_hasher
from storefront.models.account import Account, AccountStatus, Role
from storefront.models.otp import OtpPurpose
from storefront.repositories.account import AccountRepository
from storefront.services._shared.base import ServiceContext
from storefront.services._shared.errors import (
    AccountInactiveError,
    AuthenticationError,
    EmailNotVerifiedError,
    InvalidInputError,
    InvalidOtpError,
    OtpNotFoundError,
    TokenInvalidError,
    TokenRevokedError,
    UserNotFoundError,
)
from storefront.services._shared.ports import InMemoryEmailSender, TokenKind
from storefront.services.session.dto import LoginIn, LogoutIn, PasswordResetIn, RefreshIn
from storefront.services.session.service import SessionService
from tests.factories.account import DEFAULT_PASSWORD, AccountFactory
from tests.factories.otp import DEFAULT_CODE, OtpChallengeFactory
from tests.factories.store import StoreFactory

NEW_PASSWORD = "N3w!Passw0rd"


def _login(service, email, password=DEFAULT_PASSWORD):
    return service.login(LoginIn(email=email, password=password))


class TestLogin:
    def test_success_registers_refresh_session(self, session_service, refresh_store):
        account = AccountFactory(email="ok@example.com")

        out = _login(session_service, "OK@example.com")

        assert out.account.id == account.id
        assert out.account.role == Role.CUSTOMER.value
        assert out.account.store is None
        assert refresh_store.owner_of(out.tokens.refresh_jti) == account.id

    def test_admin_token_carries_store(self, session_service, token_service):
        store = StoreFactory(name="Acme")
        email = store.owner.email

        out = _login(session_service, email)

        assert out.account.role == Role.ADMIN.value
        assert out.account.store.name == "Acme"
        claims = token_service.decode(out.tokens.access_token, TokenKind.ACCESS)
        assert claims.store_id == store.id
        assert claims.role == "ADMIN"
        assert claims.claims["fresh"] is True

    def test_unknown_email_and_wrong_password_look_the_same(self, session_service):
        AccountFactory(email="known@example.com")

        with pytest.raises(AuthenticationError) as unknown:
            _login(session_service, "ghost@example.com")
        with pytest.raises(AuthenticationError) as wrong:
            _login(session_service, "known@example.com", "Wr0ng!Pass")

        assert unknown.value.message == wrong.value.message

    def test_unknown_email_still_spends_a_hash_check(self, session_service, monkeypatch):
        AccountFactory(email="known@example.com")
        checked = []
        monkeypatch.setattr(default_hasher, "verify_dummy", checked.append)

        with pytest.raises(AuthenticationError):
            _login(session_service, "ghost@example.com", "Guess!1234")
        assert checked == ["Guess!1234"]

        with pytest.raises(AuthenticationError):
            _login(session_service, "known@example.com", "Wr0ng!Pass")
        assert checked == ["Guess!1234"]

    def test_failed_login_is_logged_with_client_ip(
        self, token_service, otp_service, outbox, caplog
    ):
        service = SessionService(
            tokens=token_service,
            otp=otp_service,
            email_sender=outbox,
            ctx=ServiceContext(client_ip="203.0.113.7"),
        )

        with caplog.at_level(logging.WARNING), pytest.raises(AuthenticationError):
            _login(service, "ghost@example.com")

        failed = [r for r in caplog.records if r.getMessage() == "Login failed"]
        assert failed
        assert failed[-1].client_ip == "203.0.113.7"
        assert failed[-1].reason == "AUTH_FAILED"

    def test_unverified_email(self, session_service):
        AccountFactory(pending=True, email="pending@example.com")

        with pytest.raises(EmailNotVerifiedError):
            _login(session_service, "pending@example.com")

    def test_verification_is_checked_before_status(self, session_service):
        AccountFactory(pending=True, status=AccountStatus.BLOCKED, email="b@example.com")

        with pytest.raises(EmailNotVerifiedError):
            _login(session_service, "b@example.com")

    @pytest.mark.parametrize("status", [AccountStatus.SUSPENDED, AccountStatus.BLOCKED])
    def test_inactive_account(self, session_service, refresh_store, status):
        account = AccountFactory(status=status, email="inactive@example.com")

        with pytest.raises(AccountInactiveError):
            _login(session_service, "inactive@example.com")
        assert refresh_store.active_jtis(account.id) == []

    def test_soft_deleted_account_cannot_login(self, session_service):
        account = AccountFactory(email="deleted@example.com")
        AccountRepository().delete(account)

        with pytest.raises(AuthenticationError):
            _login(session_service, "deleted@example.com")


class TestLogout:
    def test_logout_ends_session_once(self, session_service, refresh_store):
        AccountFactory(email="out@example.com")
        tokens = _login(session_service, "out@example.com").tokens

        session_service.logout(LogoutIn(refresh_token=tokens.refresh_token))

        assert refresh_store.owner_of(tokens.refresh_jti) is None
        with pytest.raises(TokenInvalidError):
            session_service.logout(LogoutIn(refresh_token=tokens.refresh_token))

    def test_logout_denylists_access_token(self, session_service, token_service):
        AccountFactory(email="out@example.com")
        tokens = _login(session_service, "out@example.com").tokens
        access = token_service.verify(tokens.access_token, TokenKind.ACCESS)

        session_service.logout(
            LogoutIn(
                refresh_token=tokens.refresh_token,
                access_jti=access.jti,
                access_expires_at=access.expires_at,
            )
        )

        with pytest.raises(TokenRevokedError):
            token_service.verify(tokens.access_token, TokenKind.ACCESS)

    @pytest.mark.parametrize("token", ["", "   "])
    def test_blank_refresh_token(self, session_service, token):
        with pytest.raises(InvalidInputError):
            session_service.logout(LogoutIn(refresh_token=token))

    def test_garbage_refresh_token(self, session_service):
        with pytest.raises(TokenInvalidError):
            session_service.logout(LogoutIn(refresh_token="not-a-jwt"))


class TestRefresh:
    def test_rotation_invalidates_presented_token(self, session_service, refresh_store):
        account = AccountFactory(email="r@example.com")
        first = _login(session_service, "r@example.com").tokens

        second = session_service.refresh(RefreshIn(first.refresh_token))

        assert second.refresh_jti != first.refresh_jti
        assert refresh_store.active_jtis(account.id) == [second.refresh_jti]
        with pytest.raises(TokenInvalidError):
            session_service.refresh(RefreshIn(first.refresh_token))

    def test_refreshed_access_token_is_not_fresh(self, session_service, token_service):
        AccountFactory(email="r@example.com")
        first = _login(session_service, "r@example.com").tokens

        second = session_service.refresh(RefreshIn(first.refresh_token))

        claims = token_service.decode(second.access_token, TokenKind.ACCESS).claims
        assert claims["fresh"] is False

    def test_inactive_account_loses_session(self, session_service, session):
        account = AccountFactory(email="r@example.com")
        tokens = _login(session_service, "r@example.com").tokens
        account.status = AccountStatus.SUSPENDED
        session.flush()

        with pytest.raises(AccountInactiveError):
            session_service.refresh(RefreshIn(tokens.refresh_token))
        with pytest.raises(TokenInvalidError):
            session_service.refresh(RefreshIn(tokens.refresh_token))

    def test_deleted_account(self, session_service):
        account = AccountFactory(email="r@example.com")
        tokens = _login(session_service, "r@example.com").tokens
        AccountRepository().delete(account)

        with pytest.raises(UserNotFoundError):
            session_service.refresh(RefreshIn(tokens.refresh_token))

    def test_access_token_is_not_a_refresh_token(self, session_service):
        AccountFactory(email="r@example.com")
        tokens = _login(session_service, "r@example.com").tokens

        with pytest.raises(TokenInvalidError):
            session_service.refresh(RefreshIn(tokens.access_token))


class TestPasswordReset:
    def test_full_reset_flow_revokes_sessions(self, session_service, outbox, refresh_store):
        account = AccountFactory(email="reset@example.com")
        account_id = account.id
        _login(session_service, "reset@example.com")
        _login(session_service, "reset@example.com")

        dispatch = session_service.request_password_reset(" Reset@Example.com ")
        code = outbox.last_code_for("reset@example.com", OtpPurpose.PASSWORD_RESET)
        out = session_service.reset_password(
            PasswordResetIn(email="reset@example.com", otp_code=code, new_password=NEW_PASSWORD)
        )

        assert dispatch.email == "reset@example.com"
        assert dispatch.expires_in_minutes == 15
        assert out.sessions_revoked == 2
        assert refresh_store.active_jtis(account_id) == []
        assert _login(session_service, "reset@example.com", NEW_PASSWORD).account.id == account_id
        with pytest.raises(AuthenticationError):
            _login(session_service, "reset@example.com")

    def test_request_for_unknown_email_looks_normal(self, session_service, outbox):
        dispatch = session_service.request_password_reset("ghost@example.com")

        assert dispatch.email == "ghost@example.com"
        assert dispatch.expires_in_minutes == 15
        assert outbox.outbox == []

    def test_request_for_pending_account_sends_nothing(self, session_service, outbox):
        AccountFactory(pending=True, email="pending@example.com")

        session_service.request_password_reset("pending@example.com")

        assert outbox.outbox == []

    def test_request_swallows_delivery_failure(self, token_service, otp_service):
        AccountFactory(email="reset@example.com")
        service = SessionService(
            tokens=token_service, otp=otp_service, email_sender=InMemoryEmailSender(fail=True)
        )

        dispatch = service.request_password_reset("reset@example.com")
        assert dispatch.email == "reset@example.com"

    def test_wrong_code_keeps_password(self, session_service, outbox, session):
        account = AccountFactory(email="reset@example.com")
        account_id = account.id
        session_service.request_password_reset("reset@example.com")
        code = outbox.last_code_for("reset@example.com", OtpPurpose.PASSWORD_RESET)
        wrong = "000000" if code != "000000" else "111111"

        with pytest.raises(InvalidOtpError):
            session_service.reset_password(
                PasswordResetIn("reset@example.com", wrong, NEW_PASSWORD)
            )

        assert session.get(Account, account_id).verify_password(DEFAULT_PASSWORD)

    def test_verification_code_does_not_reset_password(self, session_service):
        account = AccountFactory(email="mix@example.com")
        OtpChallengeFactory(account_id=account.id, purpose=OtpPurpose.EMAIL_VERIFICATION)

        with pytest.raises(OtpNotFoundError):
            session_service.reset_password(
                PasswordResetIn("mix@example.com", DEFAULT_CODE, NEW_PASSWORD)
            )

    def test_unknown_email(self, session_service):
        with pytest.raises(UserNotFoundError):
            session_service.reset_password(
                PasswordResetIn("ghost@example.com", "123456", NEW_PASSWORD)
            )

    def test_inactive_account(self, session_service, session):
        AccountFactory(status=AccountStatus.SUSPENDED, email="s@example.com")
        session.commit()

        with pytest.raises(AccountInactiveError):
            session_service.reset_password(PasswordResetIn("s@example.com", "123456", NEW_PASSWORD))


class TestProfile:
    def test_admin_profile_includes_store(self, session_service):
        store = StoreFactory(name="Acme")

        profile = session_service.get_profile(store.owner_id)

        assert profile.role == Role.ADMIN.value
        assert profile.roles == ["ADMIN"]
        assert profile.store.name == "Acme"
        assert profile.is_verified

    def test_missing_account(self, session_service):
        with pytest.raises(UserNotFoundError):
            session_service.get_profile("does-not-exist")


class TestLogoutThenRefresh:
    def test_refresh_after_logout_is_invalid(self, session_service):
        AccountFactory(email="gone@example.com")
        tokens = _login(session_service, "gone@example.com").tokens

        session_service.logout(LogoutIn(refresh_token=tokens.refresh_token))

        with pytest.raises(TokenInvalidError):
            session_service.refresh(RefreshIn(tokens.refresh_token))
