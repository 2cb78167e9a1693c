"""Session lifecycle: login, logout, refresh, password reset and profile."""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from storefront.core.security import default_hasher
from storefront.models.account import Account, AccountStatus, Role
from storefront.models.otp import OtpPurpose
from storefront.services._shared.base import BaseService, ServiceContext
from storefront.services._shared.dto import AccountSummary, OtpDispatchOut
from storefront.services._shared.errors import (
    AccountInactiveError,
    AuthenticationError,
    EmailDeliveryError,
    EmailNotVerifiedError,
    InvalidInputError,
    TokenInvalidError,
    UserNotFoundError,
)
from storefront.services._shared.ports import EmailSender, TokenKind
from storefront.services.otp.dto import IssuedOtp
from storefront.services.otp.service import OtpService
from storefront.services.session.dto import (
    LoginIn,
    LoginOut,
    LogoutIn,
    PasswordResetIn,
    PasswordResetOut,
    RefreshIn,
)
from storefront.services.tokens.dto import TokenPair
from storefront.services.tokens.service import TokenService
from storefront.uow.base import UnitOfWork

log = logging.getLogger(__name__)


class SessionService(BaseService):
    """
    Authentication lifecycle service.

    Issues token pairs through :class:`TokenService` and keeps every refresh
    session registered in the refresh store, so logout, rotation and password
    reset can revoke them before their cryptographic expiry.

    Refresh uses rotation with invalidation: the presented refresh record is
    deleted before the new pair is minted, so a refresh token works once.
    """

    def __init__(
        self,
        *,
        tokens: TokenService,
        otp: OtpService,
        email_sender: EmailSender,
        ctx: ServiceContext | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param tokens: Token minting/verification/revocation.
        :param otp: Passcode engine for password resets.
        :param email_sender: Outbound passcode delivery.
        :param ctx: Optional request-scoped context.
        :param clock: Aware UTC clock.
        """
        super().__init__(ctx=ctx, clock=clock)
        self.tokens = tokens
        self.otp = otp
        self.email_sender = email_sender

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> LoginOut:
        """
        Authenticate credentials and issue a fresh token pair.

        Unknown email and wrong password raise the same error.

        :raises AuthenticationError: Bad credentials.
        :raises EmailNotVerifiedError: Email verification still pending.
        :raises AccountInactiveError: Status is not ``ACTIVE``.
        """
        with self.ro_uow() as uow:
            account = uow.accounts.get_by_email(dto.email)
            if account is None:
                default_hasher.verify_dummy(dto.password)
            if account is None or not account.verify_password(dto.password):
                log.warning("Login failed", extra=self.audit_extra(reason="AUTH_FAILED"))
                raise AuthenticationError()
            if not account.is_email_verified:
                log.warning(
                    "Login refused",
                    extra=self.audit_extra(account_id=account.id, reason="EMAIL_NOT_VERIFIED"),
                )
                raise EmailNotVerifiedError()
            if account.status != AccountStatus.ACTIVE:
                log.warning(
                    "Login refused",
                    extra=self.audit_extra(account_id=account.id, reason="ACCOUNT_INACTIVE"),
                )
                raise AccountInactiveError()

            store = uow.stores.get_by_owner(account.id) if self._is_admin(account) else None
            summary = AccountSummary.from_model(account, store)

        pair = self.tokens.issue_and_register(
            summary.id, summary.role, summary.store.id if summary.store else None
        )
        log.info("Login succeeded", extra=self.audit_extra(account_id=summary.id))
        return LoginOut(account=summary, tokens=pair)

    @staticmethod
    def _is_admin(account: Account) -> bool:
        return account.effective_role is Role.ADMIN

    def _store_id(self, uow: UnitOfWork, account: Account) -> str | None:
        if not self._is_admin(account):
            return None
        store = uow.stores.get_by_owner(account.id)
        return store.id if store is not None else None

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        End the refresh session and, when given, deny the caller's access token.

        Logout is not idempotent: a second call with the same refresh token
        finds no record and fails.

        :raises InvalidInputError: Empty refresh token.
        :raises TokenInvalidError: Unknown, already revoked or foreign token.
        :raises TokenExpiredError: Refresh token past its expiry.
        """
        if not dto.refresh_token or not dto.refresh_token.strip():
            raise InvalidInputError("Refresh token is required.")

        verified = self.tokens.verify(dto.refresh_token, TokenKind.REFRESH)
        if not self.tokens.revoke(verified.jti):
            raise TokenInvalidError()

        if dto.access_jti and dto.access_expires_at is not None:
            self.tokens.blacklist_access(dto.access_jti, dto.access_expires_at)

        log.info("Logged out", extra=self.audit_extra(account_id=verified.account_id))

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh(self, dto: RefreshIn) -> TokenPair:
        """
        Exchange a refresh token for a brand-new pair.

        The presented record is deleted first; concurrent exchanges of the
        same token therefore succeed at most once.

        :raises TokenInvalidError: Unknown or already used refresh token.
        :raises UserNotFoundError: The account is gone (session revoked).
        :raises AccountInactiveError: The account is no longer ``ACTIVE`` (session revoked).
        """
        verified = self.tokens.verify(dto.refresh_token, TokenKind.REFRESH)
        if not self.tokens.revoke(verified.jti):
            raise TokenInvalidError()

        with self.ro_uow() as uow:
            account = uow.accounts.get_active(verified.account_id)
            if account is None:
                log.warning(
                    "Refresh for missing account", extra={"account_id": verified.account_id}
                )
                raise UserNotFoundError()
            if account.status != AccountStatus.ACTIVE:
                log.warning(
                    "Refresh refused",
                    extra={"account_id": account.id, "reason": "ACCOUNT_INACTIVE"},
                )
                raise AccountInactiveError()
            role = account.effective_role.value
            store_id = self._store_id(uow, account)

        pair = self.tokens.issue_and_register(verified.account_id, role, store_id, fresh=False)
        log.info("Session refreshed", extra={"account_id": verified.account_id})
        return pair

    # ------------------------------------------------------------------ #
    # Password reset
    # ------------------------------------------------------------------ #

    def request_password_reset(self, email: str) -> OtpDispatchOut:
        """
        Issue and send a ``PASSWORD_RESET`` passcode to active accounts.

        The response has the same shape whether or not the account exists,
        and delivery failures are only logged, so callers learn nothing about
        registered addresses.
        """
        normalized = email.lower().strip()
        issued: IssuedOtp | None = None
        with self.rw_uow() as uow:
            account = uow.accounts.get_by_email(normalized)
            if account is not None and account.status == AccountStatus.ACTIVE:
                issued = self.otp.issue(uow, account.id, OtpPurpose.PASSWORD_RESET)

        if issued is not None:
            try:
                self.email_sender.send_otp(
                    email=normalized,
                    code=issued.code,
                    purpose=OtpPurpose.PASSWORD_RESET,
                    expires_in_minutes=issued.expires_in_minutes,
                )
            except EmailDeliveryError as exc:
                log.warning(
                    "Password reset passcode delivery failed: %s",
                    exc.message,
                    extra={"reason": exc.code},
                )
        return OtpDispatchOut(email=normalized, expires_in_minutes=self.otp.policy.expiry_minutes)

    def reset_password(self, dto: PasswordResetIn) -> PasswordResetOut:
        """
        Verify a ``PASSWORD_RESET`` passcode and store the new password.

        Every refresh session of the account is revoked afterwards.

        :raises UserNotFoundError: No account for the email.
        :raises AccountInactiveError: Status is not ``ACTIVE``.
        :raises OtpError: Any failed passcode outcome (attempt already committed).
        """
        with self.rw_uow() as uow:
            account = uow.accounts.get_by_email(dto.email)
            if account is None:
                raise UserNotFoundError()
            if account.status != AccountStatus.ACTIVE:
                raise AccountInactiveError()

            account_id, email = account.id, account.email
            outcome = self.otp.verify(uow, account_id, OtpPurpose.PASSWORD_RESET, dto.otp_code)
            if outcome.ok:
                uow.accounts.set_password(account, dto.new_password)
            reset_at = self.now()

        if not outcome.ok:
            raise outcome.to_error()

        revoked = self.tokens.revoke_all_for_account(account_id)
        log.info(
            "Password reset (sessions revoked=%d)",
            revoked,
            extra=self.audit_extra(account_id=account_id),
        )
        return PasswordResetOut(email=email, reset_at=reset_at, sessions_revoked=revoked)

    # ------------------------------------------------------------------ #
    # Profile
    # ------------------------------------------------------------------ #

    def get_profile(self, account_id: str) -> AccountSummary:
        """
        :raises UserNotFoundError: The account is missing or soft-deleted.
        """
        with self.ro_uow() as uow:
            account = uow.accounts.get_active(account_id)
            if account is None:
                raise UserNotFoundError()
            store = uow.stores.get_by_owner(account.id)
            return AccountSummary.from_model(account, store)
