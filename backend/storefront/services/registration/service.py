"""
RegistrationService
===================

Process-level service for self-registration:

- Creates ``Account`` (``PENDING``) + ``RoleAssignment`` + optional ``Store``
  + the first ``EMAIL_VERIFICATION`` challenge in a single transaction.
- Delivers the passcode only after commit; a delivery failure is logged and
  leaves the account in place so the resend path can retry.
- Verifies the email passcode and promotes the account to ``ACTIVE``.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime

from sqlalchemy.exc import IntegrityError

from storefront.models.account import Account, AccountStatus, Role
from storefront.models.otp import OtpPurpose
from storefront.models.store import Store
from storefront.services._shared.base import BaseService, ServiceContext
from storefront.services._shared.dto import AccountSummary, OtpDispatchOut
from storefront.services._shared.errors import (
    EmailAlreadyVerifiedError,
    EmailDeliveryError,
    EmailExistsError,
    InvalidAccountStatusError,
    InvalidInputError,
    StoreNameExistsError,
    UserNotFoundError,
    violates,
)
from storefront.services._shared.ports import EmailSender
from storefront.services.otp.dto import IssuedOtp
from storefront.services.otp.service import OtpService
from storefront.services.registration.dto import (
    RegistrationIn,
    RegistrationOut,
    VerificationOut,
    VerifyEmailIn,
)
from storefront.services.registration.naming import StoreNameGenerator
from storefront.uow.base import UnitOfWork

log = logging.getLogger(__name__)


class RegistrationService(BaseService):
    """Orchestrates account registration and email verification."""

    def __init__(
        self,
        *,
        otp: OtpService,
        email_sender: EmailSender,
        naming: StoreNameGenerator | None = None,
        ctx: ServiceContext | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        """
        :param otp: Passcode engine.
        :param email_sender: Outbound passcode delivery.
        :param naming: Store-name collaborator.
        :param ctx: Optional request-scoped context.
        :param clock: Aware UTC clock.
        """
        super().__init__(ctx=ctx, clock=clock)
        self.otp = otp
        self.email_sender = email_sender
        self.naming = naming or StoreNameGenerator()

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def register(self, dto: RegistrationIn) -> RegistrationOut:
        """
        Register an account and issue its email verification passcode.

        :param dto: Registration input.
        :type dto: :class:`RegistrationIn`
        :returns: Created account summary.
        :rtype: :class:`RegistrationOut`
        :raises EmailExistsError: A non-deleted account already uses the email.
        :raises StoreNameExistsError: The requested store name is taken.
        :raises InvalidInputError: The requested store name is blank.
        """
        email = dto.email.lower().strip()

        with self.ro_uow() as uow:
            if uow.accounts.exists_by_email(email):
                raise EmailExistsError()

        try:
            with self.rw_uow() as uow:
                # Re-check inside the write transaction; the unique index still backs it.
                if uow.accounts.exists_by_email(email):
                    raise EmailExistsError()

                account = Account(
                    username=dto.username,
                    email=email,
                    status=AccountStatus.PENDING,
                )
                account.password = dto.password
                uow.accounts.add(account)

                store = None
                role = Role.CUSTOMER
                if dto.create_store:
                    store = self._create_store(uow, account, dto)
                    role = Role.ADMIN

                uow.accounts.assign_role(account, role)
                issued = self.otp.issue(uow, account.id, OtpPurpose.EMAIL_VERIFICATION)
                summary = AccountSummary.from_model(account, store)
        except IntegrityError as exc:
            if violates(exc, "uq_accounts_email"):
                raise EmailExistsError() from exc
            if violates(exc, "uq_stores_name"):
                raise StoreNameExistsError() from exc
            raise

        log.info(
            "Registered account",
            extra=self.audit_extra(account_id=summary.id, outcome=summary.role),
        )
        delivered = self._deliver_after_commit(summary.email, issued)
        return RegistrationOut(
            account=summary,
            otp_expires_in_minutes=issued.expires_in_minutes,
            otp_delivered=delivered,
        )

    def _create_store(self, uow: UnitOfWork, account: Account, dto: RegistrationIn) -> Store:
        if dto.store_name:
            name = self.naming.normalize(dto.store_name)
            if not name:
                raise InvalidInputError("Store name must not be blank.")
            if uow.stores.name_exists(name):
                raise StoreNameExistsError()
        else:
            name = self.naming.generate_unique_name(dto.username, uow.stores.name_exists)

        store = Store(
            owner_id=account.id,
            name=name,
            created_by=account.id,
            updated_by=account.id,
        )
        return uow.stores.add(store)

    def _deliver_after_commit(self, email: str, issued: IssuedOtp) -> bool:
        try:
            self.email_sender.send_otp(
                email=email,
                code=issued.code,
                purpose=OtpPurpose.EMAIL_VERIFICATION,
                expires_in_minutes=issued.expires_in_minutes,
            )
        except EmailDeliveryError as exc:
            log.warning(
                "Verification passcode delivery failed; account kept for resend: %s",
                exc.message,
                extra={"reason": exc.code},
            )
            return False
        return True

    # ------------------------------------------------------------------ #
    # Email verification
    # ------------------------------------------------------------------ #

    def verify_email(self, dto: VerifyEmailIn) -> VerificationOut:
        """
        Check an email verification passcode and activate the account.

        The attempt counter is committed whatever the outcome; the matching
        passcode error is raised only afterwards.

        :raises UserNotFoundError: No account for the email.
        :raises OtpError: Any failed passcode outcome.
        """
        verified: VerificationOut | None = None
        with self.rw_uow() as uow:
            account = uow.accounts.get_by_email(dto.email)
            if account is None:
                raise UserNotFoundError()

            outcome = self.otp.verify(
                uow, account.id, OtpPurpose.EMAIL_VERIFICATION, dto.otp_code
            )
            if outcome.ok:
                now = self.now()
                uow.accounts.mark_email_verified(account, now)
                verified = VerificationOut(
                    account_id=account.id, email=account.email, verified_at=now
                )

        if verified is None:
            raise outcome.to_error()

        log.info("Email verified", extra=self.audit_extra(account_id=verified.account_id))
        return verified

    def resend_verification(self, email: str) -> OtpDispatchOut:
        """
        Supersede the active verification passcode and send a fresh one.

        Delivery is the purpose of this call, so a delivery failure propagates.

        :raises UserNotFoundError: No account for the email.
        :raises EmailAlreadyVerifiedError: Nothing left to verify.
        :raises InvalidAccountStatusError: The account is not ``PENDING``.
        :raises EmailDeliveryError: The email collaborator failed.
        """
        with self.rw_uow() as uow:
            account = uow.accounts.get_by_email(email)
            if account is None:
                raise UserNotFoundError()
            if account.is_email_verified:
                raise EmailAlreadyVerifiedError()
            if account.status != AccountStatus.PENDING:
                raise InvalidAccountStatusError()
            issued = self.otp.issue(uow, account.id, OtpPurpose.EMAIL_VERIFICATION)
            address = account.email

        self.email_sender.send_otp(
            email=address,
            code=issued.code,
            purpose=OtpPurpose.EMAIL_VERIFICATION,
            expires_in_minutes=issued.expires_in_minutes,
        )
        return OtpDispatchOut(email=address, expires_in_minutes=issued.expires_in_minutes)
