"""
DTOs for RegistrationService.

Contracts for the self-registration flow that creates ``Account`` + role +
optional ``Store`` + the first email verification passcode atomically.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront.services._shared.dto import AccountSummary

# --------------------------------------------------------------------------- #
# Input
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegistrationIn:
    """
    Input payload for the registration process.

    :param username: Public handle.
    :type username: str
    :param email: Login email (normalized to lowercase+trim).
    :type email: str
    :param password: Raw password (the model setter hashes it).
    :type password: str
    :param create_store: Register as a store administrator.
    :type create_store: bool
    :param store_name: Requested store name; derived from ``username`` when omitted.
    :type store_name: str | None
    """

    username: str
    email: str
    password: str
    create_store: bool = False
    store_name: str | None = None


@dataclass(frozen=True, slots=True)
class VerifyEmailIn:
    email: str
    otp_code: str


# --------------------------------------------------------------------------- #
# Output
# --------------------------------------------------------------------------- #


@dataclass(frozen=True, slots=True)
class RegistrationOut:
    """
    Output summary for the registration process.

    :param account: Created account (``PENDING``), with its store when one was created.
    :type account: :class:`AccountSummary`
    :param otp_expires_in_minutes: Validity of the passcode that was issued.
    :type otp_expires_in_minutes: int
    :param otp_delivered: ``False`` when the email collaborator failed after commit.
    :type otp_delivered: bool
    """

    account: AccountSummary
    otp_expires_in_minutes: int
    otp_delivered: bool = True


@dataclass(frozen=True, slots=True)
class VerificationOut:
    account_id: str
    email: str
    verified_at: datetime

    @property
    def is_verified(self) -> bool:
        return True
