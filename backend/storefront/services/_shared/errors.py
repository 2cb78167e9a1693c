"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and never import Flask or HTTP
helpers. Each carries a stable machine-readable ``code``; the translation to
RFC 7807 responses (status codes included) lives in
``storefront/core/errors.py``.
"""

from __future__ import annotations

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_accounts_email').

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.

    Notes
    -----
    PostgreSQL reports the constraint name in the message. SQLite only
    reports the columns (``UNIQUE constraint failed: accounts.email``), so the
    ``uq_<table>_<column>`` naming convention is decoded as a fallback.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    name = constraint_name.lower()
    if name in message:
        return True
    if name.startswith("uq_"):
        table_column = name[3:]
        table, _, column = table_column.rpartition("_")
        return bool(table) and f"{table}.{column}" in message
    return False


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - ``code`` is stable and returned verbatim to clients.
    - The API layer maps each subclass to an HTTP status.
    """

    code = "SERVICE_ERROR"
    default_message = "The request could not be processed."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFoundError(ServiceError):
    code = "NOT_FOUND"
    default_message = "Resource not found."


class ConflictError(ServiceError):
    code = "CONFLICT"
    default_message = "Resource conflict."


# --------------------------------------------------------------------------- #
# Accounts & credentials
# --------------------------------------------------------------------------- #


class AuthenticationError(ServiceError):
    """Bad credentials. Identical for unknown email and wrong password."""

    code = "AUTH_FAILED"
    default_message = "Invalid email or password."


class EmailNotVerifiedError(ServiceError):
    code = "EMAIL_NOT_VERIFIED"
    default_message = "Email address has not been verified."


class AccountInactiveError(ServiceError):
    code = "ACCOUNT_INACTIVE"
    default_message = "Account is not active."


class EmailExistsError(ConflictError):
    code = "EMAIL_EXISTS"
    default_message = "An account with this email already exists."


class StoreNameExistsError(ConflictError):
    code = "STORE_NAME_EXISTS"
    default_message = "A store with this name already exists."


class UserNotFoundError(NotFoundError):
    code = "USER_NOT_FOUND"
    default_message = "User not found."


class EmailAlreadyVerifiedError(ServiceError):
    code = "EMAIL_ALREADY_VERIFIED"
    default_message = "Email address is already verified."


class InvalidAccountStatusError(ServiceError):
    code = "INVALID_ACCOUNT_STATUS"
    default_message = "Account status does not allow this operation."


class InvalidInputError(ServiceError):
    code = "INVALID_INPUT"
    default_message = "Invalid input."


# --------------------------------------------------------------------------- #
# One-time passcodes
# --------------------------------------------------------------------------- #


class OtpError(ServiceError):
    """Base class for passcode verification failures."""

    code = "OTP_ERROR"


class OtpNotFoundError(OtpError, NotFoundError):
    code = "OTP_NOT_FOUND"
    default_message = "No passcode has been issued for this request."


class OtpAlreadyUsedError(OtpError):
    code = "OTP_ALREADY_USED"
    default_message = "This passcode has already been used."


class OtpExpiredError(OtpError):
    code = "OTP_EXPIRED"
    default_message = "This passcode has expired."


class OtpMaxAttemptsError(OtpError):
    code = "OTP_MAX_ATTEMPTS"
    default_message = "Too many attempts. Request a new passcode."


class InvalidOtpError(OtpError):
    code = "INVALID_OTP"
    default_message = "Invalid passcode."


# --------------------------------------------------------------------------- #
# Tokens
# --------------------------------------------------------------------------- #


class TokenError(ServiceError):
    """Base class for token verification failures."""

    code = "TOKEN_ERROR"


class TokenExpiredError(TokenError):
    code = "TOKEN_EXPIRED"
    default_message = "Token has expired."


class TokenInvalidError(TokenError):
    code = "TOKEN_INVALID"
    default_message = "Token is invalid."


class TokenRevokedError(TokenError):
    code = "TOKEN_REVOKED"
    default_message = "Token has been revoked."


# --------------------------------------------------------------------------- #
# Collaborators
# --------------------------------------------------------------------------- #


class EmailDeliveryError(ServiceError):
    """Raised by email senders when the provider rejects or cannot be reached."""

    code = "EMAIL_DELIVERY_FAILED"
    default_message = "The email could not be delivered."
