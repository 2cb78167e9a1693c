# DTOs for SessionService
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from storefront.services._shared.dto import AccountSummary
from storefront.services.tokens.dto import TokenPair

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: Account email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    :param refresh_token: Encoded refresh JWT.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Encoded refresh JWT whose session ends.
    :type refresh_token: str
    :param access_jti: Identifier of the caller's access token, when authenticated.
    :type access_jti: str | None
    :param access_expires_at: Expiry of that access token (denylist TTL).
    :type access_expires_at: datetime | None
    """

    refresh_token: str
    access_jti: str | None = None
    access_expires_at: datetime | None = None


@dataclass(frozen=True, slots=True)
class PasswordResetIn:
    """
    :param email: Account email.
    :param otp_code: Six-digit ``PASSWORD_RESET`` passcode.
    :param new_password: Raw replacement password.
    """

    email: str
    otp_code: str
    new_password: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginOut:
    account: AccountSummary
    tokens: TokenPair


@dataclass(frozen=True, slots=True)
class PasswordResetOut:
    """
    :param email: Account email.
    :param reset_at: When the new password was stored.
    :param sessions_revoked: Refresh sessions ended by the reset.
    """

    email: str
    reset_at: datetime
    sessions_revoked: int = 0
