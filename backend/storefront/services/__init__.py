"""Service layer public API.

Callers import from :mod:`storefront.services` without knowing the internal
structure.

Re-exports
----------
- Base primitives (from ``storefront.services._shared.base``)
    * :class:`BaseService`
    * :class:`ServiceContext`

- Shared DTOs (from ``storefront.services._shared.dto``)
    * :class:`AccountSummary`, :class:`StoreSummary`, :class:`OtpDispatchOut`

- Passcodes (from ``storefront.services.otp``)
    * :class:`OtpService`, :class:`OtpPolicy`, :class:`OtpOutcome`

- Tokens (from ``storefront.services.tokens``)
    * :class:`TokenService`, :class:`TokenConfig`, :class:`TokenPair`

- Registration (from ``storefront.services.registration``)
    * :class:`RegistrationService`
    * DTOs: :class:`RegistrationIn`, :class:`VerifyEmailIn`,
      :class:`RegistrationOut`, :class:`VerificationOut`

- Sessions (from ``storefront.services.session``)
    * :class:`SessionService`
    * DTOs: :class:`LoginIn`, :class:`LogoutIn`, :class:`RefreshIn`,
      :class:`PasswordResetIn`, :class:`LoginOut`, :class:`PasswordResetOut`
"""

from __future__ import annotations

# Base primitives (service base + request-scoped context)
from ._shared.base import BaseService, ServiceContext
from ._shared.dto import AccountSummary, OtpDispatchOut, StoreSummary
from .otp.dto import OtpOutcome, OtpPolicy
from .otp.service import OtpService
from .registration.dto import RegistrationIn, RegistrationOut, VerificationOut, VerifyEmailIn
from .registration.service import RegistrationService
from .session.dto import (
    LoginIn,
    LoginOut,
    LogoutIn,
    PasswordResetIn,
    PasswordResetOut,
    RefreshIn,
)
from .session.service import SessionService
from .tokens.dto import TokenConfig, TokenPair, VerifiedToken
from .tokens.service import TokenService

__all__ = [
    # Base
    "BaseService",
    "ServiceContext",
    # Shared DTOs
    "AccountSummary",
    "StoreSummary",
    "OtpDispatchOut",
    # Passcodes
    "OtpService",
    "OtpPolicy",
    "OtpOutcome",
    # Tokens
    "TokenService",
    "TokenConfig",
    "TokenPair",
    "VerifiedToken",
    # Registration
    "RegistrationService",
    "RegistrationIn",
    "VerifyEmailIn",
    "RegistrationOut",
    "VerificationOut",
    # Sessions
    "SessionService",
    "LoginIn",
    "LogoutIn",
    "RefreshIn",
    "PasswordResetIn",
    "LoginOut",
    "PasswordResetOut",
]
