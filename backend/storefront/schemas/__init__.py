"""Convenience exports for application schemas."""

from __future__ import annotations

from .auth import (
    AccountSchema,
    EmailOnlySchema,
    LoginSchema,
    OtpDispatchSchema,
    PasswordResetSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
    StoreSchema,
    TokenPairSchema,
    VerificationSchema,
    VerifyOtpSchema,
)

__all__ = [
    "AccountSchema",
    "EmailOnlySchema",
    "LoginSchema",
    "OtpDispatchSchema",
    "PasswordResetSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "ResetPasswordSchema",
    "StoreSchema",
    "TokenPairSchema",
    "VerificationSchema",
    "VerifyOtpSchema",
]
