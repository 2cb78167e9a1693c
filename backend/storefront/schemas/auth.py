"""Authentication-related Marshmallow schemas."""

from __future__ import annotations

import re

from marshmallow import Schema, ValidationError, fields, validate

PASSWORD_SPECIALS = "@$!%*?&#"
_PASSWORD_RULE = re.compile(r"^(?=.*[A-Z])(?=.*\d)(?=.*[@$!%*?&#])\S+$")


def validate_password_strength(value: str) -> None:
    """Require an uppercase letter, a digit and a special character, with no whitespace."""
    if not _PASSWORD_RULE.match(value or ""):
        raise ValidationError(
            "Password must contain at least one uppercase letter, one number, "
            f"one special character ({PASSWORD_SPECIALS}) and no spaces."
        )


def _email_field() -> fields.Email:
    return fields.Email(required=True, validate=validate.Length(max=254))


def _otp_field() -> fields.String:
    return fields.String(
        required=True,
        validate=validate.Regexp(r"^\d{6}$", error="OTP code must be exactly 6 digits."),
    )


def _new_password_field() -> fields.String:
    return fields.String(
        required=True,
        validate=[validate.Length(min=8, max=128), validate_password_strength],
    )


# --------------------------------------------------------------------------- #
# Requests
# --------------------------------------------------------------------------- #


class RegisterSchema(Schema):
    """Input payload for account registration."""

    username = fields.String(
        required=True,
        validate=[
            validate.Length(min=2, max=20),
            validate.Regexp(
                r"^[A-Za-z0-9_]+$",
                error="Username can only contain letters, numbers, and underscores.",
            ),
        ],
    )
    email = _email_field()
    password = _new_password_field()
    create_store = fields.Boolean(load_default=False)
    store_name = fields.String(
        load_default=None,
        validate=[
            validate.Length(min=2, max=255),
            validate.Regexp(r"\s*\S", error="Store name must not be blank."),
        ],
    )


class VerifyOtpSchema(Schema):
    email = _email_field()
    otp_code = _otp_field()


class EmailOnlySchema(Schema):
    """Payload of resend-otp and forgot-password."""

    email = _email_field()


class LoginSchema(Schema):
    """Input payload for authenticating a user."""

    email = _email_field()
    password = fields.String(required=True, validate=validate.Length(min=1, max=128))


class RefreshTokenSchema(Schema):
    refresh_token = fields.String(required=True, validate=validate.Length(min=1))


class ResetPasswordSchema(Schema):
    email = _email_field()
    otp_code = _otp_field()
    new_password = _new_password_field()


# --------------------------------------------------------------------------- #
# Responses
# --------------------------------------------------------------------------- #


class StoreSchema(Schema):
    id = fields.String()
    name = fields.String()
    description = fields.String(allow_none=True)


class AccountSchema(Schema):
    """Public representation of an account."""

    id = fields.String()
    username = fields.String()
    email = fields.Email()
    status = fields.String()
    role = fields.String()
    roles = fields.List(fields.String())
    is_verified = fields.Boolean()
    email_verified_at = fields.DateTime(allow_none=True)
    created_at = fields.DateTime(allow_none=True)
    store = fields.Nested(StoreSchema, allow_none=True)


class TokenPairSchema(Schema):
    access_token = fields.String()
    refresh_token = fields.String()
    token_type = fields.String()
    access_expires_in = fields.Integer()
    refresh_expires_in = fields.Integer()


class VerificationSchema(Schema):
    account_id = fields.String()
    email = fields.Email()
    is_verified = fields.Boolean()
    verified_at = fields.DateTime()


class OtpDispatchSchema(Schema):
    email = fields.Email()
    expires_in_minutes = fields.Integer()


class PasswordResetSchema(Schema):
    email = fields.Email()
    reset_at = fields.DateTime()
    message = fields.Constant("Password has been reset.")
