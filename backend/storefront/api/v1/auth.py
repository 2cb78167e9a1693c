"""Authentication endpoints using the service layer."""

from __future__ import annotations

from datetime import UTC, datetime

from flask import Blueprint, current_app, request
from flask_jwt_extended import get_jwt, get_jwt_identity, jwt_required, verify_jwt_in_request

from storefront.api.deps import (
    get_registration_service,
    get_session_service,
    json_response,
    timing,
)
from storefront.core.extensions import limiter
from storefront.schemas import (
    AccountSchema,
    EmailOnlySchema,
    LoginSchema,
    OtpDispatchSchema,
    PasswordResetSchema,
    RefreshTokenSchema,
    RegisterSchema,
    ResetPasswordSchema,
    TokenPairSchema,
    VerificationSchema,
    VerifyOtpSchema,
)
from storefront.services.registration.dto import RegistrationIn, VerifyEmailIn
from storefront.services.session.dto import LoginIn, LogoutIn, PasswordResetIn, RefreshIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
verify_otp_schema = VerifyOtpSchema()
email_only_schema = EmailOnlySchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
reset_password_schema = ResetPasswordSchema()

account_schema = AccountSchema()
token_schema = TokenPairSchema()
verification_schema = VerificationSchema()
dispatch_schema = OtpDispatchSchema()
password_reset_schema = PasswordResetSchema()


def _login_rate_limit() -> str:
    return str(current_app.config.get("AUTH_LOGIN_RATE_LIMIT", "5 per minute"))


def _body() -> dict:
    return request.get_json(silent=True) or {}


@bp.post("/register")
@timing
def register():
    """Register an account in ``PENDING`` state and send its passcode."""

    data = register_schema.load(_body())
    result = get_registration_service().register(RegistrationIn(**data))
    body = {"data": account_schema.dump(result.account)}
    return json_response(body, status=201)


@bp.post("/verify-otp")
@limiter.limit(_login_rate_limit)
@timing
def verify_otp():
    """Confirm the email address with the passcode."""

    data = verify_otp_schema.load(_body())
    result = get_registration_service().verify_email(VerifyEmailIn(**data))
    return json_response({"data": verification_schema.dump(result)})


@bp.post("/resend-otp")
@limiter.limit(_login_rate_limit)
@timing
def resend_otp():
    data = email_only_schema.load(_body())
    result = get_registration_service().resend_verification(data["email"])
    return json_response({"data": dispatch_schema.dump(result)})


@bp.post("/login")
@limiter.limit(_login_rate_limit)
@timing
def login():
    """Authenticate credentials and issue an access/refresh pair."""

    data = login_schema.load(_body())
    result = get_session_service().login(LoginIn(**data))
    payload = account_schema.dump(result.account)
    payload["tokens"] = token_schema.dump(result.tokens)
    return json_response({"data": payload})


@bp.post("/logout")
@timing
def logout():
    """End the refresh session; a bearer access token, when sent, is denied too."""

    data = refresh_schema.load(_body())
    access_jti = access_expires_at = None
    if verify_jwt_in_request(optional=True) is not None:
        claims = get_jwt()
        access_jti = claims.get("jti")
        access_expires_at = datetime.fromtimestamp(int(claims["exp"]), tz=UTC)

    get_session_service().logout(
        LogoutIn(
            refresh_token=data["refresh_token"],
            access_jti=access_jti,
            access_expires_at=access_expires_at,
        )
    )
    return json_response({"data": {"message": "Logged out successfully."}})


@bp.post("/refresh-token")
@timing
def refresh_token():
    """Rotate the refresh token and issue a new pair."""

    data = refresh_schema.load(_body())
    pair = get_session_service().refresh(RefreshIn(**data))
    return json_response({"data": {"tokens": token_schema.dump(pair)}})


@bp.post("/forgot-password")
@limiter.limit(_login_rate_limit)
@timing
def forgot_password():
    """Always answers the same way, whether or not the email is registered."""

    data = email_only_schema.load(_body())
    result = get_session_service().request_password_reset(data["email"])
    return json_response({"data": dispatch_schema.dump(result)})


@bp.post("/reset-password")
@limiter.limit(_login_rate_limit)
@timing
def reset_password():
    data = reset_password_schema.load(_body())
    result = get_session_service().reset_password(PasswordResetIn(**data))
    return json_response({"data": password_reset_schema.dump(result)})


@bp.get("/me")
@jwt_required()
@timing
def me():
    """Return the authenticated account profile."""

    profile = get_session_service().get_profile(str(get_jwt_identity()))
    return json_response({"data": account_schema.dump(profile)})
