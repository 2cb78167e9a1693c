"""Shared API helpers: collaborator wiring, service construction and responses."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar, cast

from flask import Flask, Response, current_app, jsonify, request

from storefront.core.extensions import get_redis
from storefront.infra.email.http_email_sender import HttpEmailSender
from storefront.infra.jwt.pyjwt_token_provider import PyJWTTokenProvider
from storefront.infra.redis.redis_denylist_store import RedisTokenDenylistStore
from storefront.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from storefront.services._shared.base import ServiceContext
from storefront.services._shared.ports import (
    EmailSender,
    InMemoryDenylistStore,
    InMemoryEmailSender,
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    TokenDenylistStore,
    TokenProvider,
)
from storefront.services.otp.dto import OtpPolicy
from storefront.services.otp.service import OtpService
from storefront.services.registration.service import RegistrationService
from storefront.services.session.service import SessionService
from storefront.services.tokens.dto import TokenConfig
from storefront.services.tokens.service import TokenService

F = TypeVar("F", bound=Callable[..., Any])

# app.extensions keys holding the collaborators built by :func:`init_app`.
REFRESH_STORE_KEY = "storefront.refresh_store"
DENYLIST_STORE_KEY = "storefront.denylist_store"
EMAIL_SENDER_KEY = "storefront.email_sender"
TOKEN_PROVIDER_KEY = "storefront.token_provider"


def init_app(app: Flask) -> None:
    """Build the collaborators once per application.

    Redis-backed revocation stores are used when a Redis client was
    initialized, in-process stores otherwise. Email goes to the HTTP provider
    when ``EMAIL_API_URL`` is set and to an in-memory outbox otherwise. Tests
    replace any entry in ``app.extensions`` after the factory ran.
    """
    if "redis_client" in app.extensions:
        client = get_redis()
        app.extensions[REFRESH_STORE_KEY] = RedisRefreshTokenStore(client)
        app.extensions[DENYLIST_STORE_KEY] = RedisTokenDenylistStore(client)
    else:
        app.extensions[REFRESH_STORE_KEY] = InMemoryRefreshTokenStore()
        app.extensions[DENYLIST_STORE_KEY] = InMemoryDenylistStore()

    if app.config.get("EMAIL_API_URL"):
        app.extensions[EMAIL_SENDER_KEY] = HttpEmailSender(
            api_url=app.config["EMAIL_API_URL"],
            api_key=app.config.get("EMAIL_API_KEY"),
            sender=app.config["EMAIL_SENDER"],
            timeout=float(app.config.get("EMAIL_TIMEOUT_SECONDS", 5)),
        )
    else:
        app.extensions[EMAIL_SENDER_KEY] = InMemoryEmailSender()

    app.extensions[TOKEN_PROVIDER_KEY] = PyJWTTokenProvider(
        access_secret=app.config["JWT_ACCESS_SECRET"],
        refresh_secret=app.config["JWT_REFRESH_SECRET"],
        algorithm=app.config.get("JWT_ALGORITHM", "HS256"),
    )


# --------------------------------------------------------------------------- #
# Collaborators
# --------------------------------------------------------------------------- #


def get_refresh_store() -> RefreshTokenStore:
    return cast(RefreshTokenStore, current_app.extensions[REFRESH_STORE_KEY])


def get_denylist_store() -> TokenDenylistStore:
    return cast(TokenDenylistStore, current_app.extensions[DENYLIST_STORE_KEY])


def get_email_sender() -> EmailSender:
    return cast(EmailSender, current_app.extensions[EMAIL_SENDER_KEY])


def get_token_provider() -> TokenProvider:
    return cast(TokenProvider, current_app.extensions[TOKEN_PROVIDER_KEY])


# --------------------------------------------------------------------------- #
# Services (one instance per call; collaborators are shared)
# --------------------------------------------------------------------------- #


def service_context() -> ServiceContext:
    """Request-scoped context handed to services."""
    return ServiceContext(client_ip=request.remote_addr)


def get_otp_service() -> OtpService:
    cfg = current_app.config
    return OtpService(
        policy=OtpPolicy(
            expiry_minutes=int(cfg["OTP_EXPIRY_MINUTES"]),
            max_attempts=int(cfg["OTP_MAX_ATTEMPTS"]),
        )
    )


def get_token_service() -> TokenService:
    cfg = current_app.config
    return TokenService(
        provider=get_token_provider(),
        refresh_store=get_refresh_store(),
        denylist=get_denylist_store(),
        config=TokenConfig(
            access_ttl_seconds=int(cfg["ACCESS_TOKEN_TTL_SECONDS"]),
            refresh_ttl_seconds=int(cfg["REFRESH_TOKEN_TTL_SECONDS"]),
        ),
    )


def get_registration_service() -> RegistrationService:
    return RegistrationService(
        otp=get_otp_service(),
        email_sender=get_email_sender(),
        ctx=service_context(),
    )


def get_session_service() -> SessionService:
    return SessionService(
        tokens=get_token_service(),
        otp=get_otp_service(),
        email_sender=get_email_sender(),
        ctx=service_context(),
    )


# --------------------------------------------------------------------------- #
# Responses
# --------------------------------------------------------------------------- #


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            request_endpoint = getattr(request, "endpoint", None)
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request_endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
