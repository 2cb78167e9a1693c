"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

DEV_ACCESS_SECRET: Final[str] = "dev-access-secret-change-me"
DEV_REFRESH_SECRET: Final[str] = "dev-refresh-secret-change-me"


# Load .env during development (no-op when missing)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse a positive integer from an environment variable.

    Raises
    ------
    RuntimeError
        If the value is not a positive integer.
    """
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    try:
        parsed = int(val.strip())
    except ValueError as exc:
        raise RuntimeError(f"{name} must be an integer, got {val!r}") from exc
    if parsed <= 0:
        raise RuntimeError(f"{name} must be positive, got {parsed}")
    return parsed


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_ACCESS_SECRET: str
        Signing secret for access tokens. Also handed to
        ``flask-jwt-extended`` as ``JWT_SECRET_KEY`` so protected endpoints
        decode access tokens with it.
    JWT_REFRESH_SECRET: str
        Signing secret for refresh tokens. Must differ from the access secret.
    ACCESS_TOKEN_TTL_SECONDS: int
        Access token lifetime.
    REFRESH_TOKEN_TTL_SECONDS: int
        Refresh token lifetime, also the TTL of the refresh record in Redis.
    OTP_EXPIRY_MINUTES: int
        Validity window of a one-time passcode.
    OTP_MAX_ATTEMPTS: int
        Verification attempts allowed per passcode challenge.
    REDIS_URL: str | None
        Revocation store. When unset, an in-process store is used.
    EMAIL_API_URL: str | None
        HTTP endpoint of the transactional email provider. When unset,
        messages go to an in-memory outbox.
    AUTH_LOGIN_RATE_LIMIT: str
        Flask-Limiter rule applied to credential and passcode endpoints.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Secrets
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_ACCESS_SECRET = os.getenv("JWT_ACCESS_SECRET", DEV_ACCESS_SECRET)
    JWT_REFRESH_SECRET = os.getenv("JWT_REFRESH_SECRET", DEV_REFRESH_SECRET)
    JWT_SECRET_KEY = JWT_ACCESS_SECRET
    JWT_ALGORITHM = "HS256"
    JWT_TOKEN_LOCATION = ["headers"]

    # Token & passcode lifetimes
    ACCESS_TOKEN_TTL_SECONDS = env_int("ACCESS_TOKEN_TTL_SECONDS", 900)
    REFRESH_TOKEN_TTL_SECONDS = env_int("REFRESH_TOKEN_TTL_SECONDS", 604800)
    OTP_EXPIRY_MINUTES = env_int("OTP_EXPIRY_MINUTES", 15)
    OTP_MAX_ATTEMPTS = env_int("OTP_MAX_ATTEMPTS", 5)

    # Revocation store
    REDIS_URL = os.getenv("REDIS_URL") or None

    # Outbound email
    EMAIL_API_URL = os.getenv("EMAIL_API_URL") or None
    EMAIL_API_KEY = os.getenv("EMAIL_API_KEY") or None
    EMAIL_SENDER = os.getenv("EMAIL_SENDER", "no-reply@storefront.local")
    EMAIL_TIMEOUT_SECONDS = env_int("EMAIL_TIMEOUT_SECONDS", 5)

    # Rate limiting
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_HEADERS_ENABLED = True

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging & CORS
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")

    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and honors ``SQLALCHEMY_ECHO`` for verbose
    SQL logging when requested.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    CORS_MAX_AGE = 600  # 10 minutes


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis or the email provider; tests inject doubles.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REDIS_URL = None
    EMAIL_API_URL = None
    RATELIMIT_ENABLED = False


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug and SQL echoing disabled. :func:`validate_config` refuses the
    development secrets and a missing ``REDIS_URL`` under this class.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    REQUIRE_REDIS = True


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Returns
    -------
    type[BaseConfig]
        Class to pass to :meth:`flask.Config.from_object`.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def validate_config(config: Mapping[str, object]) -> None:
    """Refuse to boot with an unsafe token configuration.

    :param config: Loaded Flask config mapping.
    :raises RuntimeError: If the signing secrets are missing or identical, or
        if production runs with development secrets or without Redis.
    """
    access = config.get("JWT_ACCESS_SECRET")
    refresh = config.get("JWT_REFRESH_SECRET")
    if not access or not refresh:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must be set.")
    if access == refresh:
        raise RuntimeError("JWT_ACCESS_SECRET and JWT_REFRESH_SECRET must differ.")

    if config.get("REQUIRE_REDIS"):
        if access == DEV_ACCESS_SECRET or refresh == DEV_REFRESH_SECRET:
            raise RuntimeError("Development JWT secrets are not allowed in production.")
        if not config.get("REDIS_URL"):
            raise RuntimeError("REDIS_URL is required in production.")
