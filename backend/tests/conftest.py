"""Pytest fixtures configuring an isolated transactional database layer.

Each test runs inside a SAVEPOINT-backed transaction against an in-memory
SQLite database so data changes never leak between cases. Collaborators
(revocation stores, email outbox) are replaced by fresh in-memory doubles for
every test.
"""

from __future__ import annotations

import os

import pytest
from sqlalchemy import event
from sqlalchemy.orm import scoped_session, sessionmaker
from storefront.api.deps import (
    DENYLIST_STORE_KEY,
    EMAIL_SENDER_KEY,
    REFRESH_STORE_KEY,
    TOKEN_PROVIDER_KEY,
)
from storefront.core.config import TestingConfig
from storefront.core.extensions import db as _db  # Flask-SQLAlchemy instance
from storefront.factory import create_app  # application factory under test
from storefront.infra.jwt.pyjwt_token_provider import PyJWTTokenProvider
from storefront.services._shared.ports import (
    InMemoryDenylistStore,
    InMemoryEmailSender,
    InMemoryRefreshTokenStore,
)
from storefront.services.otp.dto import OtpPolicy
from storefront.services.otp.service import OtpService
from storefront.services.registration.service import RegistrationService
from storefront.services.session.service import SessionService
from storefront.services.tokens.dto import TokenConfig
from storefront.services.tokens.service import TokenService
from tests.helpers.signing import TEST_ACCESS_SECRET, TEST_REFRESH_SECRET


class TestConfig(TestingConfig):
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - Uses an in-memory SQLite database for speed.
    - Distinct signing secrets so access/refresh confusion is detectable.
    - Avoids hitting Redis, the email provider and the rate limiter.
    """

    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    JWT_ACCESS_SECRET = TEST_ACCESS_SECRET
    JWT_REFRESH_SECRET = TEST_REFRESH_SECRET
    OTP_EXPIRY_MINUTES = 15
    OTP_MAX_ATTEMPTS = 5
    USE_PROXYFIX = False
    LOG_LEVEL = "WARNING"


@pytest.fixture(scope="session")
def app():
    """Create a Flask application configured for testing.

    Returns
    -------
    flask.Flask
        Application instance with :class:`TestConfig` applied and logging
        noise reduced.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    os.environ.pop("REDIS_URL", None)
    app = create_app(TestConfig)
    app.logger.setLevel("WARNING")
    return app


@pytest.fixture(scope="session")
def db(app):
    """Create database tables once per test session.

    No application context is held between tests; see :func:`app_context`.

    Yields
    ------
    flask_sqlalchemy.SQLAlchemy
        Database extension bound to the testing application.
    """
    with app.app_context():
        _db.create_all()
    yield _db
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture(scope="session")
def connection(app, db):
    """Keep a dedicated DBAPI connection open for the whole session."""
    with app.app_context():
        conn = db.engine.connect()
    try:
        yield conn
    finally:
        conn.close()


@pytest.fixture(autouse=True)
def app_context(app):
    """Push a fresh application context for every test.

    Requests made by the test client reuse it, so ``flask.g`` never carries
    values from one test into the next.
    """
    with app.app_context() as ctx:
        yield ctx


@pytest.fixture(scope="function")
def session(app_context, db, connection):
    """Provide a SQLAlchemy session wrapped in a nested transaction.

    Yields
    ------
    sqlalchemy.orm.scoping.scoped_session
        Scoped session bound to the shared connection; automatically rolled
        back after each test.

    Notes
    -----
    The fixture mirrors the SQLAlchemy 2.0 pattern for transactional tests: it
    begins a top-level transaction, starts a SAVEPOINT per test, and reinstalls
    the SAVEPOINT whenever SQLAlchemy ends one. Units of work commit into that
    SAVEPOINT, so a rollback inside a unit of work also discards uncommitted
    factory rows: tests that expect a failure call ``session.commit()`` after
    seeding.
    """
    # 1) Top-level transaction
    top_trans = connection.begin()

    # 2) Scoped session bound to the connection
    SessionFactory = sessionmaker(bind=connection, future=True, autoflush=False)
    scoped = scoped_session(SessionFactory)

    # 3) SAVEPOINT per test
    nested = connection.begin_nested()

    # 4) Re-create SAVEPOINT when the previous nested transaction ends
    @event.listens_for(scoped(), "after_transaction_end")
    def _restart_savepoint(sess, trans):  # pragma: no cover
        if trans.nested and not trans._parent.nested:
            nonlocal nested
            nested = connection.begin_nested()

    # 5) Monkey-patch db.session so app code uses this scoped session
    original_session = db.session
    db.session.remove()
    db.session = scoped

    try:
        yield scoped
    finally:
        scoped.remove()
        db.session = original_session
        top_trans.rollback()


@pytest.fixture(scope="session")
def faker():
    """Provide a :class:`faker.Faker` instance seeded for deterministic tests."""
    from faker import Faker

    fk = Faker()
    Faker.seed(1337)
    return fk


# -- Hook up Factory Boy to pytest SQLAlchemy session --------------------------
@pytest.fixture(autouse=True)
def _factories_session(session):
    """Wire Factory Boy's session helper to the transactional session fixture."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(session)
    yield


# -- Collaborators ----------------------------------------------------------------
@pytest.fixture(autouse=True)
def _fresh_collaborators(app):
    """Give every test empty revocation stores and an empty outbox."""
    app.extensions[REFRESH_STORE_KEY] = InMemoryRefreshTokenStore()
    app.extensions[DENYLIST_STORE_KEY] = InMemoryDenylistStore()
    app.extensions[EMAIL_SENDER_KEY] = InMemoryEmailSender()
    yield


@pytest.fixture()
def client(app):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def outbox(app) -> InMemoryEmailSender:
    return app.extensions[EMAIL_SENDER_KEY]


@pytest.fixture()
def refresh_store(app) -> InMemoryRefreshTokenStore:
    return app.extensions[REFRESH_STORE_KEY]


@pytest.fixture()
def denylist_store(app) -> InMemoryDenylistStore:
    return app.extensions[DENYLIST_STORE_KEY]


@pytest.fixture()
def token_provider(app) -> PyJWTTokenProvider:
    return app.extensions[TOKEN_PROVIDER_KEY]


# -- Services wired to the same doubles as the HTTP layer ------------------------
@pytest.fixture()
def otp_service() -> OtpService:
    return OtpService(policy=OtpPolicy(expiry_minutes=15, max_attempts=5))


@pytest.fixture()
def token_service(token_provider, refresh_store, denylist_store) -> TokenService:
    return TokenService(
        provider=token_provider,
        refresh_store=refresh_store,
        denylist=denylist_store,
        config=TokenConfig(access_ttl_seconds=900, refresh_ttl_seconds=604800),
    )


@pytest.fixture()
def registration_service(otp_service, outbox) -> RegistrationService:
    return RegistrationService(otp=otp_service, email_sender=outbox)


@pytest.fixture()
def session_service(token_service, otp_service, outbox) -> SessionService:
    return SessionService(tokens=token_service, otp=otp_service, email_sender=outbox)
