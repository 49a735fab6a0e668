"""Pytest fixtures for the session token core and the Flask application.

Unit tests run the :class:`TokenService` against an in-memory store driven
by a controllable clock; API tests build the real application on top of a
``fakeredis`` client so no Redis server is needed.
"""

from __future__ import annotations

from collections.abc import Callable, Generator

import fakeredis
import pytest
from flask import Flask

from sessionguard.core import extensions
from sessionguard.factory import create_app
from sessionguard.services._shared.ports import InMemoryRevocationStore
from sessionguard.services.tokens import TokenService, TokenSettings
from tests.helpers.doubles import ISSUER, SECRET, FakeClock


class SessionTestConfig:
    """Testing configuration for creating the Flask app.

    Notes
    -----
    - ``REDIS_URL`` is informational only; a fakeredis client is injected.
    - Logging is kept at ``WARNING`` to reduce noise.
    """

    TESTING = True
    DEBUG = False
    JWT_SECRET_KEY = SECRET
    TOKEN_ISSUER = ISSUER
    SESSION_TTL_MINUTES = 30
    REDIS_URL = "redis://fake:6379/0"
    SESSION_KEY_PREFIX = "session:"
    LOG_LEVEL = "WARNING"


# ------------------------------ Core ---------------------------------- #


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def settings() -> TokenSettings:
    return TokenSettings(secret=SECRET, issuer=ISSUER)


@pytest.fixture()
def store(clock: FakeClock) -> InMemoryRevocationStore:
    return InMemoryRevocationStore(clock=clock)


@pytest.fixture()
def service(
    store: InMemoryRevocationStore, settings: TokenSettings, clock: FakeClock
) -> TokenService:
    """Build a TokenService wired to in-memory doubles."""
    return TokenService(store, settings, clock=clock)


# ------------------------------ Redis --------------------------------- #


@pytest.fixture()
def fake_redis():
    """Provide a fresh FakeRedis instance for each test."""
    r = fakeredis.FakeRedis()
    r.flushall()
    return r


# ------------------------------ Flask --------------------------------- #


@pytest.fixture()
def app(fake_redis) -> Generator[Flask, None, None]:
    """Create a Flask application bound to the fake Redis client."""
    application = create_app(SessionTestConfig, redis_client=fake_redis)
    yield application
    extensions.shutdown(application)


@pytest.fixture()
def client(app: Flask):
    """Return a Flask test client."""
    return app.test_client()


@pytest.fixture()
def issue_token(app: Flask) -> Callable[[str], str]:
    """Factory issuing a live session token through the app's service."""

    def _issue(user_id: str = "alice") -> str:
        with app.app_context():
            return extensions.get_token_service().issue(user_id)

    return _issue


@pytest.fixture()
def auth_header(issue_token: Callable[[str], str]) -> dict[str, str]:
    """Authorization header for an authenticated request as ``alice``."""
    return {"Authorization": f"Bearer {issue_token('alice')}"}
