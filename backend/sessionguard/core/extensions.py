"""Process-wide store client and token service bootstrap."""

from __future__ import annotations

import logging

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from sessionguard.core.config import ConfigurationError, load_token_settings
from sessionguard.infra.redis.redis_revocation_store import RedisRevocationStore
from sessionguard.services.tokens import TokenService

log = logging.getLogger(__name__)

REDIS_EXTENSION = "redis_client"
STORE_EXTENSION = "revocation_store"
TOKEN_SERVICE_EXTENSION = "token_service"


def _connect(app: Flask) -> redis.Redis:
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        raise ConfigurationError("REDIS_URL must be set")
    timeout = float(app.config.get("STORE_TIMEOUT_SECONDS", 2.0))
    return redis.Redis.from_url(
        redis_url,
        socket_timeout=timeout,
        socket_connect_timeout=timeout,
    )


def init_app(app: Flask, *, redis_client: redis.Redis | None = None) -> None:
    """Build the store client and the token service once per process.

    Parameters
    ----------
    app: flask.Flask
        Application receiving the instances under ``app.extensions``.
    redis_client: redis.Redis | None, optional
        Pre-built client (tests pass a ``fakeredis`` instance). When omitted
        a client is created from ``REDIS_URL``.

    Raises
    ------
    ConfigurationError
        When the signing secret or the store URL is missing.
    RuntimeError
        When the store does not answer at startup; serving without session
        storage is not allowed.
    """
    settings = load_token_settings(app.config)

    client = redis_client if redis_client is not None else _connect(app)
    try:
        client.ping()
    except RedisError as exc:
        raise RuntimeError(
            f"Failed to connect to Redis at {app.config.get('REDIS_URL')!r}"
        ) from exc

    store = RedisRevocationStore(r=client, prefix=app.config.get("SESSION_KEY_PREFIX", "session:"))
    app.extensions[REDIS_EXTENSION] = client
    app.extensions[STORE_EXTENSION] = store
    app.extensions[TOKEN_SERVICE_EXTENSION] = TokenService(store, settings)
    log.info("extensions.ready")


def shutdown(app: Flask) -> None:
    """Release the store client. Safe to call more than once."""
    client = app.extensions.pop(REDIS_EXTENSION, None)
    app.extensions.pop(STORE_EXTENSION, None)
    app.extensions.pop(TOKEN_SERVICE_EXTENSION, None)
    if client is not None:
        client.close()


def get_token_service() -> TokenService:
    """Return the token service bound to the current application."""
    service = current_app.extensions.get(TOKEN_SERVICE_EXTENSION)
    if service is None:
        raise RuntimeError("Token service is not initialized. Call init_app() first.")
    return service


def get_revocation_store() -> RedisRevocationStore:
    """Return the revocation store bound to the current application."""
    store = current_app.extensions.get(STORE_EXTENSION)
    if store is None:
        raise RuntimeError("Revocation store is not initialized. Call init_app() first.")
    return store
