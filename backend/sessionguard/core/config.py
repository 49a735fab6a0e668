"""Environment-driven settings for the session service and its signing keys."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from datetime import timedelta
from typing import Any, Final

from dotenv import load_dotenv

from sessionguard.services.tokens.dto import TokenSettings

# Selects a CONFIG_MAP entry
ENV_VAR: Final[str] = "APP_ENV"

HMAC_ALGORITHMS: Final[frozenset[str]] = frozenset({"HS256", "HS384", "HS512"})
MIN_SECRET_BYTES: Final[int] = 32

load_dotenv()

log = logging.getLogger(__name__)


class ConfigurationError(RuntimeError):
    """Raised at startup when required settings are missing or unusable."""


def env_bool(name: str, default: bool = False) -> bool:
    """Read a yes/no flag such as ``FLASK_DEBUG=1`` from the environment."""
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


class BaseConfig:
    """Session service settings, read from the environment at import time.

    ``JWT_SECRET_KEY`` and ``REDIS_URL`` have no usable default; startup
    refuses to proceed without them (see :func:`load_token_settings` and
    :func:`sessionguard.core.extensions.init_app`).
    """

    API_BASE_PREFIX = "/api"
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Signing
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    TOKEN_ISSUER = os.getenv("TOKEN_ISSUER", "session-guard")
    SESSION_TTL_MINUTES = int(os.getenv("SESSION_TTL_MINUTES", "30"))

    # Revocation store
    REDIS_URL = os.getenv("REDIS_URL")
    SESSION_KEY_PREFIX = os.getenv("SESSION_KEY_PREFIX", "session:")
    STORE_TIMEOUT_SECONDS = float(os.getenv("STORE_TIMEOUT_SECONDS", "2.0"))

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Local run against a Redis on localhost."""

    DEBUG = env_bool("FLASK_DEBUG", True)
    REDIS_URL = os.getenv("REDIS_URL", "redis://localhost:6379/0")


class TestingConfig(BaseConfig):
    """Test runs; the suite injects a fakeredis client instead of dialling Redis."""

    TESTING = True
    JWT_SECRET_KEY = os.getenv("TEST_JWT_SECRET_KEY", "testing-secret-key-with-32-bytes!!")
    REDIS_URL = os.getenv("TEST_REDIS_URL", "redis://localhost:6379/15")


class ProductionConfig(BaseConfig):
    """Deployed service; every required key comes from the environment."""


CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Notes
    -----
    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)


def load_token_settings(config: Mapping[str, Any]) -> TokenSettings:
    """Build the immutable signing settings from a loaded Flask config.

    Parameters
    ----------
    config: Mapping[str, Any]
        Typically ``app.config``.

    Returns
    -------
    TokenSettings
        Value injected into :class:`~sessionguard.services.TokenService`.

    Raises
    ------
    ConfigurationError
        When the secret is missing, the algorithm is not HMAC, or the session
        lifetime is not positive.
    """
    secret = config.get("JWT_SECRET_KEY")
    if not secret:
        raise ConfigurationError("JWT_SECRET_KEY must be set")
    if len(str(secret).encode()) < MIN_SECRET_BYTES:
        log.warning("JWT_SECRET_KEY is shorter than %d bytes", MIN_SECRET_BYTES)

    algorithm = str(config.get("JWT_ALGORITHM", "HS256")).upper()
    if algorithm not in HMAC_ALGORITHMS:
        raise ConfigurationError(f"JWT_ALGORITHM must be one of {sorted(HMAC_ALGORITHMS)}")

    minutes = int(config.get("SESSION_TTL_MINUTES", 30))
    if minutes <= 0:
        raise ConfigurationError("SESSION_TTL_MINUTES must be positive")

    return TokenSettings(
        secret=str(secret),
        issuer=str(config.get("TOKEN_ISSUER", "session-guard")),
        session_ttl=timedelta(minutes=minutes),
        algorithm=algorithm,
    )
