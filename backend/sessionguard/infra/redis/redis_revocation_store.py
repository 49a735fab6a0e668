from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import cast

import redis  # type: ignore[import-untyped]
from redis.exceptions import RedisError  # type: ignore[import-untyped]

from sessionguard.services._shared.errors import StoreUnavailableError
from sessionguard.services._shared.ports import RevocationStore

log = logging.getLogger(__name__)


@dataclass(slots=True)
class RedisRevocationStore(RevocationStore):
    """
    Redis-backed session records keyed by token id.

    :param r: A Redis client (already connected).
    :param prefix: Namespace prepended to every token id.
    """

    r: redis.Redis
    prefix: str = "session:"

    def _k(self, token_id: str) -> str:
        return f"{self.prefix}{token_id}"

    def set(self, token_id: str, value: str, ttl: timedelta) -> None:
        seconds = int(ttl.total_seconds())
        if seconds <= 0:
            raise ValueError("ttl must be at least one second")
        try:
            ok = self.r.set(self._k(token_id), value, ex=seconds)
        except RedisError as exc:
            log.error("session.store_error", extra={"token_id": token_id}, exc_info=True)
            raise StoreUnavailableError() from exc
        if not ok:
            raise StoreUnavailableError("Session store refused the write")

    def get(self, token_id: str) -> str | None:
        try:
            raw = self.r.get(self._k(token_id))
        except RedisError as exc:
            log.error("session.store_error", extra={"token_id": token_id}, exc_info=True)
            raise StoreUnavailableError() from exc
        if raw is None:
            return None
        if isinstance(raw, bytes | bytearray):
            return raw.decode()
        return str(raw)

    def delete(self, token_id: str) -> int:
        try:
            return cast(int, self.r.delete(self._k(token_id)))
        except RedisError as exc:
            log.error("session.store_error", extra={"token_id": token_id}, exc_info=True)
            raise StoreUnavailableError() from exc

    def ping(self) -> bool:
        try:
            return bool(self.r.ping())
        except RedisError as exc:
            raise StoreUnavailableError() from exc
