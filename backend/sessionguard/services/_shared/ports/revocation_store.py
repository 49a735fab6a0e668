from __future__ import annotations

import threading
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from typing import Protocol


class RevocationStore(Protocol):
    """
    TTL-capable key-value store holding one record per live session.

    Key is the token identifier, value is the exact signed token handed out,
    expiry is the token's remaining lifetime. Adapters MUST raise
    :class:`~sessionguard.services._shared.errors.StoreUnavailableError` when
    the backend cannot be reached.
    """

    def set(self, token_id: str, value: str, ttl: timedelta) -> None:
        """Write the record atomically together with its expiry."""

    def get(self, token_id: str) -> str | None:
        """Return the stored token, or ``None`` when no live record exists."""

    def delete(self, token_id: str) -> int:
        """Remove the record. :returns: Number of records deleted (0 or 1)."""

    def ping(self) -> bool:
        """Return ``True`` when the backend answers."""


class InMemoryRevocationStore(RevocationStore):
    """
    Process-local store with clock-driven expiry.

    .. note::
       Uses a threading lock to mimic single-key atomicity in unit tests.
       Expired entries are evicted lazily on access.
    """

    def __init__(self, *, clock: Callable[[], datetime] | None = None) -> None:
        self._clock = clock or (lambda: datetime.now(UTC))
        self._records: dict[str, tuple[str, datetime]] = {}
        self._lock = threading.Lock()

    def _live(self, token_id: str) -> tuple[str, datetime] | None:
        record = self._records.get(token_id)
        if record is None:
            return None
        if record[1] <= self._clock():
            del self._records[token_id]
            return None
        return record

    def set(self, token_id: str, value: str, ttl: timedelta) -> None:
        if ttl <= timedelta(0):
            raise ValueError("ttl must be positive")
        with self._lock:
            self._records[token_id] = (value, self._clock() + ttl)

    def get(self, token_id: str) -> str | None:
        with self._lock:
            record = self._live(token_id)
            return record[0] if record else None

    def delete(self, token_id: str) -> int:
        with self._lock:
            if self._live(token_id) is None:
                return 0
            del self._records[token_id]
            return 1

    def ping(self) -> bool:
        return True

    def ttl(self, token_id: str) -> timedelta | None:
        """Remaining lifetime of a record (test helper)."""
        with self._lock:
            record = self._live(token_id)
            return record[1] - self._clock() if record else None
