"""
sessionguard.services._shared.ports
===================================

*Ports* (hexagonal interfaces) that define the contracts for session
storage infrastructure.

Modules
-------
- :mod:`revocation_store`:
    Defines :class:`~.RevocationStore` — TTL-capable record per live session —
    and :class:`~.InMemoryRevocationStore`, its process-local double.

Design Notes
------------
The token service depends on the port only. Concrete adapters (Redis,
in-memory) implement it; the Redis one lives under ``sessionguard.infra``.
"""

from __future__ import annotations

from .revocation_store import InMemoryRevocationStore, RevocationStore

__all__ = [
    "RevocationStore",
    "InMemoryRevocationStore",
]
