"""Session token service and its DTOs."""

from __future__ import annotations

from .dto import ClaimSet, TokenSettings, ValidationResult
from .service import TokenService

__all__ = ["TokenService", "ClaimSet", "TokenSettings", "ValidationResult"]
