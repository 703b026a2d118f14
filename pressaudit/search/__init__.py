"""Search utilities for PressAudit."""

from .serper_client import SerperClient, SerperClientSettings, SerperOrganicResult

__all__ = [
    "SerperClient",
    "SerperClientSettings",
    "SerperOrganicResult",
]
