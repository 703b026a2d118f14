"""Storage package exports."""

from .repository import AuditRepository, InMemoryAuditRepository

__all__ = ["AuditRepository", "InMemoryAuditRepository"]
