"""Audit pipeline, background runner and service facade."""

from .orchestrator import AuditOrchestrator
from .runner import AuditRunner
from .service import AuditService, build_audit_service

__all__ = ["AuditOrchestrator", "AuditRunner", "AuditService", "build_audit_service"]
