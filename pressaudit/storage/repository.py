# coding: ascii
"""Audit storage for PressAudit."""

from __future__ import annotations

import abc
import asyncio
import logging
import uuid
from typing import Any, Dict, List, Optional

from ..core.exceptions import AuditStateError
from ..core.models import Audit, AuditStatus

LOGGER = logging.getLogger(__name__)

IMMUTABLE_FIELDS = frozenset({"id", "brand_name", "website_url", "created_at"})


class AuditRepository(abc.ABC):
    """Async store of audit records keyed by id."""

    @abc.abstractmethod
    async def create(self, **fields: Any) -> Audit:
        """Persist a new pending audit and return it with its assigned id."""

    @abc.abstractmethod
    async def get(self, audit_id: str) -> Optional[Audit]:
        """Return a snapshot of the audit, or ``None`` for unknown ids."""

    @abc.abstractmethod
    async def update(self, audit_id: str, **fields: Any) -> Optional[Audit]:
        """Shallow-merge ``fields`` into the audit; ``None`` for unknown ids."""

    @abc.abstractmethod
    async def list_by_status(self, status: AuditStatus) -> List[Audit]:
        """Return snapshots of every audit currently in ``status``."""


class InMemoryAuditRepository(AuditRepository):
    """Process-local repository. Data does not survive a restart.

    Readers always receive deep copies, and writes to the same audit are
    serialized with a per-id lock.
    """

    def __init__(self) -> None:
        self._audits: Dict[str, Audit] = {}
        self._locks: Dict[str, asyncio.Lock] = {}

    def __len__(self) -> int:
        return len(self._audits)

    async def create(self, **fields: Any) -> Audit:
        fields.pop("id", None)
        fields["status"] = AuditStatus.PENDING
        audit = Audit(id=uuid.uuid4().hex, **fields)
        self._audits[audit.id] = audit
        self._locks[audit.id] = asyncio.Lock()
        LOGGER.debug("Audit created", extra={"audit_id": audit.id, "brand_name": audit.brand_name})
        return audit.model_copy(deep=True)

    async def get(self, audit_id: str) -> Optional[Audit]:
        audit = self._audits.get(audit_id)
        return audit.model_copy(deep=True) if audit is not None else None

    async def update(self, audit_id: str, **fields: Any) -> Optional[Audit]:
        lock = self._locks.get(audit_id)
        if lock is None:
            LOGGER.warning("Update for unknown audit ignored", extra={"audit_id": audit_id})
            return None

        async with lock:
            current = self._audits[audit_id]
            changed = {
                key for key, value in fields.items()
                if key in IMMUTABLE_FIELDS and value != getattr(current, key)
            }
            if changed:
                raise ValueError(f"Immutable audit fields cannot change: {', '.join(sorted(changed))}")

            requested = AuditStatus(fields.get("status", current.status))
            self._check_transition(current, requested)

            merged = Audit.model_validate({**current.model_dump(), **fields})
            self._audits[audit_id] = merged

        if requested != current.status:
            LOGGER.info(
                "Audit status changed",
                extra={
                    "audit_id": audit_id,
                    "from_status": current.status.value,
                    "to_status": requested.value,
                },
            )
        return merged.model_copy(deep=True)

    async def list_by_status(self, status: AuditStatus) -> List[Audit]:
        target = AuditStatus(status)
        return [
            audit.model_copy(deep=True)
            for audit in self._audits.values()
            if audit.status == target
        ]

    @staticmethod
    def _check_transition(current: Audit, requested: AuditStatus) -> None:
        if current.status.can_transition_to(requested):
            return
        raise AuditStateError(
            f"Cannot move audit from {current.status.value} to {requested.value}",
            audit_id=current.id,
            current_status=current.status.value,
            requested_status=requested.value,
        )


__all__ = ["AuditRepository", "IMMUTABLE_FIELDS", "InMemoryAuditRepository"]
