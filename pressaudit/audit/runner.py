"""Background execution of audits."""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, List, Optional

from ..core.models import Audit
from .orchestrator import AuditOrchestrator

LOGGER = logging.getLogger(__name__)


class AuditRunner:
    """Owns one ``asyncio.Task`` per submitted audit.

    Submitting an audit that is already running returns the existing task.
    Finished tasks stay registered so ``wait`` keeps returning their result.
    """

    def __init__(self, orchestrator: AuditOrchestrator) -> None:
        self._orchestrator = orchestrator
        self._tasks: Dict[str, "asyncio.Task[Optional[Audit]]"] = {}

    @property
    def pending(self) -> List[str]:
        return [audit_id for audit_id, task in self._tasks.items() if not task.done()]

    def submit(self, audit_id: str) -> "asyncio.Task[Optional[Audit]]":
        task = self._tasks.get(audit_id)
        if task is not None:
            return task
        task = asyncio.create_task(self._orchestrator.run(audit_id), name=f"audit-{audit_id}")
        task.add_done_callback(self._log_outcome)
        self._tasks[audit_id] = task
        LOGGER.debug("Audit submitted", extra={"audit_id": audit_id})
        return task

    async def wait(self, audit_id: str) -> Optional[Audit]:
        task = self._tasks.get(audit_id)
        if task is None:
            return None
        return await task

    async def wait_all(self) -> List[Optional[Audit]]:
        tasks = list(self._tasks.values())
        if not tasks:
            return []
        return list(await asyncio.gather(*tasks))

    async def aclose(self) -> None:
        """Cancel audits that are still running and wait for them to unwind."""

        running = [task for task in self._tasks.values() if not task.done()]
        for task in running:
            task.cancel()
        if running:
            await asyncio.gather(*running, return_exceptions=True)

    @staticmethod
    def _log_outcome(task: "asyncio.Task[Optional[Audit]]") -> None:
        if task.cancelled():
            LOGGER.warning("Audit task cancelled", extra={"task": task.get_name()})
            return
        error = task.exception()
        if error is not None:
            LOGGER.error(
                "Audit task raised",
                extra={"task": task.get_name(), "error": str(error)},
            )


__all__ = ["AuditRunner"]
