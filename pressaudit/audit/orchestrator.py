"""Batched audit pipeline: search, classify, aggregate and strategize."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timezone
from typing import Awaitable, Callable, List, Optional, Sequence

from ..core.exceptions import PressAuditError, error_code_for, is_fatal
from ..core.models import Audit, AuditResult, AuditStatus, Publication, coverage_percentage
from ..core.publications import NEWS_PUBLICATIONS, find_publication, partition
from ..storage.repository import AuditRepository

LOGGER = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000"
STRATEGY_FAILED = "strategy_failed"
INTERNAL_ERROR = "internal_error"
CANCELLED = "cancelled"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditOrchestrator:
    """Run one audit end to end and keep its record current after every batch.

    Publications are checked in batches of ``batch_size``. Members of a batch
    run concurrently and the batch is persisted only once all of them are
    done. Recoverable errors degrade a single publication to "not mentioned";
    fatal errors abort the audit, keeping the results of earlier batches.
    """

    def __init__(
        self,
        search_client,
        classifier,
        strategy_generator,
        repository: AuditRepository,
        *,
        publications: Sequence[Publication] = NEWS_PUBLICATIONS,
        batch_size: int = 5,
        batch_delay: float = 1.0,
        base_url: str = DEFAULT_BASE_URL,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if batch_size <= 0:
            raise ValueError("batch_size must be greater than 0")
        if batch_delay < 0:
            raise ValueError("batch_delay cannot be negative")
        self._search = search_client
        self._classifier = classifier
        self._strategy = strategy_generator
        self._repository = repository
        self._publications = tuple(publications)
        self._batch_size = batch_size
        self._batch_delay = batch_delay
        self._base_url = base_url.rstrip("/")
        self._sleep = sleep

    @property
    def publications(self) -> Sequence[Publication]:
        return self._publications

    def shareable_link(self, audit_id: str) -> str:
        return f"{self._base_url}/share/{audit_id}"

    async def run(self, audit_id: str) -> Optional[Audit]:
        """Execute the audit; returns the final record, or ``None`` if it does not exist."""

        try:
            return await self._run(audit_id)
        except asyncio.CancelledError:
            LOGGER.warning("Audit cancelled; marking it failed", extra={"audit_id": audit_id})
            await self._mark_failed(audit_id, CANCELLED)
            raise
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Audit crashed; marking it failed", extra={"audit_id": audit_id})
            return await self._mark_failed(audit_id, INTERNAL_ERROR)

    async def _run(self, audit_id: str) -> Optional[Audit]:
        audit = await self._repository.get(audit_id)
        if audit is None:
            LOGGER.warning("Audit not found; nothing to run", extra={"audit_id": audit_id})
            return None
        if audit.is_terminal:
            LOGGER.warning(
                "Audit already finished; not running it again",
                extra={"audit_id": audit_id, "status": audit.status.value},
            )
            return audit

        total = len(self._publications)
        await self._repository.update(
            audit_id,
            status=AuditStatus.PROCESSING,
            results=[],
            mentions_found=0,
            coverage_rate=0,
            total_publications=total,
        )
        LOGGER.info(
            "Audit started",
            extra={"audit_id": audit_id, "brand_name": audit.brand_name, "publications": total},
        )

        results: List[AuditResult] = []
        batches = partition(self._publications, self._batch_size)
        for index, batch in enumerate(batches, start=1):
            try:
                batch_results = await self._run_batch(batch, audit)
            except PressAuditError as exc:
                if not exc.fatal:
                    raise
                LOGGER.error(
                    "Fatal upstream error; aborting audit",
                    extra={
                        "audit_id": audit_id,
                        "batch": index,
                        "error_code": exc.error_code,
                        "completed_results": len(results),
                    },
                )
                return await self._mark_failed(audit_id, exc.error_code)

            results.extend(batch_results)
            mentions = sum(1 for result in results if result.brand_mentioned)
            await self._repository.update(
                audit_id,
                results=list(results),
                mentions_found=mentions,
                coverage_rate=coverage_percentage(mentions, len(results)),
            )
            LOGGER.info(
                "Batch completed",
                extra={
                    "audit_id": audit_id,
                    "batch": index,
                    "batches": len(batches),
                    "checked": len(results),
                    "mentions_found": mentions,
                },
            )

            if index < len(batches):
                await self._sleep(self._batch_delay)

        try:
            strategy = await self._strategy.generate(results, audit.brand_name, audit.website_url)
        except Exception as exc:  # pylint: disable=broad-except
            LOGGER.error(
                "Strategy generation failed; marking audit failed",
                extra={"audit_id": audit_id, "error_code": error_code_for(exc)},
            )
            return await self._mark_failed(audit_id, STRATEGY_FAILED)

        mentions = sum(1 for result in results if result.brand_mentioned)
        completed = await self._repository.update(
            audit_id,
            status=AuditStatus.COMPLETED,
            mentions_found=mentions,
            coverage_rate=coverage_percentage(mentions, total),
            top_source=self._top_source(results),
            strategy=strategy,
            shareable_link=self.shareable_link(audit_id),
            completed_at=_utcnow(),
        )
        LOGGER.info(
            "Audit completed",
            extra={"audit_id": audit_id, "mentions_found": mentions, "publications": total},
        )
        return completed

    async def _run_batch(self, batch: Sequence[Publication], audit: Audit) -> List[AuditResult]:
        outcomes = await asyncio.gather(
            *(self._check_publication(publication, audit) for publication in batch),
            return_exceptions=True,
        )
        failures = [outcome for outcome in outcomes if isinstance(outcome, BaseException)]
        if failures:
            raise next((failure for failure in failures if is_fatal(failure)), failures[0])
        return list(outcomes)

    async def _check_publication(self, publication: Publication, audit: Audit) -> AuditResult:
        try:
            candidates = await self._search.search(publication.domain, audit.brand_name)
            if not candidates:
                return AuditResult.unmentioned(publication.domain)
            mentions = await self._classifier.classify(candidates, audit.brand_name, publication.domain)
        except PressAuditError as exc:
            if exc.fatal:
                raise
            LOGGER.warning(
                "Publication check failed; recording no mention",
                extra={
                    "audit_id": audit.id,
                    "domain": publication.domain,
                    "error_code": exc.error_code,
                },
            )
            return AuditResult.unmentioned(publication.domain)
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception(
                "Unexpected error checking publication; recording no mention",
                extra={"audit_id": audit.id, "domain": publication.domain},
            )
            return AuditResult.unmentioned(publication.domain)

        if not mentions:
            return AuditResult.unmentioned(publication.domain)
        return AuditResult.from_mention(publication, mentions[0])

    def _top_source(self, results: Sequence[AuditResult]) -> Optional[str]:
        for result in results:
            if result.brand_mentioned:
                publication = find_publication(result.domain, self._publications)
                return publication.name if publication else result.domain
        return None

    async def _mark_failed(self, audit_id: str, error_code: str) -> Optional[Audit]:
        current = await self._repository.get(audit_id)
        if current is None or current.is_terminal:
            return current
        return await self._repository.update(
            audit_id,
            status=AuditStatus.FAILED,
            error=error_code,
            completed_at=_utcnow(),
        )


__all__ = ["AuditOrchestrator", "DEFAULT_BASE_URL"]
