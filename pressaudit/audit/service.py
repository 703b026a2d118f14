"""Facade used by callers (CLI, HTTP layer) to submit and poll audits."""

from __future__ import annotations

import logging
from typing import Optional

import httpx
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_snake

from ..core.exceptions import ValidationError
from ..core.models import AppConfig, Audit, AuditRequest
from ..extraction.classifier import MentionClassifier
from ..llm.gemini_client import GeminiClient
from ..llm.prompts import PromptBuilder
from ..search.serper_client import SerperClient
from ..storage.repository import AuditRepository, InMemoryAuditRepository
from ..strategy.generator import StrategyGenerator
from .orchestrator import AuditOrchestrator
from .runner import AuditRunner

LOGGER = logging.getLogger(__name__)


class AuditService:
    """Create audits, start them in the background and expose their progress."""

    def __init__(
        self,
        repository: AuditRepository,
        orchestrator: AuditOrchestrator,
        runner: Optional[AuditRunner] = None,
        *,
        search_client: Optional[SerperClient] = None,
    ) -> None:
        self._repository = repository
        self._orchestrator = orchestrator
        self._runner = runner or AuditRunner(orchestrator)
        self._search_client = search_client

    @property
    def repository(self) -> AuditRepository:
        return self._repository

    @property
    def runner(self) -> AuditRunner:
        return self._runner

    async def create_audit(self, brand_name: str, website_url: str) -> Audit:
        """Validate input, persist a pending audit and start processing it.

        Raises:
            ValidationError: if the brand name or URL is invalid. No record is created.
        """

        try:
            request = AuditRequest(brand_name=brand_name, website_url=website_url)
        except PydanticValidationError as exc:
            errors = exc.errors()
            first = errors[0] if errors else {}
            loc = first.get("loc", ())
            field = to_snake(str(loc[0])) if loc else None
            raise ValidationError(
                first.get("msg", "Invalid audit request"),
                field=field,
                value=first.get("input"),
                validation_errors=[dict(error) for error in errors],
                user_message="Please provide a brand name (up to 100 characters) and a valid website URL.",
                cause=exc,
            ) from exc

        audit = await self._repository.create(
            brand_name=request.brand_name,
            website_url=request.website_url,
            total_publications=len(self._orchestrator.publications),
        )
        self._runner.submit(audit.id)
        LOGGER.info(
            "Audit accepted",
            extra={"audit_id": audit.id, "brand_name": audit.brand_name},
        )
        return audit

    async def get_audit(self, audit_id: str) -> Optional[Audit]:
        return await self._repository.get(audit_id)

    async def wait_for(self, audit_id: str) -> Optional[Audit]:
        """Wait for a submitted audit to finish and return its final record."""

        await self._runner.wait(audit_id)
        return await self._repository.get(audit_id)

    async def aclose(self) -> None:
        await self._runner.aclose()
        if self._search_client is not None:
            await self._search_client.aclose()


def build_audit_service(
    config: AppConfig,
    *,
    repository: Optional[AuditRepository] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> AuditService:
    """Wire the production collaborators from ``config``.

    Raises:
        ConfigurationError: if an API key is missing.
    """

    search_client = SerperClient.from_config(config.api, client=http_client)
    llm_client = GeminiClient.from_config(config.api)
    prompts = PromptBuilder(
        classifier_temperature=config.api.classifier_temperature,
        strategy_temperature=config.api.strategy_temperature,
    )
    store = repository or InMemoryAuditRepository()
    orchestrator = AuditOrchestrator(
        search_client,
        MentionClassifier(llm_client, prompts, max_candidates=config.audit.max_candidates),
        StrategyGenerator(llm_client, prompts),
        store,
        batch_size=config.audit.batch_size,
        batch_delay=config.audit.batch_delay_seconds,
        base_url=config.audit.base_url,
    )
    return AuditService(store, orchestrator, search_client=search_client)


__all__ = ["AuditService", "build_audit_service"]
