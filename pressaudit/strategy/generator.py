"""PR strategy generation from a finished set of audit results."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ..core.exceptions import ParsingError
from ..core.models import AuditResult, AuditStrategy
from ..llm.prompts import PromptBuilder
from ..llm.response_parser import parse_strategy

LOGGER = logging.getLogger(__name__)

FALLBACK_STRATEGY = AuditStrategy(
    insights=[
        "Unable to generate strategy analysis",
        "Focus on building brand awareness",
    ],
    priority_targets=[
        "Industry-specific publications",
        "Local news outlets",
    ],
    actions=[
        "Develop targeted content strategy",
        "Create thought leadership content",
        "Build media relationships",
    ],
)


def fallback_strategy() -> AuditStrategy:
    return FALLBACK_STRATEGY.model_copy(deep=True)


class StrategyGenerator:
    """Ask Gemini for PR recommendations based on audit coverage.

    Malformed model output yields :data:`FALLBACK_STRATEGY`. Upstream errors
    (credentials, quota, transport) propagate to the caller.
    """

    def __init__(self, llm_client, prompt_builder: Optional[PromptBuilder] = None) -> None:
        self._llm = llm_client
        self._prompts = prompt_builder or PromptBuilder()

    async def generate(
        self,
        results: Sequence[AuditResult],
        brand_name: str,
        website_url: str,
    ) -> AuditStrategy:
        payload = self._prompts.build_strategy(results, brand_name, website_url)
        response = await self._llm.generate(
            payload.prompt,
            system_instruction=payload.system_instruction,
            temperature=payload.temperature,
            json_output=True,
        )

        try:
            strategy = parse_strategy(response.text)
        except ParsingError as exc:
            LOGGER.warning(
                "Strategy response could not be parsed; using fallback strategy",
                extra={"brand_name": brand_name, "reason": exc.message},
            )
            return fallback_strategy()

        LOGGER.info(
            "Strategy generated",
            extra={
                "brand_name": brand_name,
                "insights": len(strategy.insights),
                "priority_targets": len(strategy.priority_targets),
                "actions": len(strategy.actions),
            },
        )
        return strategy


__all__ = ["FALLBACK_STRATEGY", "StrategyGenerator", "fallback_strategy"]
