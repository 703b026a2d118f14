"""Prompt building utilities for PressAudit Gemini integration."""

from __future__ import annotations

import textwrap
from dataclasses import dataclass
from typing import List, Sequence

from ..core.models import AuditResult, MentionCandidate


@dataclass
class PromptPayload:
    """Container holding the built prompt components."""

    system_instruction: str
    prompt: str
    temperature: float


class PromptBuilder:
    """Build Gemini prompts for mention classification and PR strategy."""

    _CLASSIFIER_SYSTEM_PROMPT = textwrap.dedent(
        """
        You are a brand monitoring AI optimized for HIGH RECALL.
        Capture all legitimate brand mentions. Respond only with valid JSON.
        """
    ).strip()

    _CLASSIFIER_GUIDELINES = textwrap.dedent(
        """
        ANALYSIS GUIDELINES:
        MARK AS GENUINE if the brand "{brand}":
        - Appears in title or content text (exact match or clear reference)
        - Is discussed in any business/news context
        - Is mentioned as a company, product, or service
        - Appears in financial, tech, business, or industry coverage

        ONLY REJECT if:
        - The brand name appears purely as an unrelated common word (e.g. "apple" the fruit vs Apple the company)
        - The content is completely unrelated to the business entity
        - The match is clearly a false positive

        IMPORTANT: Err on the side of inclusion. Missing genuine mentions is worse than including borderline cases.
        """
    ).strip()

    _CLASSIFIER_OUTPUT = textwrap.dedent(
        """
        Return JSON with ALL genuine mentions:
        {{
          "genuineMentions": [
            {{
              "domain": "{domain}",
              "brandMentioned": true,
              "title": "exact title",
              "snippet": "relevant snippet",
              "url": "full URL"
            }}
          ]
        }}
        """
    ).strip()

    _STRATEGY_SYSTEM_PROMPT = textwrap.dedent(
        """
        You are a senior PR strategist. Base recommendations strictly on the audit data
        provided and respond only with valid JSON.
        """
    ).strip()

    _STRATEGY_OUTPUT = textwrap.dedent(
        """
        Generate a strategy with these sections:
        1. Key insights (2-3 strategic insights)
        2. Priority targets (2-3 high-value publications to target)
        3. Recommended actions (3-4 specific actionable steps)

        Return a JSON object in this exact format:
        {
          "insights": ["Strategic insight 1", "Strategic insight 2"],
          "priorityTargets": ["Target publication 1", "Target publication 2"],
          "actions": ["Action item 1", "Action item 2", "Action item 3"]
        }
        """
    ).strip()

    def __init__(
        self,
        *,
        classifier_temperature: float = 0.2,
        strategy_temperature: float = 0.7,
    ) -> None:
        self._classifier_temperature = classifier_temperature
        self._strategy_temperature = strategy_temperature

    def build_classification(
        self,
        candidates: Sequence[MentionCandidate],
        brand_name: str,
        domain: str,
    ) -> PromptPayload:
        brand = brand_name.strip()
        blocks: List[str] = [
            "You are a professional brand monitoring analyst. Identify genuine brand mentions "
            "with HIGH RECALL - do not miss legitimate mentions.",
            f'TARGET BRAND: "{brand}"\nPUBLICATION: {domain}',
            "SEARCH RESULTS:\n" + self._format_candidates(candidates),
            self._CLASSIFIER_GUIDELINES.format(brand=brand),
            self._CLASSIFIER_OUTPUT.format(domain=domain),
        ]
        return PromptPayload(
            system_instruction=self._CLASSIFIER_SYSTEM_PROMPT,
            prompt="\n\n".join(blocks),
            temperature=self._classifier_temperature,
        )

    def build_strategy(
        self,
        results: Sequence[AuditResult],
        brand_name: str,
        website_url: str,
    ) -> PromptPayload:
        mentioned = [result.domain for result in results if result.brand_mentioned]
        summary = textwrap.dedent(
            f"""
            Based on this brand audit for "{brand_name.strip()}" ({website_url}), generate strategic recommendations.

            Audit Summary:
            - Publications checked: {len(results)}
            - Total genuine mentions found: {len(mentioned)}
            - Publications with mentions: {", ".join(mentioned) if mentioned else "None"}
            """
        ).strip()
        return PromptPayload(
            system_instruction=self._STRATEGY_SYSTEM_PROMPT,
            prompt=f"{summary}\n\n{self._STRATEGY_OUTPUT}",
            temperature=self._strategy_temperature,
        )

    @staticmethod
    def _format_candidates(candidates: Sequence[MentionCandidate]) -> str:
        lines: List[str] = []
        for index, candidate in enumerate(candidates, start=1):
            lines.append(
                f"[{index}] Title: {candidate.title}\n"
                f"    Snippet: {candidate.snippet}\n"
                f"    URL: {candidate.link}"
            )
        return "\n".join(lines)


__all__ = ["PromptBuilder", "PromptPayload"]
