"""Two-layer mention classification: pattern heuristics plus Gemini."""

from __future__ import annotations

import logging
from typing import List, Optional, Sequence, Set

from ..core.exceptions import PressAuditError
from ..core.models import MentionCandidate, ValidatedMention
from ..llm.prompts import PromptBuilder
from ..llm.response_parser import parse_genuine_mentions
from .mention_detector import detect_pattern_mentions

LOGGER = logging.getLogger(__name__)


class MentionClassifier:
    """Decide which search candidates genuinely mention a brand.

    The pattern pass is deterministic and always runs. The LLM pass favors
    recall and degrades to no results on any failure, so ``classify`` never
    raises because of the model.
    """

    def __init__(
        self,
        llm_client,
        prompt_builder: Optional[PromptBuilder] = None,
        *,
        max_candidates: int = 10,
    ) -> None:
        self._llm = llm_client
        self._prompts = prompt_builder or PromptBuilder()
        self._max_candidates = max_candidates

    def clean(self, candidates: Sequence[MentionCandidate]) -> List[MentionCandidate]:
        """Keep the first ``max_candidates`` candidates that have a title or snippet."""

        return [
            candidate
            for candidate in list(candidates)[: self._max_candidates]
            if not candidate.is_blank
        ]

    async def classify(
        self,
        candidates: Sequence[MentionCandidate],
        brand_name: str,
        domain: str,
    ) -> List[ValidatedMention]:
        cleaned = self.clean(candidates)
        if not cleaned:
            return []

        pattern_mentions = detect_pattern_mentions(cleaned, brand_name, domain)
        llm_mentions = await self._classify_with_llm(cleaned, brand_name, domain)
        merged = merge_mentions(pattern_mentions, llm_mentions)

        LOGGER.info(
            "Classified candidates",
            extra={
                "domain": domain,
                "candidates": len(cleaned),
                "pattern_mentions": len(pattern_mentions),
                "llm_mentions": len(llm_mentions),
                "mentions": len(merged),
            },
        )
        return merged

    async def _classify_with_llm(
        self,
        candidates: Sequence[MentionCandidate],
        brand_name: str,
        domain: str,
    ) -> List[ValidatedMention]:
        payload = self._prompts.build_classification(candidates, brand_name, domain)
        try:
            response = await self._llm.generate(
                payload.prompt,
                system_instruction=payload.system_instruction,
                temperature=payload.temperature,
                json_output=True,
            )
            return parse_genuine_mentions(response.text, domain)
        except PressAuditError as exc:
            LOGGER.warning(
                "LLM classification failed; using pattern results only",
                extra={"domain": domain, "error_code": exc.error_code, "fatal": exc.fatal},
            )
        except Exception:  # pylint: disable=broad-except
            LOGGER.exception("Unexpected LLM classification error", extra={"domain": domain})
        return []


def merge_mentions(
    primary: Sequence[ValidatedMention],
    secondary: Sequence[ValidatedMention],
) -> List[ValidatedMention]:
    """Concatenate mentions keeping the first occurrence of every URL."""

    seen: Set[str] = set()
    merged: List[ValidatedMention] = []
    for mention in list(primary) + list(secondary):
        if mention.url in seen:
            continue
        seen.add(mention.url)
        merged.append(mention)
    return merged


__all__ = ["MentionClassifier", "merge_mentions"]
