# coding: ascii
"""Deterministic pattern pass for brand mention detection."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Optional, Pattern

from ..core.models import MentionCandidate, ValidatedMention, ValidationMethod

CONTEXT_KEYWORDS = (
    "company",
    "corp",
    "inc",
    "ltd",
    "business",
    "firm",
    "brand",
    "organization",
)
LOW_QUALITY_URL_MARKERS = ("/search", "/tag/", "?")
SUBSTANTIAL_SNIPPET_LENGTH = 50
ACCEPTANCE_THRESHOLD = 2


class MentionDetectionError(Exception):
    """Raised when mention detection input is invalid."""


@dataclass
class ScoredCandidate:
    """Search candidate together with its pattern confidence score."""

    candidate: MentionCandidate
    match_count: int
    has_business_context: bool
    has_substantial_content: bool
    has_quality_url: bool

    @property
    def score(self) -> int:
        return (
            self.match_count * 2
            + int(self.has_business_context)
            + int(self.has_substantial_content)
            + int(self.has_quality_url)
        )

    @property
    def accepted(self) -> bool:
        return self.match_count > 0 and self.score >= ACCEPTANCE_THRESHOLD


def brand_pattern(brand_name: str) -> Pattern[str]:
    """Compile the whole-word, case-insensitive pattern for ``brand_name``."""

    if not brand_name or not brand_name.strip():
        raise MentionDetectionError("Brand name cannot be empty")
    return re.compile(rf"\b{re.escape(brand_name.strip())}\b", re.IGNORECASE)


def score_candidate(
    candidate: MentionCandidate,
    brand_name: str,
    pattern: Optional[Pattern[str]] = None,
) -> ScoredCandidate:
    if pattern is None:
        pattern = brand_pattern(brand_name)
    combined = f"{candidate.title} {candidate.snippet}".lower()
    link = candidate.link
    has_quality_url = (
        not any(marker in link for marker in LOW_QUALITY_URL_MARKERS)
        or brand_name.strip().lower() in link
    )
    return ScoredCandidate(
        candidate=candidate,
        match_count=len(pattern.findall(combined)),
        has_business_context=any(keyword in combined for keyword in CONTEXT_KEYWORDS),
        has_substantial_content=len(candidate.snippet) > SUBSTANTIAL_SNIPPET_LENGTH,
        has_quality_url=has_quality_url,
    )


def detect_pattern_mentions(
    candidates: Iterable[MentionCandidate],
    brand_name: str,
    domain: str,
) -> List[ValidatedMention]:
    """Return candidates accepted by the pattern heuristics, in input order.

    Candidates without a link are never accepted since a mention needs a URL.
    """

    pattern = brand_pattern(brand_name)
    mentions: List[ValidatedMention] = []
    for candidate in candidates:
        if not candidate.link:
            continue
        scored = score_candidate(candidate, brand_name, pattern)
        if not scored.accepted:
            continue
        mentions.append(
            ValidatedMention(
                domain=domain,
                title=candidate.title,
                snippet=candidate.snippet,
                url=candidate.link,
                validation_method=ValidationMethod.PATTERN,
            )
        )
    return mentions


__all__ = [
    "CONTEXT_KEYWORDS",
    "MentionDetectionError",
    "ScoredCandidate",
    "brand_pattern",
    "detect_pattern_mentions",
    "score_candidate",
]
