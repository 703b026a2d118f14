"""Mention extraction for PressAudit."""

from .classifier import MentionClassifier, merge_mentions
from .mention_detector import (
    CONTEXT_KEYWORDS,
    MentionDetectionError,
    ScoredCandidate,
    detect_pattern_mentions,
    score_candidate,
)

__all__ = [
    "CONTEXT_KEYWORDS",
    "MentionClassifier",
    "MentionDetectionError",
    "ScoredCandidate",
    "detect_pattern_mentions",
    "merge_mentions",
    "score_candidate",
]
