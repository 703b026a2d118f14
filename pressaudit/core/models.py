"""
PressAudit Core Data Models

Pydantic v2 models for audit jobs, per-publication results, mention candidates
and application configuration.

Key Features:
- snake_case attributes serialized as camelCase for pollers
- Invariant validation for audit counters and result shapes
- Explicit, monotonic audit status transitions
"""

from __future__ import annotations

import math
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)
from pydantic.alias_generators import to_camel

FAVICON_URL_TEMPLATE = "https://www.google.com/s2/favicons?domain={domain}&sz=32"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def coverage_percentage(part: int, whole: int) -> int:
    """Integer percentage rounded half-up; 0 when ``whole`` is 0."""
    if whole <= 0:
        return 0
    return int(math.floor(part * 100 / whole + 0.5))


def favicon_url(domain: str) -> str:
    return FAVICON_URL_TEMPLATE.format(domain=domain)


class AuditStatus(str, Enum):
    """Lifecycle states of an audit job."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (AuditStatus.COMPLETED, AuditStatus.FAILED)

    def can_transition_to(self, target: "AuditStatus") -> bool:
        """Return whether moving from this status to ``target`` is allowed."""
        if target == self:
            return not self.is_terminal
        return target in _ALLOWED_TRANSITIONS[self]


_ALLOWED_TRANSITIONS: Dict[AuditStatus, frozenset] = {
    AuditStatus.PENDING: frozenset({AuditStatus.PROCESSING, AuditStatus.FAILED}),
    AuditStatus.PROCESSING: frozenset({AuditStatus.COMPLETED, AuditStatus.FAILED}),
    AuditStatus.COMPLETED: frozenset(),
    AuditStatus.FAILED: frozenset(),
}


class ValidationMethod(str, Enum):
    """Which classification pass accepted a mention."""

    PATTERN = "pattern"
    LLM = "llm"


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )


# Reference Data
class Publication(_CamelModel):
    """A news domain checked by every audit."""

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., min_length=1, description="Publication domain, e.g. apnews.com")
    name: str = Field(..., min_length=1, description="Display name, e.g. AP News")

    @property
    def logo(self) -> str:
        return favicon_url(self.domain)


# Pipeline Models
class MentionCandidate(_CamelModel):
    """Raw search hit, consumed by the classifier and then discarded."""

    title: str = ""
    snippet: str = ""
    link: str = ""

    @property
    def is_blank(self) -> bool:
        return not (self.title.strip() or self.snippet.strip())


class ValidatedMention(_CamelModel):
    """A search hit accepted as a genuine brand mention."""

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., min_length=1)
    brand_mentioned: bool = True
    title: str = ""
    snippet: str = ""
    url: str = Field(..., min_length=1)
    validation_method: ValidationMethod = ValidationMethod.PATTERN


class AuditResult(_CamelModel):
    """
    Outcome for one publication within an audit.

    ``title``, ``snippet``, ``url`` and ``logo`` are only populated when the
    brand was mentioned.
    """

    model_config = ConfigDict(frozen=True)

    domain: str = Field(..., min_length=1, description="Publication domain")
    brand_mentioned: bool = Field(..., description="Whether a genuine mention was found")
    title: Optional[str] = None
    snippet: Optional[str] = None
    url: Optional[str] = None
    logo: Optional[str] = None

    @model_validator(mode="after")
    def validate_unmentioned_shape(self) -> "AuditResult":
        if not self.brand_mentioned:
            populated = [
                name for name in ("title", "snippet", "url", "logo")
                if getattr(self, name) is not None
            ]
            if populated:
                raise ValueError(
                    "Unmentioned results cannot carry mention details: " + ", ".join(populated)
                )
        return self

    @classmethod
    def unmentioned(cls, domain: str) -> "AuditResult":
        return cls(domain=domain, brand_mentioned=False)

    @classmethod
    def from_mention(cls, publication: Publication, mention: ValidatedMention) -> "AuditResult":
        return cls(
            domain=publication.domain,
            brand_mentioned=True,
            title=mention.title or None,
            snippet=mention.snippet or None,
            url=mention.url,
            logo=publication.logo,
        )


class AuditStrategy(_CamelModel):
    """PR recommendations generated once an audit completes."""

    insights: List[str] = Field(default_factory=list)
    priority_targets: List[str] = Field(default_factory=list)
    actions: List[str] = Field(default_factory=list)


class LLMResponse(BaseModel):
    """Text returned by a Gemini call plus usage metadata."""

    model_config = ConfigDict(extra="forbid")

    text: str = Field(default="", description="Raw generated text")
    model: str = Field(..., description="Model used for generation")
    prompt_tokens: int = Field(default=0, ge=0)
    completion_tokens: int = Field(default=0, ge=0)
    total_tokens: int = Field(default=0, ge=0)
    generation_time_ms: float = Field(default=0.0, ge=0.0)
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    created_at: datetime = Field(default_factory=_utcnow)


class AuditRequest(_CamelModel):
    """Validated audit submission."""

    brand_name: str = Field(..., min_length=1, max_length=100)
    website_url: str = Field(..., min_length=1)

    @field_validator("website_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        parsed = urlparse(v)
        if parsed.scheme not in ("http", "https"):
            raise ValueError("URL must use http or https protocol")
        if not parsed.netloc or " " in parsed.netloc:
            raise ValueError("URL must have a valid domain")
        return v


class Audit(_CamelModel):
    """
    One end-to-end brand coverage audit.

    Acts as the single source of truth read by pollers; the orchestrator is
    the only writer.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(..., min_length=1)
    brand_name: str = Field(..., min_length=1, max_length=100)
    website_url: str = Field(..., min_length=1)
    status: AuditStatus = AuditStatus.PENDING
    results: List[AuditResult] = Field(default_factory=list)
    mentions_found: int = Field(default=0, ge=0)
    coverage_rate: int = Field(default=0, ge=0, le=100)
    total_publications: int = Field(default=0, ge=0)
    top_source: Optional[str] = None
    strategy: Optional[AuditStrategy] = None
    shareable_link: Optional[str] = None
    error: Optional[str] = Field(
        default=None,
        description="User-safe failure reason, set only on failed audits",
    )
    created_at: datetime = Field(default_factory=_utcnow)
    completed_at: Optional[datetime] = None

    @model_validator(mode="after")
    def validate_counters(self) -> "Audit":
        if self.mentions_found > len(self.results):
            raise ValueError("mentions_found cannot exceed the number of results")
        if self.total_publications and len(self.results) > self.total_publications:
            raise ValueError("results cannot exceed total_publications")
        return self

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal

    def to_public_dict(self) -> Dict[str, Any]:
        """JSON-compatible camelCase representation served to pollers."""
        return self.model_dump(mode="json", by_alias=True)


# Configuration Models
class APIConfig(BaseModel):
    """Configuration for the search and LLM clients."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )

    # Serper configuration
    serper_api_key: str = Field(..., description="Serper search API key", min_length=1)
    search_locale: str = Field(default="us", description="Geographic locale (gl)")
    search_language: str = Field(default="en", description="Interface language (hl)")
    search_timeout: float = Field(default=30.0, description="HTTP timeout in seconds", gt=0)
    primary_result_count: int = Field(default=15, gt=0, le=100)
    supplementary_result_count: int = Field(default=10, gt=0, le=100)

    # Gemini configuration
    gemini_api_key: str = Field(..., description="Google Gemini API key", min_length=1)
    gemini_model: str = Field(default="gemini-2.5-flash-lite", description="Gemini model name")
    gemini_max_tokens: int = Field(default=1500, gt=0)
    classifier_temperature: float = Field(default=0.2, ge=0.0, le=2.0)
    strategy_temperature: float = Field(default=0.7, ge=0.0, le=2.0)


class AuditConfig(BaseModel):
    """Tuning parameters for the audit pipeline."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )

    batch_size: int = Field(default=5, description="Publications processed concurrently", gt=0)
    batch_delay_seconds: float = Field(default=1.0, description="Pause between batches", ge=0.0)
    base_url: str = Field(default="http://localhost:5000", description="Prefix for shareable links")
    max_candidates: int = Field(default=10, description="Candidates sent to the classifier", gt=0)


class AppConfig(BaseModel):
    """Main application configuration."""

    model_config = ConfigDict(
        validate_assignment=True,
        extra="forbid",
    )

    api: APIConfig
    audit: AuditConfig = Field(default_factory=AuditConfig)
    log_level: str = Field(default="INFO")
    log_file: Optional[str] = None


__all__ = [
    # Enums
    "AuditStatus",
    "ValidationMethod",
    # Core models
    "Publication",
    "MentionCandidate",
    "ValidatedMention",
    "AuditResult",
    "AuditStrategy",
    "LLMResponse",
    "AuditRequest",
    "Audit",
    # Configuration models
    "APIConfig",
    "AuditConfig",
    "AppConfig",
    # Helpers
    "coverage_percentage",
    "favicon_url",
]
