"""Core models, exceptions and reference data for PressAudit."""

from .exceptions import (
    APIError,
    AuditStateError,
    ConfigurationError,
    InvalidCredentialsError,
    LLMAPIError,
    ParsingError,
    PressAuditError,
    QuotaExceededError,
    RateLimitError,
    SearchAPIError,
    ValidationError,
    error_code_for,
    is_fatal,
)
from .models import (
    APIConfig,
    AppConfig,
    Audit,
    AuditConfig,
    AuditRequest,
    AuditResult,
    AuditStatus,
    AuditStrategy,
    LLMResponse,
    MentionCandidate,
    Publication,
    ValidatedMention,
    ValidationMethod,
    coverage_percentage,
    favicon_url,
)
from .publications import NEWS_PUBLICATIONS, find_publication, partition

__all__ = [
    "APIError",
    "AuditStateError",
    "ConfigurationError",
    "InvalidCredentialsError",
    "LLMAPIError",
    "ParsingError",
    "PressAuditError",
    "QuotaExceededError",
    "RateLimitError",
    "SearchAPIError",
    "ValidationError",
    "error_code_for",
    "is_fatal",
    "APIConfig",
    "AppConfig",
    "Audit",
    "AuditConfig",
    "AuditRequest",
    "AuditResult",
    "AuditStatus",
    "AuditStrategy",
    "LLMResponse",
    "MentionCandidate",
    "Publication",
    "ValidatedMention",
    "ValidationMethod",
    "coverage_percentage",
    "favicon_url",
    "NEWS_PUBLICATIONS",
    "find_publication",
    "partition",
]
