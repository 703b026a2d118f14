"""
PressAudit Custom Exceptions

This module defines the exception hierarchy used by the PressAudit brand coverage
auditor. Every exception carries an explicit ``fatal`` flag so the audit pipeline
can decide between aborting the whole audit and degrading a single publication
without inspecting error messages.

Exception Categories:
- Account-level errors (fatal): invalid credentials, rate limiting, quota exhaustion,
  missing configuration
- Domain-level errors (recoverable): search failures, LLM failures, unparseable output
- Submission errors: invalid brand name or website URL
- Store errors: illegal audit state transitions
"""

from __future__ import annotations

import traceback
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional


class PressAuditError(Exception):
    """
    Base exception class for all PressAudit errors.

    Provides error codes, context preservation and the fatal/recoverable
    classification consumed by the audit orchestrator.
    """

    #: Whether instances of this class abort a whole audit by default.
    default_fatal: bool = False
    #: Short, user-safe reason recorded on failed audits.
    default_error_code: str = "internal_error"

    def __init__(
        self,
        message: str,
        *,
        error_code: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
        cause: Optional[Exception] = None,
        fatal: Optional[bool] = None,
        user_message: Optional[str] = None,
    ) -> None:
        """
        Initialize a PressAudit error.

        Args:
            message: Technical error message for developers
            error_code: Short code for categorization (defaults per class)
            context: Additional context information
            cause: The underlying exception that caused this error
            fatal: Whether this error aborts the whole audit (defaults per class)
            user_message: User-friendly error message
        """
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.context = context or {}
        self.cause = cause
        self.fatal = self.default_fatal if fatal is None else fatal
        self.user_message = user_message or message
        self.timestamp = datetime.now(timezone.utc)
        self.traceback_str = traceback.format_exc()

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "message": self.message,
            "user_message": self.user_message,
            "context": self.context,
            "fatal": self.fatal,
            "timestamp": self.timestamp.isoformat(),
            "cause": str(self.cause) if self.cause else None,
        }

    def __str__(self) -> str:
        base_msg = f"{self.error_code}: {self.message}"
        context = {k: v for k, v in self.context.items() if v is not None}
        if context:
            context_str = ", ".join(f"{k}={v}" for k, v in context.items())
            base_msg += f" (Context: {context_str})"
        if self.cause:
            base_msg += f" (Caused by: {self.cause})"
        return base_msg


# API Integration Errors
class APIError(PressAuditError):
    """
    Base class for all upstream API errors.

    Tracks the service name, HTTP status code and (trimmed) response payload.
    """

    default_error_code = "upstream_error"

    def __init__(
        self,
        message: str,
        *,
        service: Optional[str] = None,
        status_code: Optional[int] = None,
        response_data: Optional[Dict[str, Any]] = None,
        endpoint: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        """
        Initialize an API error.

        Args:
            message: Error message
            service: Name of the API service (e.g., "serper", "gemini")
            status_code: HTTP status code if applicable
            response_data: Raw response data from the API
            endpoint: API endpoint that failed
            **kwargs: Additional arguments passed to PressAuditError
        """
        context = kwargs.pop("context", {})
        context.update({
            "service": service,
            "status_code": status_code,
            "endpoint": endpoint,
        })
        if response_data:
            context["response_data"] = response_data

        super().__init__(message, context=context, **kwargs)
        self.service = service
        self.status_code = status_code
        self.response_data = response_data
        self.endpoint = endpoint


class SearchAPIError(APIError):
    """
    Recoverable keyword-search failure.

    The orchestrator treats it as "no results for this publication" and moves on.
    """

    default_error_code = "search_error"

    def __init__(
        self,
        message: str,
        *,
        query: Optional[str] = None,
        domain: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        context.update({"query": query, "domain": domain})
        kwargs.setdefault("service", "serper")
        super().__init__(message, context=context, **kwargs)
        self.query = query
        self.domain = domain


class LLMAPIError(APIError):
    """
    Recoverable Gemini failure (transient errors, empty or blocked responses).
    """

    default_error_code = "llm_error"

    def __init__(
        self,
        message: str,
        *,
        model: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        context.update({"model": model})
        kwargs.setdefault("service", "gemini")
        super().__init__(message, context=context, **kwargs)
        self.model = model


class InvalidCredentialsError(APIError):
    """
    The upstream rejected the configured API key.

    Fatal: every later call would fail the same way.
    """

    default_fatal = True
    default_error_code = "invalid_credentials"


class RateLimitError(APIError):
    """
    The upstream is throttling requests.

    Fatal: the audit is aborted instead of retried per publication.
    """

    default_fatal = True
    default_error_code = "rate_limited"

    def __init__(
        self,
        message: str,
        *,
        retry_after: Optional[int] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        context.update({"retry_after": retry_after})
        super().__init__(message, context=context, **kwargs)
        self.retry_after = retry_after


class QuotaExceededError(APIError):
    """
    The account ran out of credits or quota.

    Fatal: requires billing changes before any further call can succeed.
    """

    default_fatal = True
    default_error_code = "quota_exceeded"


# Data Processing Errors
class ParsingError(PressAuditError):
    """
    The LLM returned text that could not be turned into the expected structure.
    """

    default_error_code = "parse_error"

    def __init__(
        self,
        message: str,
        *,
        raw_content: Optional[str] = None,
        expected_format: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        context.update({
            "raw_content_preview": raw_content[:300] if raw_content else None,
            "expected_format": expected_format,
        })
        super().__init__(message, context=context, **kwargs)
        self.raw_content = raw_content
        self.expected_format = expected_format


class ValidationError(PressAuditError):
    """
    Invalid audit submission (brand name or website URL).

    Raised before any audit record is created.
    """

    default_error_code = "validation_error"

    def __init__(
        self,
        message: str,
        *,
        field: Optional[str] = None,
        value: Any = None,
        validation_errors: Optional[List[Dict[str, Any]]] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        context.update({
            "field": field,
            "value": str(value) if value is not None else None,
        })
        super().__init__(message, context=context, **kwargs)
        self.field = field
        self.value = value
        self.validation_errors = validation_errors or []


# System Errors
class ConfigurationError(PressAuditError):
    """
    Missing or invalid configuration, most importantly absent API keys.

    Fatal: raised at service construction time, and aborts an audit if it
    surfaces while one is running.
    """

    default_fatal = True
    default_error_code = "configuration"

    def __init__(
        self,
        message: str,
        *,
        config_key: Optional[str] = None,
        expected_type: Optional[str] = None,
        provided_value: Any = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        context.update({
            "config_key": config_key,
            "expected_type": expected_type,
            "provided_value": str(provided_value) if provided_value is not None else None,
        })
        super().__init__(message, context=context, **kwargs)
        self.config_key = config_key
        self.expected_type = expected_type
        self.provided_value = provided_value


class AuditStateError(PressAuditError):
    """
    An update tried to move an audit backwards or mutate a terminal audit.
    """

    default_error_code = "invalid_state"

    def __init__(
        self,
        message: str,
        *,
        audit_id: Optional[str] = None,
        current_status: Optional[str] = None,
        requested_status: Optional[str] = None,
        **kwargs: Any,
    ) -> None:
        context = kwargs.pop("context", {})
        context.update({
            "audit_id": audit_id,
            "current_status": current_status,
            "requested_status": requested_status,
        })
        super().__init__(message, context=context, **kwargs)
        self.audit_id = audit_id
        self.current_status = current_status
        self.requested_status = requested_status


# Utility Functions
def is_fatal(error: BaseException) -> bool:
    """
    Classify whether an error must abort the whole audit.

    Args:
        error: Exception to classify

    Returns:
        True for account-level errors, False for errors that only affect one publication
    """
    if isinstance(error, PressAuditError):
        return error.fatal
    return False


def error_code_for(error: BaseException) -> str:
    """Return the user-safe reason code recorded on a failed audit."""
    if isinstance(error, PressAuditError):
        return error.error_code
    return PressAuditError.default_error_code


__all__ = [
    # Base exception
    "PressAuditError",
    # API Integration Errors
    "APIError",
    "SearchAPIError",
    "LLMAPIError",
    "InvalidCredentialsError",
    "RateLimitError",
    "QuotaExceededError",
    # Data Processing Errors
    "ParsingError",
    "ValidationError",
    # System Errors
    "ConfigurationError",
    "AuditStateError",
    # Utility Functions
    "is_fatal",
    "error_code_for",
]
