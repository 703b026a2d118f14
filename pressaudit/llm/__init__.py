"""LLM integration utilities for PressAudit."""

from .gemini_client import GeminiClient, GeminiClientSettings
from .prompts import PromptBuilder, PromptPayload
from .response_parser import (
    extract_json_object,
    parse_genuine_mentions,
    parse_strategy,
    strip_code_fences,
)

__all__ = [
    "GeminiClient",
    "GeminiClientSettings",
    "PromptBuilder",
    "PromptPayload",
    "extract_json_object",
    "parse_genuine_mentions",
    "parse_strategy",
    "strip_code_fences",
]
