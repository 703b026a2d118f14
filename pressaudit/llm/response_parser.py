# coding: ascii
"""Response parsing utilities for PressAudit."""

from __future__ import annotations

import json
import re
from typing import Any, Dict, List

from ..core.exceptions import ParsingError
from ..core.models import AuditStrategy, ValidatedMention, ValidationMethod

_FENCE_PATTERN = re.compile(r"```(?:json|JSON)?[ \t]*\n?")
_STRATEGY_FIELDS = {
    "insights": ("insights",),
    "priority_targets": ("priorityTargets", "priority_targets"),
    "actions": ("actions",),
}


def strip_code_fences(text: str) -> str:
    """Remove Markdown code fences wrapped around a model reply."""

    return _FENCE_PATTERN.sub("", text or "").strip()


def extract_json_object(text: str) -> Dict[str, Any]:
    """Parse the JSON object contained in a model reply."""

    content = strip_code_fences(text)
    if not content:
        raise ParsingError("Response content is empty", expected_format="json")

    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        start, end = content.find("{"), content.rfind("}")
        if start == -1 or end <= start:
            raise ParsingError("Response is not valid JSON", raw_content=content, expected_format="json")
        try:
            parsed = json.loads(content[start:end + 1])
        except json.JSONDecodeError as exc:
            raise ParsingError(
                "Response is not valid JSON",
                raw_content=content,
                expected_format="json",
                cause=exc,
            ) from exc

    if not isinstance(parsed, dict):
        raise ParsingError("Response JSON is not an object", raw_content=content, expected_format="json object")
    return parsed


def parse_genuine_mentions(text: str, domain: str) -> List[ValidatedMention]:
    """Parse ``{"genuineMentions": [...]}`` into validated mentions for ``domain``.

    Entries without a title or URL, or explicitly marked as not mentioned, are dropped.
    """

    payload = extract_json_object(text)
    entries = payload.get("genuineMentions")
    if not isinstance(entries, list):
        raise ParsingError(
            "genuineMentions list is missing",
            raw_content=text,
            expected_format='{"genuineMentions": [...]}',
        )

    mentions: List[ValidatedMention] = []
    for entry in entries:
        if not isinstance(entry, dict):
            continue
        if entry.get("brandMentioned") is False:
            continue
        title = entry.get("title")
        url = entry.get("url")
        snippet = entry.get("snippet")
        if not isinstance(title, str) or not title.strip():
            continue
        if not isinstance(url, str) or not url.strip():
            continue
        mentions.append(
            ValidatedMention(
                domain=domain,
                title=title,
                snippet=snippet if isinstance(snippet, str) else "",
                url=url.strip(),
                validation_method=ValidationMethod.LLM,
            )
        )
    return mentions


def parse_strategy(text: str) -> AuditStrategy:
    """Parse the strategy object; all three string lists are required."""

    payload = extract_json_object(text)
    values: Dict[str, List[str]] = {}
    for field, keys in _STRATEGY_FIELDS.items():
        raw = next((payload[key] for key in keys if key in payload), None)
        if not isinstance(raw, list) or not all(isinstance(item, str) for item in raw):
            raise ParsingError(
                f"Strategy field '{keys[0]}' must be a list of strings",
                raw_content=text,
                expected_format="strategy json",
            )
        values[field] = [item.strip() for item in raw if item.strip()]
    return AuditStrategy(**values)


__all__ = [
    "extract_json_object",
    "parse_genuine_mentions",
    "parse_strategy",
    "strip_code_fences",
]
