"""
Pytest Configuration and Shared Fixtures

Fake search, LLM, classifier and strategy collaborators used across the suite.
"""

import asyncio
import json
from typing import Any, Callable, Dict, List, Optional, Union

import pytest

from pressaudit.core import (
    APIConfig,
    AppConfig,
    AuditConfig,
    AuditStrategy,
    LLMResponse,
    MentionCandidate,
    ValidatedMention,
    ValidationMethod,
)
from pressaudit.storage import AuditRepository, InMemoryAuditRepository


def make_candidate(title: str = "", snippet: str = "", link: str = "") -> MentionCandidate:
    return MentionCandidate(title=title, snippet=snippet, link=link)


class FakeLLM:
    """Stands in for GeminiClient; replies are strings, exceptions or callables."""

    def __init__(self, *replies: Union[str, Exception, Callable[[str], str]]):
        self._replies = list(replies)
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, prompt: str, **kwargs: Any) -> LLMResponse:
        self.calls.append({"prompt": prompt, **kwargs})
        reply = self._replies.pop(0) if len(self._replies) > 1 else self._replies[0]
        if isinstance(reply, Exception):
            raise reply
        if callable(reply):
            reply = reply(prompt)
        return LLMResponse(text=reply, model="fake-model")


class FakeSearch:
    """Per-domain canned search results; values may be exceptions."""

    def __init__(self, results: Optional[Dict[str, Any]] = None):
        self._results = results or {}
        self.calls: List[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def search(self, domain: str, brand_name: str) -> List[MentionCandidate]:
        self.calls.append(domain)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            outcome = self._results.get(domain, [])
            if isinstance(outcome, Exception):
                raise outcome
            return list(outcome)
        finally:
            self.in_flight -= 1


class BlockingSearch:
    """Search that never returns until cancelled."""

    def __init__(self) -> None:
        self.started = asyncio.Event()

    async def search(self, domain: str, brand_name: str) -> List[MentionCandidate]:
        self.started.set()
        await asyncio.Event().wait()
        return []


class FakeClassifier:
    """Accepts every candidate as a pattern mention."""

    def __init__(self) -> None:
        self.calls: List[str] = []

    async def classify(self, candidates, brand_name, domain):
        self.calls.append(domain)
        return [
            ValidatedMention(
                domain=domain,
                title=candidate.title,
                snippet=candidate.snippet,
                url=candidate.link,
                validation_method=ValidationMethod.PATTERN,
            )
            for candidate in candidates
        ]


class FakeStrategy:
    def __init__(self, outcome: Union[AuditStrategy, Exception, None] = None):
        self._outcome = outcome or AuditStrategy(
            insights=["Coverage is concentrated in finance outlets"],
            priority_targets=["AP News"],
            actions=["Pitch a product announcement"],
        )
        self.calls: List[Dict[str, Any]] = []

    async def generate(self, results, brand_name, website_url):
        self.calls.append({"results": list(results), "brand_name": brand_name, "website_url": website_url})
        if isinstance(self._outcome, Exception):
            raise self._outcome
        return self._outcome


class RecordingSleep:
    """Replacement for asyncio.sleep that records delays and optional snapshots."""

    def __init__(self, on_sleep: Optional[Callable[[], Any]] = None):
        self.delays: List[float] = []
        self._on_sleep = on_sleep

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)
        if self._on_sleep is not None:
            await self._on_sleep()


def mentions_json(*entries: Dict[str, Any]) -> str:
    return json.dumps({"genuineMentions": list(entries)})


@pytest.fixture
def repository():
    return InMemoryAuditRepository()


@pytest.fixture
def app_config():
    return AppConfig(
        api=APIConfig(serper_api_key="serper-test-key", gemini_api_key="gemini-test-key"),
        audit=AuditConfig(batch_delay_seconds=0.0),
    )


class FailingProgressRepository(AuditRepository):
    """Delegates to another store but crashes when batch progress is saved."""

    def __init__(self, inner: AuditRepository):
        self._inner = inner

    async def create(self, **fields: Any):
        return await self._inner.create(**fields)

    async def get(self, audit_id: str):
        return await self._inner.get(audit_id)

    async def update(self, audit_id: str, **fields: Any):
        if fields.get("results"):
            raise RuntimeError("store unavailable")
        return await self._inner.update(audit_id, **fields)

    async def list_by_status(self, status):
        return await self._inner.list_by_status(status)
