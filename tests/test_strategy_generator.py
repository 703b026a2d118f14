"""Tests for PR strategy generation."""

import json

import pytest

from conftest import FakeLLM
from pressaudit.core import AuditResult, InvalidCredentialsError, LLMAPIError, QuotaExceededError
from pressaudit.strategy import FALLBACK_STRATEGY, StrategyGenerator

RESULTS = [
    AuditResult(domain="apnews.com", brand_mentioned=True, url="https://apnews.com/1"),
    AuditResult.unmentioned("ktla.com"),
]


class TestStrategyGenerator:
    @pytest.mark.asyncio
    async def test_parsed_strategy(self):
        llm = FakeLLM(
            "```json\n"
            + json.dumps(
                {
                    "insights": ["Strong wire coverage"],
                    "priorityTargets": ["MarketWatch"],
                    "actions": ["Pitch earnings story", "Brief local TV"],
                }
            )
            + "\n```"
        )
        strategy = await StrategyGenerator(llm).generate(RESULTS, "Acme", "https://acme.example")

        assert strategy.insights == ["Strong wire coverage"]
        assert strategy.priority_targets == ["MarketWatch"]
        assert strategy.actions == ["Pitch earnings story", "Brief local TV"]
        assert llm.calls[0]["temperature"] == 0.7
        assert "Publications with mentions: apnews.com" in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("reply", ["", "not json at all", '{"insights": ["only one field"]}'])
    async def test_unusable_output_returns_fallback(self, reply):
        strategy = await StrategyGenerator(FakeLLM(reply)).generate(RESULTS, "Acme", "https://acme.example")

        assert strategy == FALLBACK_STRATEGY
        assert strategy.insights[0] == "Unable to generate strategy analysis"
        assert len(strategy.actions) == 3

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "error",
        [QuotaExceededError("quota"), InvalidCredentialsError("bad key"), LLMAPIError("down")],
    )
    async def test_upstream_errors_propagate(self, error):
        with pytest.raises(type(error)):
            await StrategyGenerator(FakeLLM(error)).generate(RESULTS, "Acme", "https://acme.example")
