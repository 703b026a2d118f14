"""Tests for the pattern pass and the two-layer mention classifier."""

import pytest

from conftest import FakeLLM, make_candidate, mentions_json
from pressaudit.core import LLMAPIError, QuotaExceededError, ValidationMethod
from pressaudit.extraction import (
    MentionClassifier,
    detect_pattern_mentions,
    merge_mentions,
    score_candidate,
)

LONG_SNIPPET = "Acme Corp announced a new partnership with regional retailers to expand distribution."


class TestScoreCandidate:
    """Pattern scoring rules."""

    def test_full_score(self):
        candidate = make_candidate(
            title="Acme expands",
            snippet=LONG_SNIPPET,
            link="https://apnews.com/article/acme-expands",
        )
        scored = score_candidate(candidate, "Acme")
        assert scored.match_count == 2
        assert scored.has_business_context is True
        assert scored.has_substantial_content is True
        assert scored.has_quality_url is True
        assert scored.score == 7
        assert scored.accepted is True

    def test_whole_word_only(self):
        """Brand embedded in a longer word does not match."""
        scored = score_candidate(make_candidate(title="Acmeville news", snippet="", link="https://a.com/x"), "Acme")
        assert scored.match_count == 0
        assert scored.accepted is False

    def test_case_insensitive_and_escaped(self):
        scored = score_candidate(make_candidate(title="AT&T earnings beat", link="https://a.com/1"), "at&t")
        assert scored.match_count == 1

    def test_low_quality_url_without_brand(self):
        scored = score_candidate(make_candidate(title="Acme", link="https://apnews.com/tag/retail"), "Acme")
        assert scored.has_quality_url is False
        assert scored.score == 2

    def test_low_quality_url_containing_brand(self):
        scored = score_candidate(make_candidate(title="Acme", link="https://apnews.com/search?q=acme"), "Acme")
        assert scored.has_quality_url is True


class TestDetectPatternMentions:
    def test_deterministic_and_ordered(self):
        candidates = [
            make_candidate(title="Acme raises funding", link="https://ktla.com/1"),
            make_candidate(title="Weather today", link="https://ktla.com/2"),
            make_candidate(title="Why acme matters", link="https://ktla.com/3"),
        ]
        first = detect_pattern_mentions(candidates, "Acme", "ktla.com")
        second = detect_pattern_mentions(candidates, "Acme", "ktla.com")

        assert first == second
        assert [m.url for m in first] == ["https://ktla.com/1", "https://ktla.com/3"]
        assert all(m.validation_method == ValidationMethod.PATTERN for m in first)
        assert all(m.domain == "ktla.com" for m in first)

    def test_brand_pattern_compiled_once_per_pass(self, mocker):
        from pressaudit.extraction import mention_detector

        spy = mocker.spy(mention_detector, "brand_pattern")
        candidates = [make_candidate(title=f"Acme story {i}", link=f"https://ktla.com/{i}") for i in range(4)]

        mentions = detect_pattern_mentions(candidates, "Acme", "ktla.com")

        assert len(mentions) == 4
        assert spy.call_count == 1

    def test_candidate_without_link_skipped(self):
        assert detect_pattern_mentions([make_candidate(title="Acme")], "Acme", "ktla.com") == []


class TestMergeMentions:
    def test_dedup_by_url_keeps_first(self):
        pattern = detect_pattern_mentions(
            [make_candidate(title="Acme", link="https://a.com/1")], "Acme", "a.com"
        )
        llm = [
            m.model_copy(update={"validation_method": ValidationMethod.LLM, "title": "dup"})
            for m in pattern
        ]
        merged = merge_mentions(pattern, llm)
        assert len(merged) == 1
        assert merged[0].validation_method == ValidationMethod.PATTERN


class TestMentionClassifier:
    """Pattern pass plus LLM pass."""

    @pytest.mark.asyncio
    async def test_union_of_both_passes(self):
        llm = FakeLLM(
            mentions_json(
                {"title": "Acme raises funding", "url": "https://ktla.com/1"},
                {"title": "Local startup profile", "snippet": "The company behind...", "url": "https://ktla.com/2"},
            )
        )
        classifier = MentionClassifier(llm)
        candidates = [
            make_candidate(title="Acme raises funding", link="https://ktla.com/1"),
            make_candidate(title="Local startup profile", snippet="The company behind...", link="https://ktla.com/2"),
        ]

        mentions = await classifier.classify(candidates, "Acme", "ktla.com")

        assert [m.url for m in mentions] == ["https://ktla.com/1", "https://ktla.com/2"]
        assert [m.validation_method for m in mentions] == [ValidationMethod.PATTERN, ValidationMethod.LLM]
        call = llm.calls[0]
        assert call["temperature"] == 0.2
        assert call["json_output"] is True

    @pytest.mark.asyncio
    async def test_cleaning_limits_and_drops_blank(self):
        llm = FakeLLM(mentions_json())
        classifier = MentionClassifier(llm)
        candidates = [make_candidate(title="", snippet="", link="https://ktla.com/blank")]
        candidates += [make_candidate(title=f"Story {i}", link=f"https://ktla.com/{i}") for i in range(15)]

        cleaned = classifier.clean(candidates)
        await classifier.classify(candidates, "Acme", "ktla.com")

        assert len(cleaned) == 9
        assert "[9] Title: Story 8" in llm.calls[0]["prompt"]
        assert "[10]" not in llm.calls[0]["prompt"]

    @pytest.mark.asyncio
    async def test_empty_input_skips_llm(self):
        llm = FakeLLM(mentions_json())
        classifier = MentionClassifier(llm)
        assert await classifier.classify([make_candidate(link="https://x.com/1")], "Acme", "x.com") == []
        assert llm.calls == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "reply",
        [
            "this is not json",
            LLMAPIError("timeout"),
            QuotaExceededError("quota"),
            RuntimeError("unexpected"),
        ],
    )
    async def test_llm_failure_falls_back_to_pattern(self, reply):
        """Any LLM failure leaves only the pattern results; classify never raises."""
        classifier = MentionClassifier(FakeLLM(reply))
        candidates = [make_candidate(title="Acme raises funding", link="https://ktla.com/1")]

        mentions = await classifier.classify(candidates, "Acme", "ktla.com")

        assert [m.url for m in mentions] == ["https://ktla.com/1"]
