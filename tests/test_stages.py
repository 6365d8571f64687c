"""Tests for the stage agents against the scripted gateway."""

from __future__ import annotations

import asyncio
from dataclasses import replace

import pytest

from agents.analyst import AnalystAgent
from agents.gateway import Citation, GatewayError, GroundedText, SchemaViolation
from agents.historian import HistorianAgent
from agents.oracle import OracleAgent
from agents.poet import PoetAgent, fallback_image_url, fallback_poem
from agents.translator import TranslatorAgent
from models.news import NewsDigest, NewsDraft, NewsItem

from conftest import make_analysis, make_digest, make_prediction


# ════════════════════════════════════════════════════════════════════
# Past search
# ════════════════════════════════════════════════════════════════════


class TestHistorian:
    def test_returns_target_count(self, config, gateway):
        items = asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert len(items) == 6
        assert len({item.id for item in items}) == 6
        assert items[0].title == "Event 1"

    def test_runs_search_then_extraction(self, config, gateway):
        asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert [key for key, _ in gateway.calls] == ["grounded", "NewsDigest"]

        search_prompt = gateway.prompts("grounded")[0]
        assert '"AI"' in search_prompt
        assert "last 30 days" in search_prompt

        extraction_prompt = gateway.prompts("NewsDigest")[0]
        assert "A month of news." in extraction_prompt
        assert "[1] Title: Outlet 1, URL: https://news.example/1" in extraction_prompt
        assert "Extract 6 distinct news items" in extraction_prompt

    def test_truncates_extra_items(self, config, gateway):
        gateway.replies["NewsDigest"] = make_digest(9)
        items = asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert [item.title for item in items] == [f"Event {i}" for i in range(1, 7)]

    def test_short_extraction_padded_with_defaults(self, config, gateway):
        gateway.replies["NewsDigest"] = make_digest(2)
        items = asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert len(items) == 6
        assert [item.title for item in items[:2]] == ["Event 1", "Event 2"]
        assert all(item.title == "Unknown Title" for item in items[2:])
        assert len({item.id for item in items}) == 6

    def test_short_extraction_padded_from_unused_citations(self, config, gateway):
        gateway.replies["NewsDigest"] = make_digest(2)
        gateway.replies["grounded"] = GroundedText(
            text="A month of news.",
            citations=[
                Citation(title="Outlet 1", uri="https://news.example/1"),
                Citation(title="Late coverage", uri="https://late.example/ai"),
            ],
        )
        items = asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert len(items) == 6
        assert items[2].title == "Late coverage"
        assert items[2].url == "https://late.example/ai"
        assert items[2].summary == "No summary available."
        assert items[2].source == "Web"
        assert [item.url for item in items].count("https://news.example/1") == 1
        assert items[3].title == "Unknown Title"

    def test_fills_missing_fields(self, config, gateway):
        gateway.replies["NewsDigest"] = NewsDigest(items=[NewsDraft(title="Only a title")] * 6)
        items = asyncio.run(HistorianAgent(config, gateway).search("deep sea"))
        assert all(item.summary == "No summary available." for item in items)
        assert all(item.url == "https://www.google.com/search?q=deep+sea" for item in items)

    def test_truncates_search_prose(self, config, gateway):
        config = replace(config, search_context_chars=10)
        gateway.replies["grounded"] = replace(gateway.replies["grounded"], text="0123456789ABCDEF")
        asyncio.run(HistorianAgent(config, gateway).search("AI"))
        prompt = gateway.prompts("NewsDigest")[0]
        assert '"0123456789"' in prompt
        assert "ABCDEF" not in prompt

    @pytest.mark.parametrize("key", ["grounded", "NewsDigest"])
    def test_failure_degrades_to_error_item(self, config, gateway, key):
        gateway.replies[key] = GatewayError("quota")
        items = asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert len(items) == 1
        assert items[0].title == "Error retrieving data for AI"
        assert items[0].source == "System"

    def test_schema_violation_degrades_to_error_item(self, config, gateway):
        gateway.replies["NewsDigest"] = SchemaViolation("not json")
        items = asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert [item.source for item in items] == ["System"]

    def test_empty_extraction_degrades_to_error_item(self, config, gateway):
        gateway.replies["NewsDigest"] = NewsDigest(items=[])
        items = asyncio.run(HistorianAgent(config, gateway).search("AI"))
        assert len(items) == 1

    def test_empty_keyword_rejected(self, config, gateway):
        with pytest.raises(ValueError):
            asyncio.run(HistorianAgent(config, gateway).search("   "))
        assert gateway.calls == []


# ════════════════════════════════════════════════════════════════════
# Present / future
# ════════════════════════════════════════════════════════════════════


class TestAnalyst:
    def _items(self):
        return [NewsItem(title="T1", summary="S1", source="s", url="u")]

    def test_analyze(self, config, gateway):
        analysis = asyncio.run(AnalystAgent(config, gateway).analyze("AI", self._items()))
        assert analysis.summary_title == "A busy month"
        prompt = gateway.prompts("PresentAnalysis")[0]
        assert "Title: T1\nSummary: S1" in prompt
        assert "Write all text in English." in prompt

    def test_chinese_prompt(self, config, gateway):
        config = replace(config, language="zh")
        asyncio.run(AnalystAgent(config, gateway).analyze("AI", self._items()))
        assert "简体中文" in gateway.prompts("PresentAnalysis")[0]

    def test_requires_items(self, config, gateway):
        with pytest.raises(ValueError):
            asyncio.run(AnalystAgent(config, gateway).analyze("AI", []))
        assert gateway.calls == []

    def test_failure_propagates(self, config, gateway):
        gateway.replies["PresentAnalysis"] = GatewayError("down")
        with pytest.raises(GatewayError):
            asyncio.run(AnalystAgent(config, gateway).analyze("AI", self._items()))


class TestOracle:
    def test_predict(self, config, gateway):
        prediction = asyncio.run(OracleAgent(config, gateway).predict("AI", make_analysis(sentiment=12)))
        assert prediction.distant_vision.description
        prompt = gateway.prompts("FuturePrediction")[0]
        assert "Current Status (Last Month): Lots of launches." in prompt
        assert "Sentiment: 12" in prompt

    def test_failure_propagates(self, config, gateway):
        gateway.replies["FuturePrediction"] = SchemaViolation("bad shape")
        with pytest.raises(GatewayError):
            asyncio.run(OracleAgent(config, gateway).predict("AI", make_analysis()))


# ════════════════════════════════════════════════════════════════════
# Share card / translation
# ════════════════════════════════════════════════════════════════════


class TestPoet:
    def test_compose_with_generated_content(self, config, gateway):
        gateway.replies["text"] = "  line one\nline two\n"
        artifact = asyncio.run(PoetAgent(config, gateway).compose("AI", make_prediction()))
        assert artifact.poem == "line one\nline two"
        assert not artifact.poem_is_fallback
        assert artifact.image_data == b"\x89PNG fake"
        assert artifact.image_ref.startswith("data:image/png;base64,")
        assert "A city of glass and light" in gateway.prompts("image")[0]
        assert "Quiet ubiquity" in gateway.prompts("text")[0]

    def test_missing_image_uses_fallback_url(self, config, gateway):
        gateway.replies["image"] = None
        artifact = asyncio.run(PoetAgent(config, gateway).compose("AI", make_prediction()))
        assert artifact.image_url == "https://picsum.photos/seed/AI/800/800"
        assert artifact.is_fallback_image

    def test_failures_use_both_fallbacks(self, config, gateway):
        gateway.replies["image"] = GatewayError("no image")
        gateway.replies["text"] = GatewayError("no poem")
        artifact = asyncio.run(PoetAgent(config, gateway).compose("AI", make_prediction()))
        assert artifact.image_url == fallback_image_url("AI")
        assert artifact.poem == fallback_poem("AI", "en")
        assert artifact.poem_is_fallback

    def test_blank_poem_uses_template(self, config, gateway):
        gateway.replies["text"] = "   "
        artifact = asyncio.run(PoetAgent(config, gateway).compose("AI", make_prediction()))
        assert artifact.poem_is_fallback

    def test_fallbacks_are_deterministic(self):
        assert fallback_image_url("a b/c") == "https://picsum.photos/seed/a%20b%2Fc/800/800"
        assert fallback_poem("AI", "zh") == "AI之光，\n穿梭时光的长廊，\n过去与未来交响，\n编织永恒的篇章。"
        assert fallback_poem("AI", "xx") == fallback_poem("AI", "en")


class TestTranslator:
    def test_translate_item(self, config, gateway):
        gateway.replies["text"] = ["Titre", "Résumé"]
        item = NewsItem(title="Title", summary="Summary", source="s", url="u")
        translation = asyncio.run(TranslatorAgent(config, gateway).translate_item(item))
        assert {translation.title, translation.summary} == {"Titre", "Résumé"}
        assert gateway.count("text") == 2
        assert "into English" in gateway.prompts("text")[0]

    def test_failure_returns_original(self, config, gateway):
        gateway.replies["text"] = GatewayError("down")
        assert asyncio.run(TranslatorAgent(config, gateway).translate("Hola")) == "Hola"

    def test_empty_text_skips_call(self, config, gateway):
        assert asyncio.run(TranslatorAgent(config, gateway).translate("  ")) == "  "
        assert gateway.calls == []
