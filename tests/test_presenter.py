"""Tests for markdown rendering and the CLI commands."""

from __future__ import annotations

import argparse
import json
from dataclasses import replace

import timeline
from main import cmd_explore, cmd_status
from models.news import NewsItem
from models.poetic import PoeticArtifact
from presenter import render_snapshot
from timeline import Job, Phase, SessionState

from conftest import make_analysis, make_prediction


def _past_state():
    transition = timeline.submit(SessionState(), "AI", session_id="s1")
    items = [
        NewsItem(title="Chip launch", summary="A new chip.", source="Wire", url="https://a", date="3 days ago"),
        NewsItem(title="欧盟法案", summary="通过。", source="新闻", url="https://b", original_language="zh")
        .with_translation("EU act", "Passed."),
    ]
    return timeline.complete(transition.state, transition.commands[0], items).state


class TestRenderSnapshot:
    def test_input_state_shows_intro(self):
        assert "Enter a keyword" in render_snapshot(SessionState())

    def test_past_phase(self):
        text = render_snapshot(_past_state(), days=30)
        assert "# Time Poem: AI" in text
        assert "[Past] | Present | ~~Future~~" in text
        assert "Echoes from the last 30 days" in text
        assert "### Chip launch" in text
        assert "*Wire · 3 days ago*" in text
        assert "### EU act" in text
        assert "translated from zh" in text
        assert "## The Present" not in text

    def test_searching_shows_progress(self):
        state = timeline.submit(SessionState(), "AI").state
        assert "_Gathering echoes..._" in render_snapshot(state)

    def test_present_and_future(self):
        state = replace(
            _past_state(),
            phase=Phase.FUTURE,
            present_analysis=make_analysis(sentiment=80),
            future_prediction=make_prediction(),
            enabled=frozenset(Phase),
        )
        text = render_snapshot(state)
        assert "**Sentiment:** 80/100 (positive)" in text
        assert "- 🚀 **Launches**: New models shipped" in text
        assert "### Steady acceleration" in text
        assert "- **Next Month**: Another release" in text
        assert "#### Distant Vision: Quiet ubiquity" in text

    def test_failed_analysis_shows_retry_hint(self):
        state = replace(_past_state(), errors=((Job.PRESENT_ANALYSIS, "GatewayError: quota"),))
        text = render_snapshot(state)
        assert "Analysis failed (GatewayError: quota)" in text
        assert "Open the Present phase again to retry." in text

    def test_artifact_with_fallback_image(self):
        artifact = PoeticArtifact(poem="line one\nline two", image_url="https://picsum.photos/seed/AI/800/800")
        text = render_snapshot(replace(_past_state(), poetic_artifact=artifact))
        assert "> line one\n> line two" in text
        assert "![time poem](https://picsum.photos/seed/AI/800/800)" in text

    def test_artifact_with_saved_image(self):
        artifact = PoeticArtifact(poem="p", image_data=b"12345")
        text = render_snapshot(replace(_past_state(), poetic_artifact=artifact), image_path="card.png")
        assert "![time poem](card.png)" in text


def _explore_args(**overrides):
    values = {
        "keyword": "AI",
        "until": "future",
        "poem": False,
        "translate": False,
        "json": False,
        "output": None,
        "image_out": None,
    }
    values.update(overrides)
    return argparse.Namespace(**values)


class TestCli:
    def test_explore_renders_markdown(self, config, gateway, monkeypatch, capsys):
        monkeypatch.setattr("pipeline.ModelGateway", lambda config: gateway)
        assert cmd_explore(_explore_args(), config) == 0
        out = capsys.readouterr().out
        assert "## The Past" in out
        assert "## The Future" in out

    def test_explore_json_with_poem_and_image(self, config, gateway, monkeypatch, capsys, tmp_path):
        monkeypatch.setattr("pipeline.ModelGateway", lambda config: gateway)
        image_out = tmp_path / "card.png"
        code = cmd_explore(_explore_args(json=True, poem=True, image_out=str(image_out)), config)
        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data["keyword"] == "AI"
        assert data["poetic_artifact"]["fallback_image"] is False
        assert image_out.read_bytes() == b"\x89PNG fake"

    def test_explore_until_past_skips_analysis(self, config, gateway, monkeypatch, capsys):
        monkeypatch.setattr("pipeline.ModelGateway", lambda config: gateway)
        assert cmd_explore(_explore_args(until="past"), config) == 0
        assert gateway.count("PresentAnalysis") == 0

    def test_explore_reports_failed_stage(self, config, gateway, monkeypatch, capsys):
        from agents.gateway import GatewayError

        gateway.replies["PresentAnalysis"] = GatewayError("quota")
        monkeypatch.setattr("pipeline.ModelGateway", lambda config: gateway)
        assert cmd_explore(_explore_args(), config) == 2
        assert "present_analysis" in capsys.readouterr().err

    def test_explore_writes_output_file(self, config, gateway, monkeypatch, tmp_path):
        monkeypatch.setattr("pipeline.ModelGateway", lambda config: gateway)
        output = tmp_path / "out" / "ai.md"
        assert cmd_explore(_explore_args(until="past", output=str(output)), config) == 0
        assert output.read_text(encoding="utf-8").startswith("# Time Poem: AI")

    def test_status(self, config, capsys):
        assert cmd_status(argparse.Namespace(), config) == 0
        status = json.loads(capsys.readouterr().out)
        assert status["config"]["api_key_set"] is True
        assert status["validation"] == "ok"
