"""Shared fixtures: a scripted fake gateway and sample stage outputs."""

from __future__ import annotations

import asyncio
from collections import defaultdict
from typing import Any

import pytest

from agents.gateway import Citation, GatewayUsage, GeneratedImage, GroundedText
from config import Config
from controller import SessionController
from models.analysis import KeyTheme, PresentAnalysis
from models.news import NewsDigest, NewsDraft
from models.prediction import DistantVision, FuturePrediction, NearTermEvent
from pipeline import StagePipeline


def make_digest(count: int = 6) -> NewsDigest:
    return NewsDigest(
        items=[
            NewsDraft(
                title=f"Event {i}",
                summary=f"Something happened, part {i}.",
                source=f"Outlet {i}",
                url=f"https://news.example/{i}",
                date=f"{i} days ago",
                original_language="en",
            )
            for i in range(1, count + 1)
        ]
    )


def make_analysis(sentiment: int = 64) -> PresentAnalysis:
    return PresentAnalysis(
        summary_title="A busy month",
        overview="Lots of launches.",
        detailed_analysis="Competition is heating up.",
        key_themes=[KeyTheme(title="Launches", description="New models shipped", icon="🚀")],
        sentiment_score=sentiment,
    )


def make_prediction() -> FuturePrediction:
    return FuturePrediction(
        scenario_title="Steady acceleration",
        probability="High",
        description="More of the same, faster.",
        near_term_events=[NearTermEvent(timeframe="Next Month", event="Another release")],
        distant_vision=DistantVision(title="Quiet ubiquity", description="It fades into everything."),
        visual_prompt="A city of glass and light",
    )


class FakeGateway:
    """Scripted stand-in for ModelGateway.

    Replies are keyed by operation ("grounded", "text", "image") or by the
    structured schema name. A reply that is an exception instance is raised;
    a list of replies is consumed in order. hold(key) makes calls for that
    key wait until release(key).
    """

    def __init__(self) -> None:
        self.usage = GatewayUsage()
        self.calls: list[tuple[str, str]] = []
        self.replies: dict[str, Any] = {
            "grounded": GroundedText(
                text="A month of news.",
                citations=[Citation(title="Outlet 1", uri="https://news.example/1")],
            ),
            "text": "Translated text",
            "image": GeneratedImage(data=b"\x89PNG fake", mime_type="image/png"),
            "NewsDigest": make_digest(),
            "PresentAnalysis": make_analysis(),
            "FuturePrediction": make_prediction(),
        }
        self._holds: dict[str, asyncio.Event] = {}

    def count(self, key: str) -> int:
        return sum(1 for k, _ in self.calls if k == key)

    def prompts(self, key: str) -> list[str]:
        return [p for k, p in self.calls if k == key]

    def hold(self, key: str) -> None:
        self._holds[key] = asyncio.Event()

    def release(self, key: str) -> None:
        self._holds.pop(key).set()

    async def _reply(self, key: str, prompt: str) -> Any:
        self.calls.append((key, prompt))
        self.usage.calls += 1
        if key in self._holds:
            await self._holds[key].wait()
        reply = self.replies[key]
        if isinstance(reply, list):
            reply = reply.pop(0) if len(reply) > 1 else reply[0]
        if isinstance(reply, BaseException):
            self.usage.failures += 1
            raise reply
        return reply

    async def generate_grounded(self, prompt: str) -> GroundedText:
        return await self._reply("grounded", prompt)

    async def generate_text(self, prompt: str) -> str:
        return await self._reply("text", prompt)

    async def generate_structured(self, prompt: str, schema: type) -> Any:
        return await self._reply(schema.__name__, prompt)

    async def generate_image(self, prompt: str, aspect_ratio: str | None = None) -> GeneratedImage | None:
        return await self._reply("image", prompt)


@pytest.fixture
def config(tmp_path) -> Config:
    return Config(gemini_api_key="test-key", language="en", log_dir=tmp_path / "log")


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def pipeline(config, gateway) -> StagePipeline:
    return StagePipeline(config, gateway=gateway)


@pytest.fixture
def controller(config, pipeline) -> SessionController:
    return SessionController(config, pipeline=pipeline)
