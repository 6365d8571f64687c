"""Poet agent: the share card ("time poem").

Writes a short poem about the keyword's journey from past to future and
generates an illustration of the predicted future. The two requests are
independent and run concurrently.

Both halves degrade instead of failing:
    - No poem (error or empty text) -> templated four-line poem
    - No image (error or no image part) -> seeded placeholder image URL
"""

import asyncio
import logging
from urllib.parse import quote

from agents.gateway import GatewayError, GeneratedImage, ModelGateway
from config import Config
from models.poetic import PoeticArtifact
from models.prediction import FuturePrediction

logger = logging.getLogger(__name__)


POEM_PROMPTS = {
    "zh": """请以关键词"{keyword}"为题，写一首简短优雅的四行中文诗。
反思它从过去走向未来的旅程，未来被描述为："{vision}"。
风格：神秘、深邃、富有哲思。
只输出诗句本身。""",
    "en": """Write a short, elegant, 4-line poem in English about the keyword "{keyword}".
Reflect on its journey from the past to the future described as: "{vision}".
Style: Mystical, deep, philosophical.
Output raw text only.""",
}

FALLBACK_POEMS = {
    "zh": "{keyword}之光，\n穿梭时光的长廊，\n过去与未来交响，\n编织永恒的篇章。",
    "en": "The light of {keyword},\nthreading the halls of time,\npast and future in chorus,\nweaving an endless rhyme.",
}

IMAGE_PROMPT = """A surreal, artistic, and elegant masterpiece illustration representing the concept of '{keyword}' evolving into the future.
Visual elements: {visual}.
Style: Cinematic, Ethereal, Oil Painting, highly detailed, 4k, golden hour lighting, dreamy atmosphere."""


def fallback_image_url(keyword: str) -> str:
    """Deterministic placeholder image for a keyword."""
    return f"https://picsum.photos/seed/{quote(keyword, safe='')}/800/800"


def fallback_poem(keyword: str, language: str) -> str:
    """Deterministic templated poem for a keyword."""
    return FALLBACK_POEMS.get(language, FALLBACK_POEMS["en"]).format(keyword=keyword)


class PoetAgent:
    """Composes the poem + image share card."""

    def __init__(self, config: Config, gateway: ModelGateway):
        self.config = config
        self.gateway = gateway

    async def _write_poem(self, keyword: str, prediction: FuturePrediction) -> str | None:
        template = POEM_PROMPTS.get(self.config.language, POEM_PROMPTS["en"])
        prompt = template.format(keyword=keyword, vision=prediction.distant_vision.title)
        try:
            poem = await self.gateway.generate_text(prompt)
        except GatewayError as e:
            logger.warning("Poem generation failed, using template | keyword=%s error=%s", keyword, e)
            return None
        return poem.strip() or None

    async def _paint(self, keyword: str, prediction: FuturePrediction) -> GeneratedImage | None:
        visual = prediction.visual_prompt or prediction.distant_vision.description
        try:
            return await self.gateway.generate_image(
                IMAGE_PROMPT.format(keyword=keyword, visual=visual),
                aspect_ratio=self.config.image_aspect_ratio,
            )
        except GatewayError as e:
            logger.warning("Image generation failed, using placeholder | keyword=%s error=%s", keyword, e)
            return None

    async def compose(self, keyword: str, prediction: FuturePrediction) -> PoeticArtifact:
        """Compose the share card for a prediction. Never raises GatewayError."""
        poem, image = await asyncio.gather(
            self._write_poem(keyword, prediction),
            self._paint(keyword, prediction),
        )

        artifact = PoeticArtifact(
            poem=poem or fallback_poem(keyword, self.config.language),
            poem_is_fallback=poem is None,
            image_data=image.data if image else None,
            image_mime_type=image.mime_type if image else "image/png",
            image_url=None if image else fallback_image_url(keyword),
        )
        logger.info(
            "Share card composed | keyword=%s image=%s poem=%s",
            keyword,
            "fallback" if artifact.is_fallback_image else "inline",
            "fallback" if artifact.poem_is_fallback else "generated",
        )
        return artifact
