"""Translator agent for news items.

Translation is a side operation outside the four-stage pipeline. It is fail
soft: on any gateway error the original text is returned unchanged, so the
caller never sees an error.
"""

import asyncio
import logging
from dataclasses import dataclass

from agents.gateway import GatewayError, ModelGateway
from config import Config
from models.news import NewsItem

logger = logging.getLogger(__name__)


TRANSLATE_PROMPT = """Translate the following text into {language}. If it is already in {language}, return it as is.
Output only the translation.

Text: "{text}"
"""


@dataclass(frozen=True)
class Translation:
    """Translated title and summary of one news item."""

    title: str
    summary: str


class TranslatorAgent:
    """Translates text into the configured output language."""

    def __init__(self, config: Config, gateway: ModelGateway):
        self.config = config
        self.gateway = gateway

    async def translate(self, text: str) -> str:
        """Translate text, returning it unchanged if the call fails."""
        if not text.strip():
            return text
        prompt = TRANSLATE_PROMPT.format(language=self.config.language_name, text=text)
        try:
            translated = await self.gateway.generate_text(prompt)
        except GatewayError as e:
            logger.warning("Translation failed, keeping original | chars=%d error=%s", len(text), e)
            return text
        return translated.strip() or text

    async def translate_item(self, item: NewsItem) -> Translation:
        """Translate an item's title and summary concurrently."""
        title, summary = await asyncio.gather(
            self.translate(item.title),
            self.translate(item.summary),
        )
        logger.info("Item translated | id=%s language=%s", item.id[:8], self.config.language)
        return Translation(title=title, summary=summary)
