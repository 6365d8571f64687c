"""Historian agent: the "past" stage.

The historian gathers the most significant news about a keyword from the
recent past. It runs two sequential gateway calls:

    1. Grounded search (Gemini + Google Search) producing prose and citations.
       The recency window is stated in the prompt only; the model may still
       return older items and nothing filters them out.
    2. Structured extraction turning prose + numbered source list into
       exactly NEWS_ITEM_COUNT NewsDraft records.

Drafts are normalized into NewsItem records with defaults for missing
fields. Extra drafts are dropped and a short extraction is padded from
unused citations, then from default items, so a successful search always
yields exactly NEWS_ITEM_COUNT items. This stage never raises: any failure
(or an empty extraction) degrades to a single synthetic error item.

Prompts are English only. Items keep the language of their sources and are
localized on demand by the translator.
"""

import logging

from agents.gateway import Citation, GatewayError, ModelGateway
from config import Config
from models.news import DEFAULT_SOURCE, DEFAULT_SUMMARY, NewsDigest, NewsDraft, NewsItem

logger = logging.getLogger(__name__)


SEARCH_PROMPT = """Find the most significant news and events regarding "{keyword}" that occurred specifically within the **last {days} days**.
Do not include old history. Focus only on the most recent developments from this period.
Provide a comprehensive text summary that cites at least {count} distinct recent items."""

EXTRACTION_PROMPT = """Analyze the following Search Summary (which covers the last {days} days) and Source List.
Extract {count} distinct news items or events related to "{keyword}".

Search Summary:
"{summary}"

Source List:
{sources}

Requirements:
- 'title': Concise title of the event.
- 'summary': A detailed 2-3 sentence summary. Ensure it reflects recent events.
- 'source': The publisher name.
- 'url': The most relevant URL from the Source List.
- 'date': The specific date or "X days ago".
- 'original_language': Detect the language of the source (e.g., 'en', 'zh')."""


class HistorianAgent:
    """Runs the past search for a keyword.

    Example:
        >>> historian = HistorianAgent(config, gateway)
        >>> items = await historian.search("AI")
        >>> len(items)
        6
    """

    def __init__(self, config: Config, gateway: ModelGateway):
        self.config = config
        self.gateway = gateway

    def _build_extraction_prompt(self, keyword: str, summary: str, sources: str) -> str:
        return EXTRACTION_PROMPT.format(
            days=self.config.search_window_days,
            count=self.config.news_item_count,
            keyword=keyword,
            summary=summary[: self.config.search_context_chars],
            sources=sources or "(no sources returned)",
        )

    def _fill_shortfall(self, items: list[NewsItem], citations: list[Citation], keyword: str) -> list[NewsItem]:
        """Pad items up to NEWS_ITEM_COUNT.

        Citations not referenced by any item are used first, then items
        made entirely of defaults.
        """
        target = self.config.news_item_count
        used = {item.url for item in items}
        for citation in citations:
            if len(items) >= target:
                break
            if citation.uri in used:
                continue
            used.add(citation.uri)
            items.append(NewsItem(
                title=citation.title,
                summary=DEFAULT_SUMMARY,
                source=DEFAULT_SOURCE,
                url=citation.uri,
            ))
        while len(items) < target:
            items.append(NewsItem.from_draft(NewsDraft(), keyword))
        return items

    async def search(self, keyword: str) -> list[NewsItem]:
        """Search recent news for a keyword.

        Args:
            keyword: Non-empty keyword under exploration

        Returns:
            Up to NEWS_ITEM_COUNT items, or a single error item on failure
        """
        keyword = keyword.strip()
        if not keyword:
            raise ValueError("keyword must not be empty")

        try:
            grounded = await self.gateway.generate_grounded(
                SEARCH_PROMPT.format(
                    keyword=keyword,
                    days=self.config.search_window_days,
                    count=self.config.news_item_count,
                )
            )
            prompt = self._build_extraction_prompt(keyword, grounded.text, grounded.format_sources())
            digest = await self.gateway.generate_structured(prompt, NewsDigest)
        except GatewayError as e:
            logger.error("Past search failed | keyword=%s error=%s type=%s", keyword, e, type(e).__name__)
            return [NewsItem.error_item(keyword)]

        drafts = digest.items[: self.config.news_item_count]
        if not drafts:
            logger.warning("Past search extracted no items | keyword=%s", keyword)
            return [NewsItem.error_item(keyword)]
        items = [NewsItem.from_draft(draft, keyword) for draft in drafts]
        if len(items) < self.config.news_item_count:
            logger.warning(
                "Past search returned fewer items than requested, padding | keyword=%s got=%d want=%d",
                keyword, len(items), self.config.news_item_count,
            )
            items = self._fill_shortfall(items, grounded.citations, keyword)

        logger.info(
            "Past search complete | keyword=%s items=%d citations=%d",
            keyword, len(items), len(grounded.citations),
        )
        return items
