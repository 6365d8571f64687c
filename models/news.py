"""News item models for the "past" stage.

This module defines the models produced by the past search. The search runs
in two model calls: a grounded search that returns prose plus citations, and
a structured extraction that turns that prose into NewsDraft records. Drafts
are then normalized into NewsItem instances with defaults for missing fields.

Model Hierarchy:
    NewsDraft: Raw extraction output (every field optional)
    NewsDigest: Structured output wrapper (list of drafts)
    NewsItem: Normalized, immutable item owned by the session
"""

import uuid
from urllib.parse import quote_plus

from pydantic import BaseModel, ConfigDict, Field

DEFAULT_TITLE = "Unknown Title"
DEFAULT_SUMMARY = "No summary available."
DEFAULT_SOURCE = "Web"
DEFAULT_LANGUAGE = "en"


def search_fallback_url(keyword: str) -> str:
    """Build the search-engine URL used when an item has no source URL."""
    return f"https://www.google.com/search?q={quote_plus(keyword)}"


def new_item_id() -> str:
    """Generate a random, call-scoped item identifier."""
    return uuid.uuid4().hex


class NewsDraft(BaseModel):
    """Single news record as extracted by the model.

    All fields are optional so that a partially filled record still
    validates; NewsItem.from_draft supplies the defaults.
    """

    title: str | None = Field(default=None, description="Concise title of the event")
    summary: str | None = Field(
        default=None,
        description="A detailed 2-3 sentence summary reflecting recent events",
    )
    source: str | None = Field(default=None, description="The publisher name")
    url: str | None = Field(default=None, description="The most relevant URL")
    date: str | None = Field(default=None, description="The specific date or 'X days ago'")
    original_language: str | None = Field(
        default=None,
        description="Detected language code of the source (e.g. 'en', 'zh')",
    )


class NewsDigest(BaseModel):
    """Structured extraction output: the news items found in the search prose."""

    items: list[NewsDraft] = Field(
        default_factory=list,
        description="Distinct recent news items or events",
    )


class NewsItem(BaseModel):
    """A news item shown in the "past" phase.

    Items are immutable. The only change an item ever sees is the attachment
    of a translated title/summary pair, which produces a new copy via
    with_translation() and happens at most once.

    Attributes:
        id: Random opaque identifier (not derived from content)
        title: Event headline
        summary: 2-3 sentence summary
        source: Publisher name
        url: Canonical URL (or a search fallback)
        date: Optional display date, free text
        original_language: Detected source language code
        translated_title: Translated headline, once translated
        translated_summary: Translated summary, once translated
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_item_id, description="Opaque identifier")
    title: str = Field(description="Event headline")
    summary: str = Field(description="Short summary")
    source: str = Field(description="Publisher name")
    url: str = Field(description="Canonical URL")
    date: str | None = Field(default=None, description="Display date (free text)")
    original_language: str = Field(default=DEFAULT_LANGUAGE, description="Source language")
    translated_title: str | None = Field(default=None, description="Translated title")
    translated_summary: str | None = Field(default=None, description="Translated summary")

    @classmethod
    def from_draft(cls, draft: NewsDraft, keyword: str) -> "NewsItem":
        """Normalize an extracted draft, filling defaults for missing fields.

        Args:
            draft: Raw extraction output
            keyword: Keyword under search (used for the fallback URL)

        Returns:
            NewsItem with a freshly generated id
        """
        return cls(
            title=draft.title or DEFAULT_TITLE,
            summary=draft.summary or DEFAULT_SUMMARY,
            source=draft.source or DEFAULT_SOURCE,
            url=draft.url or search_fallback_url(keyword),
            date=draft.date or None,
            original_language=draft.original_language or DEFAULT_LANGUAGE,
        )

    @classmethod
    def error_item(cls, keyword: str) -> "NewsItem":
        """Create the synthetic item shown when the past search fails."""
        return cls(
            title=f"Error retrieving data for {keyword}",
            summary="Please try again later.",
            source="System",
            url="#",
            original_language=DEFAULT_LANGUAGE,
        )

    @property
    def is_translated(self) -> bool:
        return self.translated_title is not None

    @property
    def display_title(self) -> str:
        return self.translated_title or self.title

    @property
    def display_summary(self) -> str:
        return self.translated_summary or self.summary

    def with_translation(self, title: str, summary: str) -> "NewsItem":
        """Return a copy carrying the translated title and summary."""
        return self.model_copy(update={"translated_title": title, "translated_summary": summary})

    def __str__(self) -> str:
        """Human-readable representation for logging."""
        return f"NewsItem({self.id[:8]}..., '{self.title[:50]}')"
