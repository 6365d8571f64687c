"""Present analysis models.

The analyst agent turns the past month's news items into a PresentAnalysis
report. The report is also the structured output schema, so field
descriptions double as instructions to the model.
"""

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator


class KeyTheme(BaseModel):
    """One recurring theme across the month's news."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(description="Short theme name")
    description: str = Field(description="What the theme covers and why it matters")
    icon: str = Field(default="", description="A single emoji representing this theme")


class PresentAnalysis(BaseModel):
    """Analysis report for the "present" phase.

    Attributes:
        summary_title: Headline for the month
        overview: Summary of the news from the last month
        detailed_analysis: Deeper insights, patterns and implications
        key_themes: Ordered recurring themes
        sentiment_score: 0 (negative) to 100 (positive), clamped on validation
    """

    model_config = ConfigDict(frozen=True)

    summary_title: str = Field(description="Headline summarizing the month")
    overview: str = Field(description="A summary of the news from the last month")
    detailed_analysis: str = Field(
        description="Deep insights, patterns, or implications derived from these recent events"
    )
    key_themes: list[KeyTheme] = Field(default_factory=list, description="Key themes")
    sentiment_score: int = Field(description="0 (Negative) to 100 (Positive)")

    @field_validator("sentiment_score", mode="before")
    @classmethod
    def _clamp_sentiment(cls, value: object) -> object:
        """Round and clamp the score into [0, 100].

        Models sometimes answer 72.5 or 120; both are coerced instead of
        rejected. Non-numeric values fall through to normal validation.
        """
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            try:
                value = float(value.strip())
            except ValueError:
                return value
        if isinstance(value, (int, float)):
            if isinstance(value, float) and math.isnan(value):
                return 50
            return int(min(100, max(0, round(value))))
        return value

    @property
    def sentiment_label(self) -> str:
        if self.sentiment_score > 70:
            return "positive"
        if self.sentiment_score > 40:
            return "neutral"
        return "negative"

    def __str__(self) -> str:
        return f"PresentAnalysis('{self.summary_title[:50]}', sentiment={self.sentiment_score})"
