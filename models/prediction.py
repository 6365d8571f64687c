"""Future prediction models.

The oracle agent projects the present analysis forward: a set of near-term
events for the next 12 months and one bolder vision of the distant future.
The visual_prompt field is never shown to the user; it only feeds the share
card's image generation.
"""

from pydantic import BaseModel, ConfigDict, Field


class NearTermEvent(BaseModel):
    """A predicted event within the next year."""

    model_config = ConfigDict(frozen=True)

    timeframe: str = Field(description="e.g. 'Next Month', 'In 6 Months', 'End of Year'")
    event: str = Field(description="What is likely to happen")


class DistantVision(BaseModel):
    """Prediction for the distant future (beyond one year)."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(description="Name of the distant scenario")
    description: str = Field(description="Brief, bold description of the distant future")


class FuturePrediction(BaseModel):
    """Prediction report for the "future" phase."""

    model_config = ConfigDict(frozen=True)

    scenario_title: str = Field(description="Title of the most likely scenario")
    probability: str = Field(description="Likelihood label, e.g. High, Moderate, Low")
    description: str = Field(description="General outlook for the near future")
    near_term_events: list[NearTermEvent] = Field(
        default_factory=list,
        description="Predictions for the next 12 months",
    )
    distant_vision: DistantVision = Field(
        description="Prediction for the distant future (beyond 1 year)"
    )
    visual_prompt: str = Field(
        default="",
        description="A visual description of this future scenario, for an illustration",
    )

    def __str__(self) -> str:
        return f"FuturePrediction('{self.scenario_title[:50]}', events={len(self.near_term_events)})"
