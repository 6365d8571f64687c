"""Pydantic models for the Time Poem keyword explorer.

NewsItem:
    One recent news item from the past search (immutable, random id).
    NewsDraft / NewsDigest are the raw structured extraction schema.

PresentAnalysis / KeyTheme:
    The present phase report. Sentiment is clamped to [0, 100].

FuturePrediction / NearTermEvent / DistantVision:
    The future phase report.

PoeticArtifact:
    Poem + image share card (inline bytes or fallback URL).

Example:
    >>> from models import NewsItem, PresentAnalysis
    >>> item = NewsItem.from_draft(NewsDraft(title="..."), keyword="AI")
"""

from models.news import NewsItem, NewsDraft, NewsDigest
from models.analysis import PresentAnalysis, KeyTheme
from models.prediction import FuturePrediction, NearTermEvent, DistantVision
from models.poetic import PoeticArtifact

__all__ = [
    "NewsItem",
    "NewsDraft",
    "NewsDigest",
    "PresentAnalysis",
    "KeyTheme",
    "FuturePrediction",
    "NearTermEvent",
    "DistantVision",
    "PoeticArtifact",
]
