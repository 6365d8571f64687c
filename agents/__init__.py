"""Gemini-backed agents for the Time Poem pipeline.

ModelGateway:
    The only component that talks to the model service (grounded text,
    plain text, structured output, images).

HistorianAgent:
    Past search: grounded search + structured extraction of news items.

AnalystAgent:
    Present analysis of the month's news.

OracleAgent:
    Future prediction (next year + distant vision).

PoetAgent:
    Poem + image share card with deterministic fallbacks.

TranslatorAgent:
    Fail-soft translation of news items.

Example:
    >>> from agents import ModelGateway, HistorianAgent
    >>> gateway = ModelGateway(config)
    >>> items = await HistorianAgent(config, gateway).search("AI")
"""

from agents.gateway import ModelGateway, GatewayError, SchemaViolation
from agents.historian import HistorianAgent
from agents.analyst import AnalystAgent
from agents.oracle import OracleAgent
from agents.poet import PoetAgent
from agents.translator import TranslatorAgent

__all__ = [
    "ModelGateway",
    "GatewayError",
    "SchemaViolation",
    "HistorianAgent",
    "AnalystAgent",
    "OracleAgent",
    "PoetAgent",
    "TranslatorAgent",
]
