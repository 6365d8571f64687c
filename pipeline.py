"""Stage pipeline: executes the commands emitted by the phase state machine.

Pipeline Flow:
    1. PAST_SEARCH: Grounded search + structured extraction -> NewsItem[]
    2. PRESENT_ANALYSIS: NewsItem[] -> PresentAnalysis
    3. FUTURE_PREDICTION: PresentAnalysis -> FuturePrediction
    4. POETIC_SYNTHESIS: FuturePrediction -> PoeticArtifact (on demand)
    (side job) TRANSLATION: NewsItem -> Translation

Each stage is a stateless async transformation owned by one agent. The
pipeline only routes a Command to its agent; ordering, caching and gating
live in timeline.py.

Failure Isolation:
    - PAST_SEARCH never raises (degrades to one error item)
    - PRESENT_ANALYSIS / FUTURE_PREDICTION raise GatewayError
    - POETIC_SYNTHESIS / TRANSLATION never raise GatewayError (fallbacks)
"""

import logging
from typing import Any

from agents.analyst import AnalystAgent
from agents.gateway import ModelGateway
from agents.historian import HistorianAgent
from agents.oracle import OracleAgent
from agents.poet import PoetAgent
from agents.translator import TranslatorAgent
from config import Config
from timeline import Command, Job

logger = logging.getLogger(__name__)


class StagePipeline:
    """Routes commands to the stage agents sharing one gateway.

    Components:
        - HistorianAgent: past search
        - AnalystAgent: present analysis
        - OracleAgent: future prediction
        - PoetAgent: share card
        - TranslatorAgent: per-item translation
    """

    def __init__(self, config: Config, gateway: ModelGateway | None = None):
        """Initialize the pipeline and its agents.

        Args:
            config: Application configuration
            gateway: Shared model gateway (created from config if omitted)
        """
        self.config = config
        self.gateway = gateway or ModelGateway(config)
        self.historian = HistorianAgent(config, self.gateway)
        self.analyst = AnalystAgent(config, self.gateway)
        self.oracle = OracleAgent(config, self.gateway)
        self.poet = PoetAgent(config, self.gateway)
        self.translator = TranslatorAgent(config, self.gateway)

    async def execute(self, command: Command) -> Any:
        """Run the job described by a command and return its result.

        Raises:
            GatewayError: From PRESENT_ANALYSIS and FUTURE_PREDICTION
            ValueError: If the command lacks the input its job needs
        """
        logger.debug("Executing job | job=%s session=%s", command.job.value, command.session_id)

        if command.job is Job.PAST_SEARCH:
            return await self.historian.search(command.keyword)

        if command.job is Job.PRESENT_ANALYSIS:
            return await self.analyst.analyze(command.keyword, list(command.news_items))

        if command.job is Job.FUTURE_PREDICTION:
            if command.analysis is None:
                raise ValueError("future prediction requires a present analysis")
            return await self.oracle.predict(command.keyword, command.analysis)

        if command.job is Job.POETIC_SYNTHESIS:
            if command.prediction is None:
                raise ValueError("share card requires a future prediction")
            return await self.poet.compose(command.keyword, command.prediction)

        if command.job is Job.TRANSLATION:
            if command.item is None:
                raise ValueError("translation requires a news item")
            return await self.translator.translate_item(command.item)

        raise ValueError(f"unknown job {command.job!r}")
