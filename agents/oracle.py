"""Oracle agent: the "future" stage.

Projects the present analysis into a FuturePrediction: reasonable
predictions for the next year plus one bold vision of the distant future.
Failures propagate to the caller, like the analyst.
"""

import logging

from agents.gateway import ModelGateway
from config import Config
from models.analysis import PresentAnalysis
from models.prediction import FuturePrediction

logger = logging.getLogger(__name__)


ORACLE_PROMPTS = {
    "zh": """基于对"{keyword}"上个月新闻的分析，预测它的未来。

1. 对**未来一年**给出合理的预测（near_term_events，每条包含时间范围和事件）。
2. 对**遥远的未来**给出简短而大胆的预言（distant_vision）。
3. 给出情景标题、可能性（高/中/低）和总体展望。
4. visual_prompt：用英文描述这个未来情景的画面，用于生成插画。

既要有创造力，又要立足于所提供的背景。除 visual_prompt 外，所有内容使用简体中文。

背景：{context}""",
    "en": """Based on the analysis of the last month's news for "{keyword}", predict the future.

1. Provide reasonable predictions for the **Next 1 Year** (near_term_events, each with a timeframe and an event).
2. Provide a brief, bold prediction for the **Distant Future** (distant_vision).
3. Give a scenario title, a probability label (High, Moderate, Low) and a general outlook.
4. visual_prompt: A visual description of this future scenario for an illustration.

Be creative but grounded in the provided context. Write all text in English.

Context: {context}""",
}


def build_present_context(analysis: PresentAnalysis) -> str:
    """Condense a present analysis into the prediction context line."""
    return (
        f"Current Status (Last Month): {analysis.overview}. "
        f"Insights: {analysis.detailed_analysis}. "
        f"Sentiment: {analysis.sentiment_score}"
    )


class OracleAgent:
    """Produces the future prediction from the present analysis."""

    def __init__(self, config: Config, gateway: ModelGateway):
        self.config = config
        self.gateway = gateway

    async def predict(self, keyword: str, analysis: PresentAnalysis) -> FuturePrediction:
        """Predict the future of a keyword.

        Raises:
            GatewayError: If the model call fails
        """
        template = ORACLE_PROMPTS.get(self.config.language, ORACLE_PROMPTS["en"])
        prompt = template.format(keyword=keyword, context=build_present_context(analysis))
        prediction = await self.gateway.generate_structured(prompt, FuturePrediction)

        logger.info(
            "Future prediction complete | keyword=%s events=%d vision=%s",
            keyword, len(prediction.near_term_events), prediction.distant_vision.title[:40],
        )
        return prediction
