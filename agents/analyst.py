"""Analyst agent: the "present" stage.

Turns the past month's news items into a PresentAnalysis report with one
structured gateway call. Unlike the past search this stage does not degrade:
gateway failures propagate so the session can leave the slot empty and let
the user retry by navigating again.
"""

import logging

from agents.gateway import ModelGateway
from config import Config
from models.analysis import PresentAnalysis
from models.news import NewsItem

logger = logging.getLogger(__name__)


ANALYST_PROMPTS = {
    "zh": """请基于以下资料，分析关键词"{keyword}"在**最近一个月**的新闻动态：

{context}

请撰写一份完整的报告（"现在"）：
1. summary_title：概括本月动态的标题。
2. overview：总结这个月发生了什么。
3. detailed_analysis：深入分析这些事件对该关键词意味着什么。
4. key_themes：3-5个关键主题，每个主题包含标题、说明和一个代表性的emoji。
5. sentiment_score：0（负面）到100（正面）之间的整数。

【重要】所有文字内容请使用简体中文。""",
    "en": """Analyze the news from the **last month** regarding "{keyword}" based on these contexts:

{context}

Provide a comprehensive report (The "Present"):
1. summary_title: A headline for what happened this month.
2. overview: Summarize what happened this month.
3. detailed_analysis: Detailed analysis and insights on what these events mean for the keyword.
4. key_themes: 3-5 key themes, each with a title, a description and a single emoji icon.
5. sentiment_score: An integer from 0 (negative) to 100 (positive).

Write all text in English.""",
}


def build_news_context(items: list[NewsItem]) -> str:
    """Format news items as the analysis context block."""
    return "\n---\n".join(f"Title: {item.title}\nSummary: {item.summary}" for item in items)


class AnalystAgent:
    """Produces the present analysis from news items."""

    def __init__(self, config: Config, gateway: ModelGateway):
        self.config = config
        self.gateway = gateway

    async def analyze(self, keyword: str, items: list[NewsItem]) -> PresentAnalysis:
        """Analyze the month's news for a keyword.

        Args:
            keyword: Keyword under exploration
            items: News items from the past stage (must be non-empty)

        Returns:
            PresentAnalysis with sentiment clamped to [0, 100]

        Raises:
            ValueError: If items is empty
            GatewayError: If the model call fails
        """
        if not items:
            raise ValueError("present analysis requires at least one news item")

        template = ANALYST_PROMPTS.get(self.config.language, ANALYST_PROMPTS["en"])
        prompt = template.format(keyword=keyword, context=build_news_context(items))
        analysis = await self.gateway.generate_structured(prompt, PresentAnalysis)

        logger.info(
            "Present analysis complete | keyword=%s themes=%d sentiment=%d",
            keyword, len(analysis.key_themes), analysis.sentiment_score,
        )
        return analysis
