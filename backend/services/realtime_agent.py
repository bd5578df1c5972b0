"""Realtime agent: answers questions about what is happening now."""
import json
import logging
from typing import Any, Dict, List

from models.agent import AgentResponse
from services.base_agent import BaseAgent
from services.football_data import FootballDataClient
from services.llm_client import LLMClient

logger = logging.getLogger(__name__)


class RealtimeAgent(BaseAgent):
    """
    Fetches live data for the query, then asks the model to answer from it.

    Failures (live data or model) propagate to the caller so the supervisor
    can fall back to historical analysis.
    """

    name = "RealtimeAgent"
    system_prompt = (
        "You answer football questions using only the live data provided. "
        "Be concise. If the data does not answer the question, say so. "
        'Reply with JSON only: {"answer": "...", "team": "<main team or null>", "reasoning": "..."}'
    )

    TOOL_KEYWORDS = {
        "live_scores": ("score", "playing", "match", "live", "game"),
        "player_stats": ("scorer", "goals", "player", "assist"),
        "leaderboard": ("table", "standing", "leader", "leads", "top", "position", "points"),
    }
    DEFAULT_TOOL = "leaderboard"

    def __init__(self, llm_client: LLMClient, model: str, football_data: FootballDataClient):
        super().__init__(llm_client, model)
        self.football_data = football_data

    def process(self, query: str) -> AgentResponse:
        tools = self.select_tools(query)
        live_data: Dict[str, Any] = {}
        for tool in tools:
            live_data[tool] = getattr(self.football_data, tool)()
        logger.info(f"Realtime tools used: {', '.join(tools)}")

        prompt = (
            f"Live data:\n{json.dumps(live_data, default=str)}\n\n"
            f"Question: {query}"
        )
        result = self.llm_client.generate_json(
            model=self.model,
            prompt=prompt,
            system_prompt=self.system_prompt
        )

        answer = str(result.get("answer") or "").strip()
        if not answer:
            raise ValueError("Realtime model returned an empty answer")

        return AgentResponse(
            success=True,
            message=answer,
            data={"team": result.get("team") or None, "tools_used": tools},
            reasoning=str(result.get("reasoning") or "")
        )

    def select_tools(self, query: str) -> List[str]:
        query_lower = query.lower()
        tools = [
            tool for tool, keywords in self.TOOL_KEYWORDS.items()
            if any(keyword in query_lower for keyword in keywords)
        ]
        return tools or [self.DEFAULT_TOOL]
