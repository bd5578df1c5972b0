"""Enhancement agent: rewrites the query into a self-contained question."""
import logging
from typing import List, Optional

from models.agent import AgentResponse
from models.conversation import ConversationTurn
from services.base_agent import BaseAgent

logger = logging.getLogger(__name__)


class EnhancementAgent(BaseAgent):
    """
    Resolves pronouns and follow-ups against history and retrieved context.

    Time words such as "current", "live" and "today" must survive the rewrite
    because the router keys on them.
    """

    name = "EnhancementAgent"
    system_prompt = (
        "You rewrite football questions so they can be answered without the conversation. "
        "Resolve references like 'they' or 'that season' using the history and context. "
        "Keep any words about time such as current, live or today. "
        'Reply with JSON only: {"enhanced_query": "...", "reasoning": "...", '
        '"focus_areas": ["..."]}'
    )

    def process(
        self,
        query: str,
        conversation_id: str,
        history: Optional[List[ConversationTurn]] = None,
        context: str = ""
    ) -> AgentResponse:
        context_section = f"Context from documents:\n{context}\n\n" if context else ""
        prompt = f"{context_section}{self.history_section(history)}Question: {query}"

        result = self.llm_client.generate_json(
            model=self.model,
            prompt=prompt,
            system_prompt=self.system_prompt
        )

        enhanced = str(result.get("enhanced_query") or "").strip()
        if not enhanced:
            logger.warning(f"Enhancement returned no query for conversation {conversation_id}, keeping original")
            enhanced = query

        return AgentResponse(
            success=True,
            message=enhanced,
            data={"focus_areas": list(result.get("focus_areas") or [])},
            reasoning=str(result.get("reasoning") or "")
        )
