"""Shared plumbing for the LLM-backed agents."""
import logging
from typing import List, Optional

from models.conversation import ConversationTurn
from services.conversation_memory import format_history
from services.llm_client import LLMClient
from config import MEMORY_CONTEXT_TURNS

logger = logging.getLogger(__name__)


class BaseAgent:
    """An agent is one prompt template sent to one model."""

    name = "BaseAgent"
    system_prompt = ""

    def __init__(self, llm_client: LLMClient, model: str):
        self.llm_client = llm_client
        self.model = model
        logger.info(f"Initialized {self.name} with model {model}")

    @staticmethod
    def history_section(
        history: Optional[List[ConversationTurn]],
        max_turns: int = MEMORY_CONTEXT_TURNS
    ) -> str:
        """Prompt block for recent conversation history, or an empty string."""
        text = format_history(history or [], max_turns=max_turns)
        return f"Conversation so far:\n{text}\n\n" if text else ""
