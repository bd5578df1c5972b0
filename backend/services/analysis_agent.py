"""Analysis agent: answers from historical football documents."""
import logging
from typing import Any, Dict, List, Optional

from models.agent import AgentResponse
from models.conversation import ConversationTurn
from models.document import Document
from services.base_agent import BaseAgent
from services.context_retriever import ContextRetriever
from services.errors import ContextRetrievalError
from services.llm_client import LLMClient, LLMClientError

logger = logging.getLogger(__name__)


class AnalysisAgent(BaseAgent):
    """Historical strategy. Reports failures through ``success=False``."""

    name = "AnalysisAgent"
    system_prompt = (
        "You are a football analyst. Answer using the documents and conversation provided. "
        "Cite seasons and teams where relevant. If the documents do not contain the answer, "
        "give your best historical knowledge and say it is not from the documents. "
        'Reply with JSON only: {"answer": "...", "reasoning": "..."}'
    )

    def __init__(
        self,
        llm_client: LLMClient,
        model: str,
        retriever: Optional[ContextRetriever] = None
    ):
        super().__init__(llm_client, model)
        self.retriever = retriever

    def process(
        self,
        query: str,
        conversation_id: str,
        history: Optional[List[ConversationTurn]] = None
    ) -> AgentResponse:
        documents = self._search(query)
        tools_used = ["historical_analysis"]
        if documents:
            tools_used.insert(0, "document_search")

        context = "\n\n".join(doc.content for doc in documents)
        context_section = f"Documents:\n{context}\n\n" if context else ""
        prompt = f"{context_section}{self.history_section(history)}Question: {query}"

        try:
            result = self.llm_client.generate_json(
                model=self.model,
                prompt=prompt,
                system_prompt=self.system_prompt
            )
        except LLMClientError as e:
            logger.error(f"Historical analysis failed for conversation {conversation_id}: {e.error.code}")
            return AgentResponse(success=False, message=e.error.message, data={"tools_used": tools_used})

        answer = str(result.get("answer") or "").strip()
        if not answer:
            return AgentResponse(
                success=False,
                message="Historical analysis produced no answer",
                data={"tools_used": tools_used}
            )

        return AgentResponse(
            success=True,
            message=answer,
            data={"tools_used": tools_used, "sources": self.sources_for(documents)},
            reasoning=str(result.get("reasoning") or "")
        )

    @staticmethod
    def sources_for(documents: List[Document]) -> List[Dict[str, Any]]:
        """Provenance records for the documents an answer was built from."""
        return [
            {
                "type": doc.metadata.type,
                "team": doc.metadata.team,
                "timeframe": doc.metadata.year or doc.metadata.season,
            }
            for doc in documents
        ]

    def _search(self, query: str) -> List[Document]:
        if self.retriever is None:
            return []
        try:
            return self.retriever.find_relevant_context(query)
        except ContextRetrievalError as e:
            logger.warning(f"Historical document search failed, answering without documents: {e}")
            return []
