"""
Supervisor pipeline for the Touchline Football Analyst.

One call to ``Supervisor.process`` runs:
validate -> retrieve context -> enhance -> route -> answer (realtime with
historical fallback) -> persist the turn. Every step is recorded in the
reasoning trail and forwarded to an optional observer.
"""

import logging
import re
from typing import Any, Callable, Dict, List, Optional

from models.agent import AgentResponse
from models.api import Analysis, QueryResponse, ResponseContext, Source
from models.conversation import ConversationTurn, normalize_role
from models.document import Document
from models.pipeline import PipelineEvent, RoutedQuery
from services.conversation_memory import ConversationMemoryStore
from services.errors import (
    AnswerStrategyError,
    ContextRetrievalError,
    TerminalAnswerError,
    ValidationError,
)
from services.query_router import QueryRouter
from config import DEFAULT_CONVERSATION_ID

logger = logging.getLogger(__name__)

StepCallback = Callable[[PipelineEvent], None]

REALTIME_CONFIDENCE = 1.0
HISTORICAL_CONFIDENCE = 0.85
REALTIME_TIMEFRAME = "current"
DEFAULT_TIMEFRAME = "recent"
DEFAULT_REALTIME_TOOLS = ["leaderboard"]

_LEADING_YEAR = re.compile(r"(\d+)")


class PipelineTrace:
    """
    Collects the events of one run and forwards each to the observer.

    The accumulated list and the observer are independent sinks: both see
    every event in emission order, and a failing observer never stops the run.
    """

    def __init__(self, on_step: Optional[StepCallback] = None):
        self.events: List[PipelineEvent] = []
        self._on_step = on_step

    def emit(self, description: str, context: Optional[Dict[str, Any]] = None) -> PipelineEvent:
        event = PipelineEvent(description=description, context=context)
        self.events.append(event)
        if self._on_step is not None:
            try:
                self._on_step(event)
            except Exception:
                logger.exception(f"Step observer raised on event: {description}")
        return event

    @property
    def steps(self) -> List[str]:
        return [event.description for event in self.events]


class Supervisor:
    """Coordinates the capability agents into one answer per query."""

    def __init__(
        self,
        validator,
        context_retriever,
        enhancer,
        realtime_agent,
        analysis_agent,
        memory: ConversationMemoryStore,
        router: Optional[QueryRouter] = None,
        default_conversation_id: str = DEFAULT_CONVERSATION_ID
    ):
        """
        Args:
            validator: ``process(query, conversation_id, history) -> AgentResponse``
            context_retriever: ``find_relevant_context(query) -> list[Document]``
            enhancer: ``process(query, conversation_id, history, context) -> AgentResponse``
            realtime_agent: ``process(query) -> AgentResponse``, raises on failure
            analysis_agent: ``process(query, conversation_id, history) -> AgentResponse``
            memory: Conversation memory store
            router: Routing policy (defaults to keyword QueryRouter)
            default_conversation_id: Id used when the caller supplies none
        """
        self.validator = validator
        self.context_retriever = context_retriever
        self.enhancer = enhancer
        self.realtime_agent = realtime_agent
        self.analysis_agent = analysis_agent
        self.memory = memory
        self.router = router or QueryRouter()
        self.default_conversation_id = default_conversation_id
        logger.info("Supervisor initialized")

    def process(
        self,
        query: str,
        conversation_id: Optional[str] = None,
        on_step: Optional[StepCallback] = None
    ) -> QueryResponse:
        """
        Answer one query.

        Args:
            query: Raw user query
            conversation_id: Conversation to load and extend (default id if omitted)
            on_step: Optional observer called synchronously with each PipelineEvent

        Returns:
            QueryResponse from exactly one of the realtime or historical agents

        Raises:
            ValidationError: The validator rejected the query
            TerminalAnswerError: Historical analysis failed, as primary or as fallback
        """
        conversation_id = conversation_id or self.default_conversation_id
        trace = PipelineTrace(on_step)
        log_extra = {"conversation_id": conversation_id}

        history = self._load_history(conversation_id)
        logger.info(f"Processing query: {query[:100]}", extra=log_extra)

        self._validate(query, conversation_id, history, trace)
        documents = self._retrieve_context(query, trace)
        enhanced = self._enhance(query, conversation_id, history, documents, trace)

        trace.emit("Determining appropriate data source...", {"agent": "Supervisor"})
        routed = self.router.route(enhanced)

        response = None
        if routed.is_realtime:
            response = self._answer_realtime(routed, trace)

        if response is None:
            response = self._answer_historical(routed, conversation_id, history, documents, trace)

        self.memory.append(conversation_id, query, response.analysis.result)
        logger.info(
            f"Query answered with confidence {response.analysis.confidence}",
            extra={**log_extra, "strategy": routed.strategy}
        )
        return response

    # Stages

    def _load_history(self, conversation_id: str) -> List[ConversationTurn]:
        return [
            ConversationTurn(
                role=normalize_role(turn.role),
                content=str(turn.content),
                timestamp=turn.timestamp
            )
            for turn in self.memory.load(conversation_id)
        ]

    def _validate(
        self,
        query: str,
        conversation_id: str,
        history: List[ConversationTurn],
        trace: PipelineTrace
    ) -> None:
        trace.emit("Validating query security and scope...", {"agent": "SecurityAgent"})
        result: AgentResponse = self.validator.process(query, conversation_id, history)
        if not result.success:
            logger.warning(
                f"Query rejected: {result.message}",
                extra={"conversation_id": conversation_id, "stage": ValidationError.stage}
            )
            raise ValidationError(result.message)
        trace.emit("Query validation passed", {"agent": "SecurityAgent", "result": "valid"})

    def _retrieve_context(self, query: str, trace: PipelineTrace) -> List[Document]:
        trace.emit("Retrieving relevant context...", {"agent": "Supervisor", "tools": ["ContextRetriever"]})
        try:
            documents = self.context_retriever.find_relevant_context(query)
            if documents is None:
                raise ContextRetrievalError("Context retriever returned no result")
        except Exception as e:
            logger.warning(f"Failed to retrieve context: {e}", extra={"stage": ContextRetrievalError.stage})
            trace.emit("No relevant context found", {"agent": "Supervisor", "error": str(e)})
            return []

        documents = list(documents)
        if not documents:
            trace.emit("No relevant context found", {"agent": "Supervisor"})
            return []
        trace.emit(
            f"Found {len(documents)} relevant documents",
            {
                "agent": "Supervisor",
                "tools": ["ContextRetriever"],
                "context": [
                    {"type": d.metadata.type, "team": d.metadata.team, "year": d.metadata.year}
                    for d in documents
                ],
            }
        )
        return documents

    def _enhance(
        self,
        query: str,
        conversation_id: str,
        history: List[ConversationTurn],
        documents: List[Document],
        trace: PipelineTrace
    ) -> str:
        trace.emit("Enhancing query with context...", {"agent": "EnhancementAgent"})
        context_text = "\n\n".join(doc.content for doc in documents)
        result: AgentResponse = self.enhancer.process(query, conversation_id, history, context_text)
        trace.emit(
            "Query enhanced",
            {"agent": "EnhancementAgent", "result": result.message, "reasoning": result.reasoning}
        )
        return result.message

    def _answer_realtime(self, routed: RoutedQuery, trace: PipelineTrace) -> Optional[QueryResponse]:
        """Try the realtime agent. Returns None when the run should fall back."""
        trace.emit(
            "Processing with real-time agent...",
            {"agent": "RealtimeAgent", "keywords": routed.matched_keywords}
        )
        try:
            result: AgentResponse = self.realtime_agent.process(routed.query)
            if not result.success:
                raise AnswerStrategyError(result.message)
            analysis = Analysis(
                result=result.message,
                confidence=REALTIME_CONFIDENCE,
                tools_used=list(result.data.get("tools_used") or DEFAULT_REALTIME_TOOLS)
            )
            sources = [Source(type="realtime", team=result.data.get("team"), timeframe=REALTIME_TIMEFRAME)]
        except Exception as e:
            logger.error(f"Real-time agent processing failed: {e}", extra={"stage": AnswerStrategyError.stage})
            trace.emit(
                "Falling back to historical agent due to real-time processing failure",
                {"agent": "RealtimeAgent", "error": str(e), "action": "fallback"}
            )
            return None

        trace.emit(
            "Real-time data retrieved",
            {"agent": "RealtimeAgent", "tools_used": analysis.tools_used, "success": True}
        )
        return self._build_response(routed.query, analysis, sources, REALTIME_TIMEFRAME, result.reasoning, trace)

    def _answer_historical(
        self,
        routed: RoutedQuery,
        conversation_id: str,
        history: List[ConversationTurn],
        documents: List[Document],
        trace: PipelineTrace
    ) -> QueryResponse:
        trace.emit("Processing with historical data agent...", {"agent": "AnalysisAgent"})
        try:
            result: AgentResponse = self.analysis_agent.process(routed.query, conversation_id, history)
        except Exception as e:
            logger.error(f"Historical analysis raised: {e}", extra={"stage": TerminalAnswerError.stage})
            raise TerminalAnswerError(str(e)) from e

        if not result.success:
            logger.error(f"Historical analysis failed: {result.message}", extra={"stage": TerminalAnswerError.stage})
            raise TerminalAnswerError(result.message)

        try:
            analysis = Analysis(
                result=result.message,
                confidence=HISTORICAL_CONFIDENCE,
                tools_used=list(result.data.get("tools_used") or [])
            )
            sources = [_as_source(s) for s in result.data.get("sources") or []]
        except Exception as e:
            logger.error(f"Malformed historical result: {e}", extra={"stage": TerminalAnswerError.stage})
            raise TerminalAnswerError("Historical analysis returned a malformed result", {"error": str(e)}) from e

        trace.emit(
            "Historical data analysis complete",
            {"agent": "AnalysisAgent", "tools_used": analysis.tools_used, "success": True}
        )
        return self._build_response(
            routed.query, analysis, sources, extract_timeframe(documents), result.reasoning, trace
        )

    # Assembly

    @staticmethod
    def _build_response(
        query: str,
        analysis: Analysis,
        sources: List[Source],
        timeframe: str,
        responder_reasoning: Optional[str],
        trace: PipelineTrace
    ) -> QueryResponse:
        reasoning = trace.steps
        if responder_reasoning:
            reasoning.append(responder_reasoning)

        return QueryResponse(
            query=query,
            analysis=analysis,
            context=ResponseContext(sources=list(dict.fromkeys(sources)), timeframe=timeframe),
            reasoning=reasoning
        )


def extract_timeframe(documents: List[Document]) -> str:
    """
    Summarize the years covered by the retrieved documents.

    No years -> "recent"; one distinct value -> that value; several ->
    "<min>-<max>" over starting years, so "2015/16" counts as 2015.
    """
    values = []
    for doc in documents:
        value = doc.metadata.year or doc.metadata.season
        if value and str(value) not in values:
            values.append(str(value))

    if not values:
        return DEFAULT_TIMEFRAME
    if len(values) == 1:
        return values[0]

    starts = [_start_year(v) for v in values]
    if None in starts:
        return f"{min(values)}-{max(values)}"
    if min(starts) == max(starts):
        return str(starts[0])
    return f"{min(starts)}-{max(starts)}"


def _start_year(value: str) -> Optional[int]:
    match = _LEADING_YEAR.match(value.strip())
    return int(match.group(1)) if match else None


def _as_source(raw) -> Source:
    if isinstance(raw, Source):
        return raw
    return Source(
        type=str(raw.get("type") or "document"),
        team=raw.get("team"),
        timeframe=_optional_text(raw.get("timeframe") or raw.get("year") or raw.get("season"))
    )


def _optional_text(value) -> Optional[str]:
    return None if value is None else str(value)
