"""Unit tests for the Supervisor pipeline."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock

from models.agent import AgentResponse
from models.api import Source
from models.conversation import USER, ASSISTANT
from models.document import Document, DocumentMetadata
from models.pipeline import PipelineEvent
from services.conversation_memory import InMemoryConversationStore
from services.errors import (
    AnalysisError,
    TerminalAnswerError,
    ValidationError,
    ContextRetrievalError,
)
from services.supervisor import (
    Supervisor,
    PipelineTrace,
    extract_timeframe,
    HISTORICAL_CONFIDENCE,
    REALTIME_CONFIDENCE,
)
from config import DEFAULT_CONVERSATION_ID

REALTIME_QUERY = "What is the current league leader?"
HISTORICAL_QUERY = "Who won the league in 2015?"
FALLBACK_EVENT = "Falling back to historical agent due to real-time processing failure"
HISTORICAL_DONE = "Historical data analysis complete"


def make_doc(content="Doc", year=None, season=None, team="Team A", doc_type="season_summary"):
    return Document(
        content=content,
        metadata=DocumentMetadata(type=doc_type, team=team, year=year, season=season),
    )


@pytest.fixture
def validator():
    mock = Mock()
    mock.process.return_value = AgentResponse(success=True, message="Query validated")
    return mock


@pytest.fixture
def retriever():
    mock = Mock()
    mock.find_relevant_context.return_value = [make_doc("League table 2023", year="2023")]
    return mock


@pytest.fixture
def enhancer():
    """Echoes the query back as the enhanced query."""
    mock = Mock()
    mock.process.side_effect = lambda query, conversation_id, history, context: AgentResponse(
        success=True, message=query, reasoning="No rewrite needed"
    )
    return mock


@pytest.fixture
def realtime():
    mock = Mock()
    mock.process.return_value = AgentResponse(
        success=True,
        message="Team A leads.",
        data={"team": "Team A", "tools_used": ["leaderboard"]},
        reasoning="Read from the live table",
    )
    return mock


@pytest.fixture
def analysis():
    mock = Mock()
    mock.process.return_value = AgentResponse(
        success=True,
        message="Team A led as of last season.",
        data={
            "tools_used": ["document_search", "historical_analysis"],
            "sources": [{"type": "season_summary", "team": "Team A", "timeframe": "2023"}],
        },
        reasoning="From the 2023 season summary",
    )
    return mock


@pytest.fixture
def memory():
    return InMemoryConversationStore()


@pytest.fixture
def supervisor(validator, retriever, enhancer, realtime, analysis, memory):
    return Supervisor(
        validator=validator,
        context_retriever=retriever,
        enhancer=enhancer,
        realtime_agent=realtime,
        analysis_agent=analysis,
        memory=memory,
    )


class TestRealtimePath:
    def test_realtime_success(self, supervisor, analysis):
        response = supervisor.process(REALTIME_QUERY)

        assert response.analysis.result == "Team A leads."
        assert response.analysis.confidence == REALTIME_CONFIDENCE == 1.0
        assert response.analysis.tools_used == ["leaderboard"]
        assert response.context.timeframe == "current"
        assert response.context.sources == [Source(type="realtime", team="Team A", timeframe="current")]
        analysis.process.assert_not_called()

    def test_realtime_receives_enhanced_query(self, supervisor, enhancer, realtime):
        enhancer.process.side_effect = None
        enhancer.process.return_value = AgentResponse(
            success=True, message="Who is the current Premier League leader?", reasoning="expanded"
        )

        response = supervisor.process("who is top")

        realtime.process.assert_called_once_with("Who is the current Premier League leader?")
        assert response.query == "Who is the current Premier League leader?"

    def test_default_tools_when_none_reported(self, supervisor, realtime):
        realtime.process.return_value = AgentResponse(success=True, message="Team B leads.", data={})

        response = supervisor.process(REALTIME_QUERY)

        assert response.analysis.tools_used == ["leaderboard"]
        assert response.context.sources[0].team is None

    def test_reasoning_trail_order(self, supervisor):
        response = supervisor.process(REALTIME_QUERY)

        assert response.reasoning == [
            "Validating query security and scope...",
            "Query validation passed",
            "Retrieving relevant context...",
            "Found 1 relevant documents",
            "Enhancing query with context...",
            "Query enhanced",
            "Determining appropriate data source...",
            "Processing with real-time agent...",
            "Real-time data retrieved",
            "Read from the live table",
        ]


class TestFallback:
    def test_realtime_exception_falls_back(self, supervisor, realtime, analysis):
        realtime.process.side_effect = RuntimeError("live feed down")

        response = supervisor.process(REALTIME_QUERY)

        assert response.analysis.result == "Team A led as of last season."
        assert response.analysis.confidence == HISTORICAL_CONFIDENCE == 0.85
        assert FALLBACK_EVENT in response.reasoning
        assert response.reasoning.index(FALLBACK_EVENT) < response.reasoning.index(HISTORICAL_DONE)
        analysis.process.assert_called_once()

    def test_realtime_unsuccessful_result_falls_back(self, supervisor, realtime):
        realtime.process.return_value = AgentResponse(success=False, message="no data")

        response = supervisor.process(REALTIME_QUERY)

        assert response.analysis.confidence == HISTORICAL_CONFIDENCE
        assert FALLBACK_EVENT in response.reasoning

    def test_fallback_event_carries_error(self, supervisor, realtime):
        realtime.process.side_effect = RuntimeError("live feed down")
        events = []

        supervisor.process(REALTIME_QUERY, on_step=events.append)

        fallback = next(e for e in events if e.description == FALLBACK_EVENT)
        assert fallback.context["action"] == "fallback"
        assert fallback.context["error"] == "live feed down"

    def test_malformed_realtime_payload_falls_back(self, supervisor, realtime, analysis):
        realtime.process.return_value = AgentResponse(success=True, message="Team A leads.", data={"team": 7})

        response = supervisor.process(REALTIME_QUERY)

        assert response.analysis.confidence == HISTORICAL_CONFIDENCE
        assert response.analysis.result == "Team A led as of last season."
        assert FALLBACK_EVENT in response.reasoning
        assert "Real-time data retrieved" not in response.reasoning
        analysis.process.assert_called_once()

    def test_fallback_target_failure_is_terminal(self, supervisor, realtime, analysis):
        realtime.process.side_effect = RuntimeError("live feed down")
        analysis.process.return_value = AgentResponse(success=False, message="model unavailable")

        with pytest.raises(TerminalAnswerError, match="model unavailable"):
            supervisor.process(REALTIME_QUERY)


class TestHistoricalPath:
    def test_historical_success(self, supervisor, realtime):
        response = supervisor.process(HISTORICAL_QUERY)

        assert response.analysis.confidence == HISTORICAL_CONFIDENCE
        assert response.analysis.tools_used == ["document_search", "historical_analysis"]
        assert response.context.timeframe == "2023"
        assert response.context.sources == [Source(type="season_summary", team="Team A", timeframe="2023")]
        assert response.reasoning[-1] == "From the 2023 season summary"
        realtime.process.assert_not_called()

    def test_historical_receives_history(self, supervisor, analysis, memory):
        memory.append("conv_1", "Earlier question", "Earlier answer")

        supervisor.process(HISTORICAL_QUERY, conversation_id="conv_1")

        query, conversation_id, history = analysis.process.call_args[0]
        assert query == HISTORICAL_QUERY
        assert conversation_id == "conv_1"
        assert [(t.role, t.content) for t in history] == [
            (USER, "Earlier question"),
            (ASSISTANT, "Earlier answer"),
        ]

    def test_historical_failure_is_terminal(self, supervisor, analysis, memory):
        analysis.process.return_value = AgentResponse(success=False, message="Historical analysis produced no answer")

        with pytest.raises(AnalysisError) as exc_info:
            supervisor.process(HISTORICAL_QUERY, conversation_id="conv_1")

        assert exc_info.value.message == "Historical analysis produced no answer"
        assert memory.load("conv_1") == []

    def test_historical_exception_is_terminal(self, supervisor, analysis):
        analysis.process.side_effect = RuntimeError("boom")

        with pytest.raises(TerminalAnswerError, match="boom"):
            supervisor.process(HISTORICAL_QUERY)

    def test_sources_are_deduplicated(self, supervisor, analysis):
        source = {"type": "match_report", "team": "Team A", "timeframe": "2015"}
        analysis.process.return_value = AgentResponse(
            success=True,
            message="Answer",
            data={"sources": [source, dict(source), {"type": "match_report", "team": "Team B", "year": 2016}]},
        )

        response = supervisor.process(HISTORICAL_QUERY)

        assert response.context.sources == [
            Source(type="match_report", team="Team A", timeframe="2015"),
            Source(type="match_report", team="Team B", timeframe="2016"),
        ]

    def test_malformed_sources_are_terminal(self, supervisor, analysis, memory):
        analysis.process.return_value = AgentResponse(
            success=True,
            message="Answer",
            data={"sources": [{"type": "doc", "team": 5}]},
        )

        with pytest.raises(TerminalAnswerError) as exc_info:
            supervisor.process(HISTORICAL_QUERY, conversation_id="conv_1")

        assert exc_info.value.code == "ANALYSIS_ERROR"
        assert memory.load("conv_1") == []

    def test_no_reasoning_from_responder(self, supervisor, analysis):
        analysis.process.return_value = AgentResponse(success=True, message="Answer")

        response = supervisor.process(HISTORICAL_QUERY)

        assert response.reasoning[-1] == HISTORICAL_DONE


class TestValidation:
    def test_rejection_stops_pipeline(self, supervisor, validator, retriever, enhancer, realtime, analysis, memory):
        validator.process.return_value = AgentResponse(success=False, message="Query is not about football")

        with pytest.raises(ValidationError) as exc_info:
            supervisor.process(REALTIME_QUERY, conversation_id="conv_1")

        assert exc_info.value.message == "Query is not about football"
        assert str(exc_info.value) == "Query is not about football"
        retriever.find_relevant_context.assert_not_called()
        enhancer.process.assert_not_called()
        realtime.process.assert_not_called()
        analysis.process.assert_not_called()
        assert memory.load("conv_1") == []

    def test_validator_receives_raw_query_and_default_id(self, supervisor, validator):
        supervisor.process(HISTORICAL_QUERY)

        validator.process.assert_called_once_with(HISTORICAL_QUERY, DEFAULT_CONVERSATION_ID, [])


class TestContextRetrieval:
    def test_context_joined_with_blank_lines(self, supervisor, retriever, enhancer):
        retriever.find_relevant_context.return_value = [make_doc("First"), make_doc("Second")]

        supervisor.process(HISTORICAL_QUERY, conversation_id="conv_1")

        enhancer.process.assert_called_once_with(HISTORICAL_QUERY, "conv_1", [], "First\n\nSecond")

    @pytest.mark.parametrize("failure", [
        {"side_effect": ContextRetrievalError("index offline")},
        {"side_effect": RuntimeError("unexpected")},
        {"return_value": None},
    ])
    def test_failure_matches_empty_result(self, failure, validator, enhancer, realtime, analysis):
        def run(retriever_config):
            retriever = Mock()
            retriever.find_relevant_context.configure_mock(**retriever_config)
            enhancer.reset_mock()
            supervisor = Supervisor(
                validator=validator,
                context_retriever=retriever,
                enhancer=enhancer,
                realtime_agent=realtime,
                analysis_agent=analysis,
                memory=InMemoryConversationStore(),
            )
            response = supervisor.process(HISTORICAL_QUERY)
            return response, enhancer.process.call_args

        failed_response, failed_call = run(failure)
        empty_response, empty_call = run({"return_value": []})

        assert failed_call == empty_call
        assert failed_response.model_dump() == empty_response.model_dump()
        assert failed_response.context.timeframe == "recent"
        assert "No relevant context found" in failed_response.reasoning

    def test_failure_event_reports_error(self, supervisor, retriever):
        retriever.find_relevant_context.side_effect = ContextRetrievalError("index offline")
        events = []

        supervisor.process(HISTORICAL_QUERY, on_step=events.append)

        no_context = next(e for e in events if e.description == "No relevant context found")
        assert no_context.context["error"] == "index offline"


class TestObserverAndTrail:
    def test_observer_sees_every_event_in_order(self, supervisor):
        events = []

        response = supervisor.process(REALTIME_QUERY, on_step=events.append)

        assert all(isinstance(e, PipelineEvent) for e in events)
        assert [e.description for e in events] == response.reasoning[:-1]

    def test_observer_failure_does_not_break_run(self, supervisor):
        observer = Mock(side_effect=RuntimeError("socket closed"))

        response = supervisor.process(REALTIME_QUERY, on_step=observer)

        assert response.analysis.result == "Team A leads."
        assert observer.call_count == len(response.reasoning) - 1

    def test_reasoning_is_never_empty(self, supervisor, realtime, analysis):
        realtime.process.return_value = AgentResponse(success=True, message="x")
        analysis.process.return_value = AgentResponse(success=True, message="y")

        assert supervisor.process(REALTIME_QUERY).reasoning
        assert supervisor.process(HISTORICAL_QUERY).reasoning

    def test_trace_without_observer(self):
        trace = PipelineTrace()
        trace.emit("one")
        trace.emit("two", {"k": "v"})
        assert trace.steps == ["one", "two"]
        assert trace.events[1].context == {"k": "v"}


class TestMemory:
    def test_turn_persisted_after_success(self, supervisor, memory):
        memory.append("conv_1", "Earlier", "Before")

        supervisor.process("Q", conversation_id="conv_1")

        contents = [t.content for t in memory.load("conv_1")]
        assert contents == ["Earlier", "Before", "Q", "Team A led as of last season."]

    def test_original_query_is_persisted_not_enhanced(self, supervisor, enhancer, memory):
        enhancer.process.side_effect = None
        enhancer.process.return_value = AgentResponse(success=True, message="Rewritten question")

        supervisor.process("raw question", conversation_id="conv_1")

        assert memory.load("conv_1")[0].content == "raw question"

    def test_default_conversation_id(self, supervisor, memory):
        supervisor.process(REALTIME_QUERY)

        turns = memory.load(DEFAULT_CONVERSATION_ID)
        assert [(t.role, t.content) for t in turns] == [(USER, REALTIME_QUERY), (ASSISTANT, "Team A leads.")]


class TestExtractTimeframe:
    def test_no_documents(self):
        assert extract_timeframe([]) == "recent"

    def test_documents_without_years(self):
        assert extract_timeframe([make_doc()]) == "recent"

    def test_single_year(self):
        assert extract_timeframe([make_doc(year="2018")]) == "2018"

    def test_repeated_single_year(self):
        assert extract_timeframe([make_doc(year="2018"), make_doc(year="2018")]) == "2018"

    def test_year_range(self):
        docs = [make_doc(year="2015"), make_doc(year="2019"), make_doc(year="2017")]
        assert extract_timeframe(docs) == "2015-2019"

    def test_numeric_ordering(self):
        docs = [make_doc(year="999"), make_doc(year="2001")]
        assert extract_timeframe(docs) == "999-2001"

    def test_season_used_when_year_missing(self):
        assert extract_timeframe([make_doc(season="2015/16")]) == "2015/16"

    def test_seasons_and_years_ranged_by_starting_year(self):
        docs = [make_doc(season="2015/16"), make_doc(year="2017")]
        assert extract_timeframe(docs) == "2015-2017"

    def test_season_and_its_starting_year_collapse(self):
        docs = [make_doc(year="2015"), make_doc(season="2015/16")]
        assert extract_timeframe(docs) == "2015"
