"""Error types raised by the supervisor pipeline."""
from typing import Any, Dict, Optional


class SupervisorError(Exception):
    """Base class for pipeline failures, tagged with the stage that failed."""

    code = "PIPELINE_ERROR"
    stage = "pipeline"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)


class ValidationError(SupervisorError):
    """The validator rejected the query. Fatal, no fallback."""

    code = "VALIDATION_ERROR"
    stage = "validation"


class ContextRetrievalError(SupervisorError):
    """Context retrieval failed. Always recovered inside the pipeline."""

    code = "CONTEXT_RETRIEVAL_ERROR"
    stage = "retrieval"


class AnswerStrategyError(SupervisorError):
    """The realtime strategy failed. Recovered by falling back to historical."""

    code = "ANSWER_STRATEGY_ERROR"
    stage = "realtime"


class TerminalAnswerError(SupervisorError):
    """The historical strategy failed and no fallback target remains."""

    code = "ANALYSIS_ERROR"
    stage = "historical"


AnalysisError = TerminalAnswerError
