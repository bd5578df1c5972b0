"""Data models for the Touchline Football Analyst."""
from .document import Document, DocumentMetadata, ScoredDocument
from .conversation import ConversationTurn, normalize_role
from .agent import AgentResponse
from .pipeline import PipelineEvent, RoutedQuery, REALTIME, HISTORICAL
from .api import QueryRequest, QueryResponse, Analysis, ResponseContext, Source

__all__ = [
    "Document",
    "DocumentMetadata",
    "ScoredDocument",
    "ConversationTurn",
    "normalize_role",
    "AgentResponse",
    "PipelineEvent",
    "RoutedQuery",
    "REALTIME",
    "HISTORICAL",
    "QueryRequest",
    "QueryResponse",
    "Analysis",
    "ResponseContext",
    "Source",
]
