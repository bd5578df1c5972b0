"""Services for the Touchline Football Analyst."""
from .errors import (
    SupervisorError,
    ValidationError,
    ContextRetrievalError,
    AnswerStrategyError,
    TerminalAnswerError,
    AnalysisError,
)
from .embedding_model import EmbeddingModel
from .vector_store import VectorStore
from .context_retriever import ContextRetriever
from .query_router import QueryRouter
from .llm_client import LLMClient, LLMResponse, LLMError, LLMClientError
from .conversation_memory import (
    ConversationMemoryStore,
    InMemoryConversationStore,
    SupabaseConversationStore,
    create_conversation_store,
)
from .football_data import FootballDataClient, FootballDataError
from .security_agent import SecurityAgent
from .enhancement_agent import EnhancementAgent
from .realtime_agent import RealtimeAgent
from .analysis_agent import AnalysisAgent
from .supervisor import Supervisor, PipelineTrace, extract_timeframe

__all__ = [
    'SupervisorError', 'ValidationError', 'ContextRetrievalError', 'AnswerStrategyError',
    'TerminalAnswerError', 'AnalysisError', 'EmbeddingModel', 'VectorStore', 'ContextRetriever',
    'QueryRouter', 'LLMClient', 'LLMResponse', 'LLMError', 'LLMClientError',
    'ConversationMemoryStore', 'InMemoryConversationStore', 'SupabaseConversationStore',
    'create_conversation_store', 'FootballDataClient', 'FootballDataError', 'SecurityAgent',
    'EnhancementAgent', 'RealtimeAgent', 'AnalysisAgent', 'Supervisor', 'PipelineTrace',
    'extract_timeframe',
]
