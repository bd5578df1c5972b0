"""Context retrieval: query embedding plus filtered vector search."""
import logging
from typing import List

from models.document import Document, ScoredDocument
from services.errors import ContextRetrievalError
from services.vector_store import VectorStore
from services.embedding_model import EmbeddingModel
from config import MAX_CONTEXT_DOCUMENTS, RELEVANCE_THRESHOLD, DYNAMIC_K_CUTOFF

logger = logging.getLogger(__name__)


class ContextRetriever:
    """Finds football documents relevant to a query."""

    def __init__(
        self,
        vector_store: VectorStore,
        embedding_model: EmbeddingModel,
        top_k: int = MAX_CONTEXT_DOCUMENTS,
        relevance_threshold: float = RELEVANCE_THRESHOLD,
        dynamic_k_cutoff: float = DYNAMIC_K_CUTOFF
    ):
        self.vector_store = vector_store
        self.embedding_model = embedding_model
        self.top_k = top_k
        self.relevance_threshold = relevance_threshold
        self.dynamic_k_cutoff = dynamic_k_cutoff
        logger.info("Initialized ContextRetriever")

    def find_relevant_context(self, query: str) -> List[Document]:
        """
        Return documents relevant to ``query``, best match first.

        Filtering:
        1. Drop matches at or below the relevance threshold
        2. Keep only matches scoring at least ``dynamic_k_cutoff`` of the top score

        Raises:
            ContextRetrievalError: If embedding or search fails
        """
        return [scored.document for scored in self.retrieve(query)]

    def retrieve(self, query: str) -> List[ScoredDocument]:
        """Same as find_relevant_context but keeps relevance scores."""
        if not query or not query.strip():
            logger.warning("Empty query string provided, returning empty results")
            return []

        try:
            query_embedding = self.embedding_model.embed_text(query)
            scored = self.vector_store.search(query_embedding, top_k=self.top_k)
        except Exception as e:
            error_msg = f"Failed to retrieve context for query: {e}"
            logger.error(error_msg)
            raise ContextRetrievalError(error_msg) from e

        relevant = [s for s in scored if s.relevance_score > self.relevance_threshold]
        if not relevant:
            logger.info(f"No documents above relevance threshold {self.relevance_threshold}")
            return []

        top_score = max(s.relevance_score for s in relevant)
        cutoff = top_score * self.dynamic_k_cutoff
        kept = sorted(
            (s for s in relevant if s.relevance_score >= cutoff),
            key=lambda s: s.relevance_score,
            reverse=True
        )

        logger.info(
            f"Retrieved {len(kept)} documents "
            f"(top score: {top_score:.3f}, cutoff: {cutoff:.3f})"
        )
        return kept
