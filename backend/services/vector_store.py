"""Football document store backed by Supabase pgvector."""
import logging
from typing import List, Optional
from supabase import create_client, Client
from models.document import Document, DocumentMetadata, ScoredDocument
from services.embedding_model import EmbeddingModel
from config import SUPABASE_URL, SUPABASE_KEY

logger = logging.getLogger(__name__)

# Expected RPC (768-dim all-mpnet-base-v2 embeddings):
#   match_football_documents(query_embedding vector(768), match_threshold float, match_count int)
#   RETURNS TABLE (document_id text, content text, doc_type text, team text,
#                  year text, season text, similarity float)


class VectorStore:
    """Stores document embeddings and runs similarity search."""

    def __init__(
        self,
        embedding_model: EmbeddingModel,
        supabase_url: Optional[str] = SUPABASE_URL,
        supabase_key: Optional[str] = SUPABASE_KEY,
        table_name: str = "football_documents",
        match_function: str = "match_football_documents"
    ):
        """
        Args:
            embedding_model: EmbeddingModel used when adding documents
            supabase_url: Supabase project URL
            supabase_key: Supabase API key
            table_name: Table holding documents and embeddings
            match_function: Name of the similarity-search RPC

        Raises:
            ValueError: If Supabase credentials are missing
        """
        if not supabase_url or not supabase_key:
            raise ValueError("SUPABASE_URL and SUPABASE_KEY environment variables are required")

        self.embedding_model = embedding_model
        self.table_name = table_name
        self.match_function = match_function
        self.client: Client = create_client(supabase_url, supabase_key)

        logger.info(f"Initialized VectorStore with table: {table_name}")

    def add_documents(self, documents: List[Document]) -> int:
        """
        Embed and upsert documents in one batch.

        Returns:
            Number of documents written

        Raises:
            ValueError: If documents list is empty or a document has no id
            RuntimeError: If embedding or the database operation fails
        """
        if not documents:
            raise ValueError("Documents list cannot be empty")
        if any(not doc.document_id for doc in documents):
            raise ValueError("Every document needs a document_id")

        try:
            embeddings = self.embedding_model.embed_batch([doc.content for doc in documents])
            records = [
                {
                    "document_id": doc.document_id,
                    "content": doc.content,
                    "doc_type": doc.metadata.type,
                    "team": doc.metadata.team,
                    "year": doc.metadata.year,
                    "season": doc.metadata.season,
                    "embedding": embedding,
                }
                for doc, embedding in zip(documents, embeddings)
            ]
            self.client.table(self.table_name).upsert(records).execute()
        except Exception as e:
            error_msg = f"Failed to add documents to vector store: {e}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e

        logger.info(f"Added {len(records)} documents to vector store")
        return len(records)

    def search(self, query_embedding: List[float], top_k: int = 5) -> List[ScoredDocument]:
        """
        Find the documents closest to a query embedding.

        Returns:
            ScoredDocuments ordered by similarity, scores clamped to [0, 1]

        Raises:
            ValueError: If query_embedding is empty or top_k is invalid
            RuntimeError: If the database operation fails
        """
        if not query_embedding:
            raise ValueError("Query embedding cannot be empty")
        if top_k <= 0:
            raise ValueError("top_k must be positive")

        try:
            response = self.client.rpc(
                self.match_function,
                {
                    "query_embedding": query_embedding,
                    "match_threshold": 0.0,
                    "match_count": top_k,
                }
            ).execute()
        except Exception as e:
            error_msg = f"Failed to search vector store: {e}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e

        results = [
            ScoredDocument(
                document=Document(
                    content=row["content"],
                    metadata=DocumentMetadata(
                        type=row.get("doc_type") or "document",
                        team=row.get("team"),
                        year=_as_text(row.get("year")),
                        season=_as_text(row.get("season")),
                    ),
                    document_id=row.get("document_id"),
                ),
                relevance_score=max(0.0, min(1.0, row["similarity"])),
            )
            for row in response.data or []
        ]
        logger.debug(f"Found {len(results)} documents for query")
        return results

    def clear(self) -> None:
        """Delete every stored document."""
        try:
            self.client.table(self.table_name).delete().neq("document_id", "").execute()
        except Exception as e:
            error_msg = f"Failed to clear vector store: {e}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e
        logger.info("Cleared all documents from vector store")

    def count(self) -> int:
        """Number of stored documents."""
        try:
            response = self.client.table(self.table_name).select("document_id", count="exact").execute()
        except Exception as e:
            error_msg = f"Failed to count documents in vector store: {e}"
            logger.error(error_msg)
            raise RuntimeError(error_msg) from e
        return response.count if response.count is not None else 0


def _as_text(value) -> Optional[str]:
    return None if value is None else str(value)
