"""Unit tests for ContextRetriever."""
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from unittest.mock import Mock
from services.context_retriever import ContextRetriever
from services.errors import ContextRetrievalError
from models.document import Document, DocumentMetadata, ScoredDocument


def scored(content, score, year=None):
    return ScoredDocument(
        document=Document(content=content, metadata=DocumentMetadata(type="match_report", year=year)),
        relevance_score=score
    )


class TestContextRetriever:
    """Test suite for ContextRetriever."""

    @pytest.fixture
    def mock_vector_store(self):
        return Mock()

    @pytest.fixture
    def mock_embedding_model(self):
        model = Mock()
        model.embed_text.return_value = [0.1] * 768
        return model

    @pytest.fixture
    def retriever(self, mock_vector_store, mock_embedding_model):
        return ContextRetriever(
            mock_vector_store,
            mock_embedding_model,
            top_k=5,
            relevance_threshold=0.3,
            dynamic_k_cutoff=0.8
        )

    def test_empty_query_returns_nothing(self, retriever, mock_embedding_model):
        assert retriever.find_relevant_context("") == []
        assert retriever.find_relevant_context("   ") == []
        mock_embedding_model.embed_text.assert_not_called()

    def test_no_results(self, retriever, mock_vector_store):
        mock_vector_store.search.return_value = []
        assert retriever.find_relevant_context("Who won in 1999?") == []
        mock_vector_store.search.assert_called_once_with([0.1] * 768, top_k=5)

    def test_relevance_threshold(self, retriever, mock_vector_store):
        mock_vector_store.search.return_value = [scored("a", 0.3), scored("b", 0.1)]
        assert retriever.find_relevant_context("q") == []

    def test_dynamic_cutoff(self, retriever, mock_vector_store):
        mock_vector_store.search.return_value = [
            scored("top", 0.9),
            scored("close", 0.75),
            scored("far", 0.6),
        ]

        documents = retriever.find_relevant_context("q")

        assert [d.content for d in documents] == ["top", "close"]

    def test_results_sorted_by_score(self, retriever, mock_vector_store):
        mock_vector_store.search.return_value = [scored("second", 0.8), scored("first", 0.85)]

        results = retriever.retrieve("q")

        assert [r.document.content for r in results] == ["first", "second"]

    def test_metadata_preserved(self, retriever, mock_vector_store):
        mock_vector_store.search.return_value = [scored("report", 0.9, year="2018")]

        documents = retriever.find_relevant_context("q")

        assert documents[0].metadata.year == "2018"
        assert documents[0].metadata.type == "match_report"

    def test_embedding_failure_raises_retrieval_error(self, retriever, mock_embedding_model):
        mock_embedding_model.embed_text.side_effect = RuntimeError("HF down")

        with pytest.raises(ContextRetrievalError, match="HF down"):
            retriever.find_relevant_context("q")

    def test_search_failure_raises_retrieval_error(self, retriever, mock_vector_store):
        mock_vector_store.search.side_effect = RuntimeError("db down")

        with pytest.raises(ContextRetrievalError, match="db down"):
            retriever.find_relevant_context("q")
