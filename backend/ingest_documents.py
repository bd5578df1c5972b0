"""
Document ingestion script for the Touchline Football Analyst.

Loads football documents from a JSON file, embeds them and stores them in
Supabase pgvector for the context retriever.

Each entry in the file looks like:
    {"id": "pl-2015-summary", "content": "...", "type": "season_summary",
     "team": "Leicester City", "year": "2016", "season": "2015/16"}

Usage:
    python ingest_documents.py data/football_docs.json [--clear] [--batch-size 10]
"""
import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent))

from models.document import Document, DocumentMetadata
from services.embedding_model import EmbeddingModel
from services.vector_store import VectorStore

logger = logging.getLogger(__name__)


def load_documents(path: Path) -> List[Document]:
    """
    Parse the JSON document file.

    Raises:
        ValueError: If the file is not a list or an entry lacks id/content
    """
    with path.open(encoding="utf-8") as handle:
        raw = json.load(handle)

    if not isinstance(raw, list):
        raise ValueError(f"{path} must contain a JSON list of documents")

    return [_to_document(entry, index) for index, entry in enumerate(raw)]


def _to_document(entry: Dict[str, Any], index: int) -> Document:
    if not entry.get("id") or not entry.get("content"):
        raise ValueError(f"Document #{index} needs both 'id' and 'content'")

    return Document(
        content=entry["content"],
        document_id=str(entry["id"]),
        metadata=DocumentMetadata(
            type=entry.get("type", "document"),
            team=entry.get("team"),
            year=None if entry.get("year") is None else str(entry["year"]),
            season=entry.get("season"),
        ),
    )


def ingest(vector_store: VectorStore, documents: List[Document], batch_size: int = 10) -> int:
    """Store documents in batches; returns how many were written."""
    written = 0
    total_batches = (len(documents) + batch_size - 1) // batch_size

    for batch_num, start in enumerate(range(0, len(documents), batch_size), start=1):
        batch = documents[start:start + batch_size]
        logger.info(f"Processing batch {batch_num}/{total_batches} ({len(batch)} documents)...")
        written += vector_store.add_documents(batch)

    return written


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Ingest football documents into the vector store")
    parser.add_argument("path", type=Path, help="JSON file with documents")
    parser.add_argument("--clear", action="store_true", help="Delete existing documents first")
    parser.add_argument("--batch-size", type=int, default=10)
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    try:
        documents = load_documents(args.path)
        logger.info(f"Loaded {len(documents)} documents from {args.path}")
        if not documents:
            logger.error("No documents to ingest")
            return 1

        vector_store = VectorStore(embedding_model=EmbeddingModel())
        if args.clear:
            vector_store.clear()

        written = ingest(vector_store, documents, batch_size=args.batch_size)
        logger.info(f"Stored {written} documents; store now holds {vector_store.count()}")
        return 0

    except KeyboardInterrupt:
        logger.warning("Ingestion interrupted by user")
        return 1
    except Exception as e:
        logger.error(f"Ingestion failed: {e}", exc_info=True)
        return 1


if __name__ == "__main__":
    sys.exit(main())
