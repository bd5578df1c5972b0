"""Context document data models."""
from dataclasses import dataclass, field
from typing import Optional


@dataclass
class DocumentMetadata:
    """Provenance tags attached to a football context document."""
    type: str = "document"  # e.g. "match_report", "season_summary"
    team: Optional[str] = None
    year: Optional[str] = None
    season: Optional[str] = None


@dataclass
class Document:
    """A retrieved context document."""
    content: str
    metadata: DocumentMetadata = field(default_factory=DocumentMetadata)
    document_id: Optional[str] = None


@dataclass
class ScoredDocument:
    """Document with relevance score from retrieval."""
    document: Document
    relevance_score: float  # 0.0 to 1.0
