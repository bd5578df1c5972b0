"""API request/response models."""
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field


class QueryRequest(BaseModel):
    """Incoming query from an HTTP caller."""
    question: str
    conversation_id: Optional[str] = None


class Source(BaseModel):
    """Provenance record for a context document or a responder's data."""
    model_config = ConfigDict(frozen=True)

    type: str
    team: Optional[str] = None
    timeframe: Optional[str] = None


class Analysis(BaseModel):
    """Answer produced by the responder that handled the query."""
    result: str
    confidence: float = Field(ge=0.0, le=1.0)
    tools_used: List[str] = Field(default_factory=list)


class ResponseContext(BaseModel):
    """Where the answer's supporting data came from."""
    sources: List[Source] = Field(default_factory=list)
    timeframe: str


class QueryResponse(BaseModel):
    """Terminal artifact of one supervisor run."""
    query: str
    analysis: Analysis
    context: ResponseContext
    reasoning: List[str] = Field(default_factory=list)


