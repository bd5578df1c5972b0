"""Pipeline data models used by the supervisor."""
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

REALTIME = "realtime"
HISTORICAL = "historical"


@dataclass
class PipelineEvent:
    """A progress step emitted during one supervisor run."""
    description: str
    context: Optional[Dict[str, Any]] = None


@dataclass
class RoutedQuery:
    """Enhanced query text plus the routing decision made for it."""
    query: str
    strategy: str
    confidence: float
    matched_keywords: List[str] = field(default_factory=list)

    @property
    def is_realtime(self) -> bool:
        return self.strategy == REALTIME
