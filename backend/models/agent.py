"""Result types shared by the capability agents."""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class AgentResponse:
    """
    Uniform result of a single agent call.

    Attributes:
        success: Whether the agent completed its task
        message: Answer text, enhanced query, or failure reason
        data: Agent specific payload (team, tools_used, sources)
        reasoning: Optional free-text explanation from the agent
    """
    success: bool
    message: str
    data: Dict[str, Any] = field(default_factory=dict)
    reasoning: Optional[str] = None
