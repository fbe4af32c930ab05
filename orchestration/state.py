from typing import Any, List, Optional
from enum import Enum
from pydantic import BaseModel, Field

from schemas.messages import ConversationMessage


class OrchestrationPhase(str, Enum):
    AWAITING_MODEL = "awaiting_model"
    EXECUTING_TOOLS = "executing_tools"
    FINALIZING = "finalizing"
    DONE = "done"


class OrchestrationState(BaseModel):
    """
    Mutable state for one /deal-search request.

    Created at request entry, owned by a single orchestrator run,
    discarded when the response is sent.
    """
    messages: List[ConversationMessage] = Field(default_factory=list)
    step_count: int = 0
    phase: OrchestrationPhase = OrchestrationPhase.AWAITING_MODEL
    final_result: Optional[Any] = None
    corrective_retry_used: bool = False

    def append(self, message: ConversationMessage) -> None:
        self.messages.append(message)

    @property
    def last_message(self) -> Optional[ConversationMessage]:
        return self.messages[-1] if self.messages else None

    @property
    def has_result(self) -> bool:
        return self.final_result is not None
