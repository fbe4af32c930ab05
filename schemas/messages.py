"""
Conversation Messages

Typed chat history exchanged with the completion service.

ORDERING RULE: an assistant message carrying tool_calls is appended in full
before any of its tool answers, and every call gets exactly one tool message
before the next assistant turn is requested.
"""

from typing import Any, Dict, List, Literal, Optional
from pydantic import BaseModel, Field


Role = Literal["system", "user", "assistant", "tool"]


class ToolCallRequest(BaseModel):
    """A function call requested by the model. arguments is raw JSON text."""
    id: str
    name: str
    arguments: str = ""

    def to_openai(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": "function",
            "function": {"name": self.name, "arguments": self.arguments},
        }


class ConversationMessage(BaseModel):
    """One entry of the message history."""
    role: Role
    content: Optional[str] = None
    tool_calls: List[ToolCallRequest] = Field(default_factory=list)
    tool_call_id: Optional[str] = None

    @classmethod
    def system(cls, content: str) -> "ConversationMessage":
        return cls(role="system", content=content)

    @classmethod
    def user(cls, content: str) -> "ConversationMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(
        cls,
        content: Optional[str],
        tool_calls: Optional[List[ToolCallRequest]] = None,
    ) -> "ConversationMessage":
        return cls(role="assistant", content=content, tool_calls=tool_calls or [])

    @classmethod
    def tool(cls, tool_call_id: str, content: str) -> "ConversationMessage":
        return cls(role="tool", content=content, tool_call_id=tool_call_id)

    @property
    def has_tool_calls(self) -> bool:
        return bool(self.tool_calls)

    def to_openai(self) -> Dict[str, Any]:
        """Render as a Chat Completions message dict."""
        message: Dict[str, Any] = {"role": self.role, "content": self.content}
        if self.role == "assistant" and self.tool_calls:
            message["tool_calls"] = [call.to_openai() for call in self.tool_calls]
        if self.role == "tool":
            message["tool_call_id"] = self.tool_call_id
            message["content"] = self.content or ""
        return message
