"""
Tool Base Interface

Canonical Tool contract for model-callable tools.
Tools return structured output, never user-facing strings.

CAPABILITY BOUNDARY:
    API ❌
    Orchestrator ❌  (talks to ToolExecutor only)
    ToolExecutor ✅  ← tools are invoked ONLY here
"""

from abc import ABC, abstractmethod
from typing import Any, Dict


class Tool(ABC):
    """
    Abstract base class for all tools.

    Tools:
    - Return a JSON-serializable dict
    - Report failures inside that dict instead of raising

    Implement `run()` to define tool behavior.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique tool identifier."""
        pass

    @property
    @abstractmethod
    def description(self) -> str:
        """Human-readable description for LLM context."""
        pass

    @property
    def input_schema(self) -> Dict[str, Any]:
        """
        JSON Schema for tool input.

        Override to define required parameters.
        Default: accepts any dict.
        """
        return {"type": "object", "properties": {}}

    @abstractmethod
    async def run(self, input: Dict[str, Any]) -> Dict[str, Any]:
        """
        Execute the tool with given input.

        Args:
            input: Parsed call arguments (may be empty or partial)

        Returns:
            JSON-serializable result dict
        """
        pass

    def to_openai_spec(self) -> Dict[str, Any]:
        """Function spec in Chat Completions `tools` format."""
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": self.input_schema,
            },
        }
