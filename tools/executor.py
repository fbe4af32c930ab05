"""
Tool Executor

Bridge between model tool calls and registered tools.

Guarantees:
- Malformed arguments become {} instead of raising
- Unknown tool names produce an `unknown_tool` result
- The return value is always a JSON-serializable dict
"""

import json
import logging
from typing import Any, Dict, List

from schemas.messages import ToolCallRequest
from tools.registry import ToolRegistry

logger = logging.getLogger(__name__)


def parse_arguments(raw: str) -> Dict[str, Any]:
    """Parse tool-call argument text; anything but a JSON object yields {}."""
    if not raw:
        return {}
    try:
        parsed = json.loads(raw)
    except (TypeError, ValueError):
        logger.warning(f"Unparseable tool arguments: {raw[:200]!r}")
        return {}
    return parsed if isinstance(parsed, dict) else {}


class ToolExecutor:
    """Executes one tool call at a time against a registry."""

    def __init__(self, registry: ToolRegistry):
        self._registry = registry

    def specs(self) -> List[Dict[str, Any]]:
        return self._registry.specs()

    async def invoke(self, call: ToolCallRequest) -> Dict[str, Any]:
        tool = self._registry.get(call.name)
        if tool is None:
            logger.warning(f"Model requested unknown tool {call.name!r}")
            return {"ok": False, "error": "unknown_tool", "name": call.name}

        args = parse_arguments(call.arguments)
        try:
            return await tool.run(args)
        except Exception as e:
            logger.exception(f"Tool {call.name} raised")
            return {"ok": False, "error": "tool_failed", "detail": str(e)[:500]}
