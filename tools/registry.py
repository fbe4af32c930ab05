"""
Tool Registry

Explicit tool registration. No auto-discovery.
The registry is the single source of truth for the tool schema
declared to the completion service.
"""

from typing import Any, Dict, List, Optional

from tools.base import Tool


class ToolRegistry:
    """
    Registry of tools the model may call.

    Features:
    - Explicit registration (no auto-discovery)
    - Tool lookup by name
    - Declared schema list for the completion request
    """

    def __init__(self):
        self._tools: Dict[str, Tool] = {}

    def register(self, tool: Tool) -> None:
        self._tools[tool.name] = tool

    def get(self, name: str) -> Optional[Tool]:
        """Get a tool by name."""
        return self._tools.get(name)

    def specs(self) -> List[Dict[str, Any]]:
        return [tool.to_openai_spec() for tool in self._tools.values()]


# --- Tool Registration Bootstrap ---

def build_default_registry(fetcher=None) -> ToolRegistry:
    """
    Register default tools.

    Called once at startup to populate the registry.
    """
    from fetcher.redirect_fetcher import RedirectFetcher
    from tools.web_fetch import WebFetchTool

    registry = ToolRegistry()
    registry.register(WebFetchTool(fetcher or RedirectFetcher()))
    return registry
