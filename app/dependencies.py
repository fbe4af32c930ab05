"""
FastAPI Dependencies

Process-wide objects are created once here, not per request.
Per-request state (OrchestrationState) is created by the orchestrator itself.

RULE: the route calls exactly one entry point: DealSearchOrchestrator.run()
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends

from app.core.config import Settings, get_settings
from llm.openai_client import CompletionClient
from orchestration.orchestrator import DealSearchOrchestrator
from orchestration.prompts import PromptSet, load_prompts
from tools.executor import ToolExecutor
from tools.registry import build_default_registry


@lru_cache(maxsize=1)
def _cached_prompts(prompts_dir: str) -> PromptSet:
    return load_prompts(prompts_dir)


def get_prompts(settings: Settings = Depends(get_settings)) -> PromptSet:
    return _cached_prompts(settings.prompts_dir)


@lru_cache(maxsize=1)
def get_tool_executor() -> ToolExecutor:
    """Registry with the fetch_url tool wired to a RedirectFetcher."""
    return ToolExecutor(build_default_registry())


@lru_cache(maxsize=1)
def _cached_completion_client(settings: Settings) -> CompletionClient:
    return CompletionClient(settings)


def get_completion_client(settings: Settings = Depends(get_settings)) -> Optional[CompletionClient]:
    """
    Shared completion client, or None when no API key is configured.

    The route reports the missing key as a 500 for each request.
    """
    if not settings.openai_api_key:
        return None
    return _cached_completion_client(settings)


def get_orchestrator(
    completions: Optional[CompletionClient] = Depends(get_completion_client),
    tools: ToolExecutor = Depends(get_tool_executor),
    prompts: PromptSet = Depends(get_prompts),
) -> Optional[DealSearchOrchestrator]:
    if completions is None:
        return None
    return DealSearchOrchestrator(completions=completions, tools=tools, prompts=prompts)
