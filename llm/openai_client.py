"""
OpenAI Client Wrapper

Async wrapper for the OpenAI Chat Completions API.
Exposes our own message types only - no SDK objects leak out.

DESIGN RULES:
- No retries (max_retries=0); upstream failures surface as UpstreamError
- Every call is bounded by an explicit timeout
- No prompt logging
"""

import logging
import time
from typing import Any, Dict, List, Optional

import httpx
from openai import APIConnectionError, APIStatusError, APITimeoutError, AsyncOpenAI

from app.core.config import Settings
from schemas.messages import ConversationMessage, ToolCallRequest

logger = logging.getLogger(__name__)


class UpstreamError(Exception):
    """The completion service failed or answered with a non-success status."""

    def __init__(self, status_code: Optional[int], detail: str = "", reason: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        self.reason = reason or (str(status_code) if status_code is not None else "unavailable")
        super().__init__(self.error)

    @property
    def error(self) -> str:
        return f"openai {self.reason}"


class CompletionClient:
    """
    Chat Completions client used by the orchestrator.

    Args:
        settings: Application settings (API key, model, timeout)
        http_client: optional httpx.AsyncClient (tests inject a mock transport)
    """

    def __init__(self, settings: Settings, http_client: Optional[httpx.AsyncClient] = None):
        self._model = settings.openai_model
        self._temperature = settings.openai_temperature
        self._client = AsyncOpenAI(
            api_key=settings.openai_api_key,
            timeout=settings.completion_timeout_seconds,
            max_retries=0,
            http_client=http_client,
        )

    async def complete(
        self,
        messages: List[ConversationMessage],
        tools: Optional[List[Dict[str, Any]]] = None,
        json_mode: bool = False,
    ) -> ConversationMessage:
        """
        Request one assistant turn.

        Args:
            messages: Full message history
            tools: Function specs to offer, or None for no tool access
            json_mode: Request response_format json_object

        Returns:
            Assistant ConversationMessage with content and/or tool_calls

        Raises:
            UpstreamError: on any transport failure or non-success status
        """
        kwargs: Dict[str, Any] = {
            "model": self._model,
            "messages": [m.to_openai() for m in messages],
        }
        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        if self._temperature is not None:
            kwargs["temperature"] = self._temperature

        start_time = time.time()
        try:
            response = await self._client.chat.completions.create(**kwargs)
        except APIStatusError as e:
            logger.warning(f"Completion service returned {e.status_code}")
            raise UpstreamError(e.status_code, detail=e.response.text) from e
        except APITimeoutError as e:
            raise UpstreamError(None, detail=str(e), reason="timeout") from e
        except APIConnectionError as e:
            raise UpstreamError(None, detail=str(e), reason="unreachable") from e

        latency_ms = int((time.time() - start_time) * 1000)
        tokens_used = response.usage.total_tokens if response.usage else 0
        logger.info(f"Completion model={self._model} tokens={tokens_used} latency_ms={latency_ms}")

        if not response.choices:
            return ConversationMessage.assistant(None)

        message = response.choices[0].message
        tool_calls = []
        for tc in message.tool_calls or []:
            function = getattr(tc, "function", None)
            if function is None:
                continue
            tool_calls.append(
                ToolCallRequest(id=tc.id, name=function.name, arguments=function.arguments or "")
            )
        return ConversationMessage.assistant(message.content, tool_calls)
