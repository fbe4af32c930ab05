"""
Strict-Output Finalizer

Turns the model's terminal answer into a JSON object.
One corrective re-prompt (JSON mode, no tools) is allowed; after that the
result is final.
"""

import json
import logging
from typing import Any, Dict, Optional

from orchestration.state import OrchestrationState
from schemas.messages import ConversationMessage

logger = logging.getLogger(__name__)

ECHO_LIMIT = 5000


def _reject_constant(name: str) -> Any:
    raise ValueError(f"non-standard JSON constant {name}")


def parse_json_object(text: Optional[str]) -> Optional[Dict[str, Any]]:
    """Parse text as a single JSON object; None on any failure.

    NaN, Infinity and -Infinity are rejected: they are not JSON and the
    response encoder refuses them.
    """
    if not text:
        return None
    try:
        parsed = json.loads(text.strip(), parse_constant=_reject_constant)
    except ValueError:
        return None
    return parsed if isinstance(parsed, dict) else None


class StrictOutputFinalizer:
    """
    Args:
        completions: object with async complete(messages, tools=None, json_mode=False)
        retry_instruction: corrective system instruction text
    """

    def __init__(self, completions, retry_instruction: str):
        self._completions = completions
        self._retry_instruction = retry_instruction

    async def finalize(self, state: OrchestrationState) -> Optional[Dict[str, Any]]:
        """
        Parse the last assistant message, re-prompting once if needed.

        Raises:
            UpstreamError: if the corrective completion call fails
        """
        content = state.last_message.content if state.last_message else None
        result = parse_json_object(content)
        if result is not None:
            return result

        logger.info("Final answer was not a JSON object; issuing corrective re-prompt")
        state.corrective_retry_used = True
        state.append(ConversationMessage.system(self._retry_instruction))
        state.append(ConversationMessage.user(
            "Previous reply (invalid JSON):\n" + (content or "")[:ECHO_LIMIT]
        ))

        retry = await self._completions.complete(state.messages, tools=None, json_mode=True)
        state.append(retry)

        result = parse_json_object(retry.content)
        if result is None:
            logger.warning("Corrective re-prompt still produced invalid JSON")
        return result
