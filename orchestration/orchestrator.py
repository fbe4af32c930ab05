"""
Deal Search Orchestrator

Bounded tool-calling loop with the completion service.

Flow:
AWAITING_MODEL -> (tool calls) EXECUTING_TOOLS -> AWAITING_MODEL ...
AWAITING_MODEL -> (no tool calls) FINALIZING -> DONE
Step budget exhausted -> DONE without a result

The assistant turn is always appended in full before any of its tool
answers, and tool answers are appended one per call, in call order.
"""

import json
import logging
from typing import Any, Dict, Optional

from orchestration.finalizer import StrictOutputFinalizer
from orchestration.prompts import PromptSet
from orchestration.state import OrchestrationPhase, OrchestrationState
from schemas.messages import ConversationMessage
from tools.executor import ToolExecutor

logger = logging.getLogger(__name__)


class DealSearchOrchestrator:
    """
    Drives one request's conversation with the model.

    Args:
        completions: CompletionClient (or any object with the same async complete())
        tools: ToolExecutor for model tool calls
        prompts: System and corrective prompt texts
        max_steps: Completion requests allowed in the tool loop
    """

    MAX_STEPS = 8

    def __init__(
        self,
        completions,
        tools: ToolExecutor,
        prompts: PromptSet,
        max_steps: int = MAX_STEPS,
    ):
        self._completions = completions
        self._tools = tools
        self._prompts = prompts
        self._max_steps = max_steps
        self._finalizer = StrictOutputFinalizer(completions, prompts.strict_json_retry)

    def seed(self, query: str, prefs: Optional[Any] = None) -> OrchestrationState:
        state = OrchestrationState()
        state.append(ConversationMessage.system(self._prompts.system))
        payload: Dict[str, Any] = {"query": query}
        if prefs is not None:
            payload["prefs"] = prefs
        state.append(ConversationMessage.user(json.dumps(payload)))
        return state

    async def run(self, query: str, prefs: Optional[Any] = None) -> OrchestrationState:
        """
        Run the loop to completion.

        Returns:
            Final OrchestrationState; final_result is None when no valid
            JSON object was obtained.

        Raises:
            UpstreamError: if any completion call fails
        """
        state = self.seed(query, prefs)
        tool_specs = self._tools.specs()

        while state.phase != OrchestrationPhase.DONE:
            if state.phase == OrchestrationPhase.AWAITING_MODEL:
                if state.step_count >= self._max_steps:
                    logger.warning(f"Step budget of {self._max_steps} exhausted without a final answer")
                    state.phase = OrchestrationPhase.DONE
                    continue

                state.step_count += 1
                reply = await self._completions.complete(state.messages, tools=tool_specs)
                state.append(reply)

                if reply.has_tool_calls:
                    state.phase = OrchestrationPhase.EXECUTING_TOOLS
                else:
                    state.phase = OrchestrationPhase.FINALIZING

            elif state.phase == OrchestrationPhase.EXECUTING_TOOLS:
                await self._execute_tool_calls(state, state.last_message)
                state.phase = OrchestrationPhase.AWAITING_MODEL

            elif state.phase == OrchestrationPhase.FINALIZING:
                state.final_result = await self._finalizer.finalize(state)
                state.phase = OrchestrationPhase.DONE

        logger.info(
            f"Orchestration finished after {state.step_count} step(s), "
            f"result={'yes' if state.has_result else 'no'}"
        )
        return state

    async def _execute_tool_calls(self, state: OrchestrationState, turn: ConversationMessage) -> None:
        for call in turn.tool_calls:
            logger.info(f"Step {state.step_count}: calling {call.name}")
            result = await self._tools.invoke(call)
            state.append(ConversationMessage.tool(call.id, json.dumps(result, ensure_ascii=False)))
