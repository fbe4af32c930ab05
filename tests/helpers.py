import ipaddress
from typing import Dict, List, Optional

from schemas.messages import ConversationMessage, ToolCallRequest


class ScriptedCompletions:
    """
    Stand-in for CompletionClient.

    Replays a list of assistant turns and records every call, including a
    snapshot of the history as it was at call time.
    """

    def __init__(self, replies: List[ConversationMessage], repeat_last: bool = False):
        self._replies = list(replies)
        self._repeat_last = repeat_last
        self.calls: List[Dict] = []

    async def complete(self, messages, tools=None, json_mode=False):
        self.calls.append({
            "messages": [m.model_copy(deep=True) for m in messages],
            "tools": tools,
            "json_mode": json_mode,
        })
        if len(self._replies) > 1 or not self._repeat_last:
            return self._replies.pop(0)
        return self._replies[0]


def tool_turn(*calls: ToolCallRequest, content: Optional[str] = None) -> ConversationMessage:
    return ConversationMessage.assistant(content, list(calls))


def fetch_call(call_id: str, url: str) -> ToolCallRequest:
    return ToolCallRequest(id=call_id, name="fetch_url", arguments=f'{{"url": "{url}"}}')


def static_resolver(table: Dict[str, List[str]]):
    """Resolver that answers from a dict and records the names it was asked for."""
    asked: List[str] = []

    async def resolve(hostname: str):
        asked.append(hostname)
        return [ipaddress.ip_address(a) for a in table.get(hostname, [])]

    resolve.asked = asked
    return resolve


