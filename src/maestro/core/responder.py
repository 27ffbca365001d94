"""Single-turn responder.

Produces one agent turn from the transcript so far, with at most one tool
round-trip:

    model call -> text reply                        -> done
               -> tool call -> unknown tool         -> "not found" reply
                            -> execute -> tool msg  -> summary model call -> done

Model and tool failures, including a tool result that cannot be encoded as
JSON, are not handled here; they propagate to the caller.
"""

from __future__ import annotations

import asyncio
import json
from typing import Any, Optional, Sequence

from rich.console import Console

from ..models.agent import Agent
from ..models.conversation import ToolCallRecord, TurnResult
from ..models.message import AssistantMessage, Message, SystemMessage, ToolMessage
from ..models.provider import ModelReply, TextReply, ToolSchema
from ..providers.base import BaseProvider, ModelProvider
from .artifacts import write_code_artifact
from .config import DEFAULT_SYSTEM_PROMPT
from .errors import ModelCallError, ToolExecutionError
from .tools import ToolRegistry

console = Console(stderr=True)

NO_CONTENT = "(No content returned.)"


def _sum_tokens(*replies: ModelReply) -> Optional[dict]:
    """Add up per-call token counts. None when no call reported usage."""
    totals: dict = {}
    for reply in replies:
        for key, value in (reply.tokens_used or {}).items():
            totals[key] = totals.get(key, 0) + int(value or 0)
    return totals or None


def parse_tool_arguments(arguments_json: str, tool_name: str = "") -> dict[str, Any]:
    """Decode a tool-call payload. Malformed or non-object payloads become {}."""
    if not arguments_json or not arguments_json.strip():
        return {}
    try:
        parsed = json.loads(arguments_json)
    except json.JSONDecodeError as e:
        console.print(
            f"  [yellow]WARN[/yellow] Could not parse arguments for tool '{tool_name}': {e}. "
            f"Calling it with no arguments."
        )
        return {}
    if not isinstance(parsed, dict):
        console.print(
            f"  [yellow]WARN[/yellow] Arguments for tool '{tool_name}' are not a JSON object. "
            f"Calling it with no arguments."
        )
        return {}
    return parsed


class Responder:
    def __init__(self, provider: ModelProvider, registry: ToolRegistry, config: Optional[dict] = None):
        config = config or {}
        conversation = config.get("conversation", {})
        self.provider = provider
        self.registry = registry
        self.default_system_prompt = conversation.get("default_system_prompt") or DEFAULT_SYSTEM_PROMPT
        self.model_timeout = conversation.get("model_timeout_seconds")
        self.tool_timeout = conversation.get("tool_timeout_seconds")
        self.code_path = config.get("artifacts", {}).get("code_path")

    async def _complete(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply:
        if isinstance(self.provider, BaseProvider):
            call = self.provider.complete_with_retry(model, messages, tools or None)
        else:
            call = self.provider.complete(model, messages, tools or None)
        try:
            return await asyncio.wait_for(call, timeout=self.model_timeout or None)
        except asyncio.TimeoutError as e:
            raise ModelCallError(
                f"model call to {model} timed out after {self.model_timeout}s",
                retryable=True,
            ) from e

    async def respond(self, agent: Agent, transcript: Sequence[Message]) -> TurnResult:
        working: list[Message] = [
            SystemMessage(content=agent.system_prompt or self.default_system_prompt),
            *transcript,
        ]
        schemas = self.registry.schemas_for(agent.tools)

        reply = await self._complete(agent.model, working, schemas)

        if isinstance(reply, TextReply):
            content = reply.content or NO_CONTENT
            written = write_code_artifact(content, self.code_path)
            if written is not None:
                console.print(f"  [dim]INFO[/dim] Extracted code from {agent.name} to {written}")
            return TurnResult(content=content, model=agent.model, tokens_used=_sum_tokens(reply))

        # Only the first requested tool call is carried by a ToolCallReply.
        request = reply.tool_call
        arguments = parse_tool_arguments(request.arguments_json, request.name)
        record = ToolCallRecord(name=request.name, arguments=arguments)

        if request.name not in self.registry.discover_tools():
            return TurnResult(
                content=f"Tool '{request.name}' not found.",
                model=agent.model,
                tool_call=record,
                tokens_used=_sum_tokens(reply),
            )

        result = await self.registry.execute(
            request.name, arguments.values(), timeout=self.tool_timeout
        )

        try:
            encoded = json.dumps(result, default=str)
        except (TypeError, ValueError) as e:
            raise ToolExecutionError(request.name, f"result is not JSON-encodable: {e}") from e

        echo = AssistantMessage(content=reply.content or "", tool_call=request)
        tool_message = ToolMessage(
            content=encoded,
            tool_call_id=request.call_id,
            name=request.name,
        )
        follow_up = [*working, echo, tool_message]

        # No tools on the follow-up; a stray tool call there only keeps its text.
        summary = await self._complete(agent.model, follow_up)

        return TurnResult(
            content=summary.content or NO_CONTENT,
            model=agent.model,
            tool_call=record,
            tokens_used=_sum_tokens(reply, summary),
            appended_messages=[echo, tool_message],
            follow_up_messages=follow_up,
        )
