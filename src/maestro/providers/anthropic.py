"""Anthropic Messages API provider with tool use."""

from __future__ import annotations

import json
import os
from typing import Optional, Sequence

from ..core.errors import ModelCallError
from ..models.message import AssistantMessage, Message, SystemMessage, ToolCallRequest, ToolMessage
from ..models.provider import ModelReply, TextReply, ToolCallReply, ToolSchema
from .base import BaseProvider


def _text_block(text: str) -> dict:
    return {"type": "text", "text": text or "(empty)"}


def _tool_input(tool_call: ToolCallRequest) -> dict:
    try:
        tool_input = json.loads(tool_call.arguments_json or "{}")
    except json.JSONDecodeError:
        return {}
    return tool_input if isinstance(tool_input, dict) else {}


def _append_turn(wire: list[dict], role: str, blocks: list[dict]) -> None:
    """Append a turn, merging into the previous one when the role repeats."""
    if wire and wire[-1]["role"] == role:
        wire[-1]["content"].extend(blocks)
    else:
        wire.append({"role": role, "content": blocks})


def build_anthropic_messages(
    messages: Sequence[Message],
    tool_blocks: bool = True,
) -> tuple[str, list[dict]]:
    """Split system text out and map the rest onto alternating user/assistant turns.

    Attributed replies from the shared transcript travel as user turns
    ("[Name] text") so every request ends on a user turn. Only the unnamed
    tool-call echo keeps the assistant role. With tool_blocks off, tool calls
    and results are rendered as plain text, since the API refuses tool_use
    and tool_result blocks in a request that defines no tools.
    """
    system_parts: list[str] = []
    wire: list[dict] = []

    for message in messages:
        if isinstance(message, SystemMessage):
            if message.content:
                system_parts.append(message.content)
        elif isinstance(message, ToolMessage):
            if tool_blocks:
                block = {
                    "type": "tool_result",
                    "tool_use_id": message.tool_call_id,
                    "content": message.content,
                }
            else:
                block = _text_block(f"[{message.name or 'tool'} result] {message.content}")
            _append_turn(wire, "user", [block])
        elif isinstance(message, AssistantMessage) and message.tool_call:
            call = message.tool_call
            blocks: list[dict] = []
            if message.content:
                blocks.append(_text_block(message.content))
            if tool_blocks:
                blocks.append(
                    {"type": "tool_use", "id": call.call_id, "name": call.name, "input": _tool_input(call)}
                )
            else:
                blocks.append(_text_block(f"[called {call.name} with {call.arguments_json or '{}'}]"))
            _append_turn(wire, "assistant", blocks)
        elif isinstance(message, AssistantMessage) and message.name:
            _append_turn(wire, "user", [_text_block(f"[{message.name}] {message.content}")])
        elif isinstance(message, AssistantMessage):
            _append_turn(wire, "assistant", [_text_block(message.content)])
        else:
            _append_turn(wire, "user", [_text_block(message.content)])

    # The Messages API requires the first turn to come from the user.
    if not wire or wire[0]["role"] != "user":
        wire.insert(0, {"role": "user", "content": [_text_block("(conversation start)")]})

    return "\n\n".join(system_parts), wire


class AnthropicProvider(BaseProvider):
    name = "anthropic"
    API_URL = "https://api.anthropic.com/v1/messages"

    def _get_api_key(self) -> Optional[str]:
        env_var = self.config.get("api_key_env", "ANTHROPIC_API_KEY")
        return self.config.get("api_key") or os.environ.get(env_var)

    async def complete(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply:
        api_key = self._get_api_key()
        if not api_key:
            env_var = self.config.get("api_key_env", "ANTHROPIC_API_KEY")
            raise ModelCallError(f"API key not found in environment variable: {env_var}")

        system, wire_messages = build_anthropic_messages(messages, tool_blocks=bool(tools))
        body: dict = {
            "model": model,
            "max_tokens": self.config.get("max_tokens", 4096),
            "temperature": self.common.get("temperature", 0.7),
            "messages": wire_messages,
        }
        if system:
            body["system"] = system
        if tools:
            body["tools"] = [
                {
                    "name": t.name,
                    "description": t.description,
                    "input_schema": t.parameters,
                }
                for t in tools
            ]

        headers = {
            "x-api-key": api_key,
            "anthropic-version": "2023-06-01",
            "content-type": "application/json",
        }

        data = await self._post_json(self.config.get("endpoint") or self.API_URL, body, headers)

        text_parts: list[str] = []
        tool_use: Optional[dict] = None
        for block in data.get("content", []):
            if block.get("type") == "text":
                text_parts.append(block.get("text", ""))
            elif block.get("type") == "tool_use" and tool_use is None:
                tool_use = block

        usage = data.get("usage", {})
        tokens = {
            "input": usage.get("input_tokens", 0),
            "output": usage.get("output_tokens", 0),
        }
        text = "".join(text_parts)

        if tool_use is not None:
            return ToolCallReply(
                content=text or None,
                tool_call=ToolCallRequest(
                    name=tool_use.get("name", ""),
                    arguments_json=json.dumps(tool_use.get("input") or {}),
                    call_id=tool_use.get("id", ""),
                ),
                tokens_used=tokens,
            )
        return TextReply(content=text, tokens_used=tokens)
