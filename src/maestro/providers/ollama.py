"""Ollama local inference provider (/api/chat with tools)."""

from __future__ import annotations

import json
import uuid
from typing import Optional, Sequence

from ..models.message import AssistantMessage, Message, ToolCallRequest, ToolMessage
from ..models.provider import ModelReply, TextReply, ToolCallReply, ToolSchema
from .base import BaseProvider
from .openai_provider import to_openai_tool


def to_ollama_message(message: Message) -> dict:
    if isinstance(message, AssistantMessage) and message.tool_call:
        try:
            arguments = json.loads(message.tool_call.arguments_json or "{}")
        except json.JSONDecodeError:
            arguments = {}
        return {
            "role": "assistant",
            "content": message.content,
            "tool_calls": [
                {"function": {"name": message.tool_call.name, "arguments": arguments}}
            ],
        }
    if isinstance(message, ToolMessage):
        return {"role": "tool", "content": message.content}
    return {"role": message.role, "content": message.content}


class OllamaProvider(BaseProvider):
    name = "ollama"

    async def complete(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply:
        endpoint = self.config.get("endpoint", "http://localhost:11434")

        body: dict = {
            "model": model,
            "messages": [to_ollama_message(m) for m in messages],
            "stream": False,
            "options": {"temperature": self.common.get("temperature", 0.7)},
        }
        if tools:
            body["tools"] = [to_openai_tool(t) for t in tools]

        url = f"{endpoint.rstrip('/')}/api/chat"
        data = await self._post_json(url, body)

        message = data.get("message") or {}
        tool_calls = message.get("tool_calls") or []
        if tool_calls:
            function = tool_calls[0].get("function") or {}
            arguments = function.get("arguments") or {}
            return ToolCallReply(
                content=message.get("content") or None,
                tool_call=ToolCallRequest(
                    name=function.get("name", ""),
                    arguments_json=arguments if isinstance(arguments, str) else json.dumps(arguments),
                    # Ollama does not issue call ids
                    call_id=tool_calls[0].get("id") or f"call_{uuid.uuid4().hex[:12]}",
                ),
            )
        return TextReply(content=message.get("content", ""))
