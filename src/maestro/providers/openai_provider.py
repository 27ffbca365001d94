"""OpenAI Chat Completions provider with function tools."""

from __future__ import annotations

import os
import re
from typing import Optional, Sequence

from ..core.errors import ModelCallError
from ..models.message import AssistantMessage, Message, ToolCallRequest, ToolMessage
from ..models.provider import ModelReply, TextReply, ToolCallReply, ToolSchema
from .base import BaseProvider

_NAME_UNSAFE = re.compile(r"[^a-zA-Z0-9_-]")


def to_openai_message(message: Message) -> dict:
    if isinstance(message, AssistantMessage):
        wire: dict = {"role": "assistant", "content": message.content}
        if message.name:
            # OpenAI only accepts [a-zA-Z0-9_-]{1,64} as a participant name
            wire["name"] = _NAME_UNSAFE.sub("_", message.name)[:64]
        if message.tool_call:
            wire["content"] = message.content or None
            wire["tool_calls"] = [
                {
                    "id": message.tool_call.call_id,
                    "type": "function",
                    "function": {
                        "name": message.tool_call.name,
                        "arguments": message.tool_call.arguments_json,
                    },
                }
            ]
        return wire
    if isinstance(message, ToolMessage):
        return {
            "role": "tool",
            "tool_call_id": message.tool_call_id,
            "content": message.content,
        }
    return {"role": message.role, "content": message.content}


def to_openai_tool(schema: ToolSchema) -> dict:
    return {
        "type": "function",
        "function": {
            "name": schema.name,
            "description": schema.description,
            "parameters": schema.parameters,
        },
    }


class OpenAIProvider(BaseProvider):
    name = "openai"
    API_URL = "https://api.openai.com/v1/chat/completions"

    def _get_api_key(self) -> Optional[str]:
        env_var = self.config.get("api_key_env", "OPENAI_API_KEY")
        return self.config.get("api_key") or os.environ.get(env_var)

    async def complete(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply:
        api_key = self._get_api_key()
        if not api_key:
            env_var = self.config.get("api_key_env", "OPENAI_API_KEY")
            raise ModelCallError(f"API key not found in environment variable: {env_var}")

        body: dict = {
            "model": model,
            "messages": [to_openai_message(m) for m in messages],
            "temperature": self.common.get("temperature", 0.7),
        }
        if self.config.get("max_tokens"):
            body["max_tokens"] = self.config["max_tokens"]
        if tools:
            body["tools"] = [to_openai_tool(t) for t in tools]
            body["tool_choice"] = "auto"

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }

        data = await self._post_json(self.config.get("endpoint") or self.API_URL, body, headers)
        return self._parse_reply(data)

    def _parse_reply(self, data: dict) -> ModelReply:
        choices = data.get("choices") or []
        if not choices:
            raise ModelCallError(f"{self.name}: response contained no choices")

        message = choices[0].get("message") or {}
        usage = data.get("usage", {})
        tokens = {
            "input": usage.get("prompt_tokens", 0),
            "output": usage.get("completion_tokens", 0),
        }

        tool_calls = message.get("tool_calls") or []
        if tool_calls:
            first = tool_calls[0]
            function = first.get("function") or {}
            return ToolCallReply(
                content=message.get("content"),
                tool_call=ToolCallRequest(
                    name=function.get("name", ""),
                    arguments_json=function.get("arguments") or "{}",
                    call_id=first.get("id", ""),
                ),
                tokens_used=tokens,
            )

        return TextReply(content=message.get("content") or "", tokens_used=tokens)
