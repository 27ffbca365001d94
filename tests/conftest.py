"""Shared fixtures for Maestro tests."""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional, Sequence

import pytest

from maestro.core.conductor import Conductor
from maestro.core.config import DEFAULT_CONFIG
from maestro.core.responder import Responder
from maestro.core.store import AgentStore
from maestro.core.tools import ToolRegistry, build_registry
from maestro.models.message import Message, ToolCallRequest
from maestro.models.provider import ModelReply, TextReply, ToolCallReply, ToolSchema


class ScriptedProvider:
    """Fake model provider that replays queued replies.

    Replies can be queued globally or per model name. A str becomes a
    TextReply; an exception instance is raised.
    """

    name = "scripted"

    def __init__(self, replies: Optional[list] = None, by_model: Optional[dict] = None):
        self.replies = list(replies or [])
        self.by_model = {k: list(v) for k, v in (by_model or {}).items()}
        self.calls: list[dict] = []

    async def complete(
        self,
        model: str,
        messages: Sequence[Message],
        tools: Optional[Sequence[ToolSchema]] = None,
    ) -> ModelReply:
        self.calls.append({"model": model, "messages": list(messages), "tools": list(tools or [])})
        queue = self.by_model[model] if model in self.by_model else self.replies
        reply = queue.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if isinstance(reply, str):
            return TextReply(content=reply)
        return reply


@pytest.fixture
def tool_call():
    """Factory for ToolCallReply values to queue on the provider."""

    def make(name: str, arguments_json: str = "{}", call_id: str = "call_1", content=None) -> ToolCallReply:
        return ToolCallReply(
            content=content,
            tool_call=ToolCallRequest(name=name, arguments_json=arguments_json, call_id=call_id),
        )

    return make


@pytest.fixture
def config(tmp_path: Path) -> dict:
    """Default config with the code artifact redirected into tmp_path."""
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    cfg["artifacts"]["code_path"] = str(tmp_path / "code.py")
    cfg["conversation"]["model_timeout_seconds"] = 5
    cfg["conversation"]["tool_timeout_seconds"] = 5
    return cfg


@pytest.fixture
def registry(config: dict) -> ToolRegistry:
    reg = build_registry(config)

    @reg.tool(
        description="Add two numbers",
        parameters={
            "type": "object",
            "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
            "required": ["a", "b"],
        },
    )
    def add(a, b):
        return a + b

    @reg.tool(description="Always fails")
    def explode():
        raise RuntimeError("boom")

    return reg


@pytest.fixture
def store(registry: ToolRegistry) -> AgentStore:
    return AgentStore(registry)


@pytest.fixture
def provider() -> ScriptedProvider:
    return ScriptedProvider()


@pytest.fixture
def responder(provider: ScriptedProvider, registry: ToolRegistry, config: dict) -> Responder:
    return Responder(provider, registry, config)


@pytest.fixture
def conductor(store: AgentStore, responder: Responder, config: dict) -> Conductor:
    return Conductor(store, responder, config)


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """A config file declaring two agents."""
    path = tmp_path / "maestro.yaml"
    path.write_text(
        "ai:\n"
        "  provider: ollama\n"
        "conversation:\n"
        "  max_turns: 2\n"
        "agents:\n"
        "  - name: Alice\n"
        "    model: model-a\n"
        "  - name: Bob\n"
        "    model: model-b\n"
        "    system_prompt: You are Bob.\n"
        "    tools: [calculator]\n",
        encoding="utf-8",
    )
    return path
