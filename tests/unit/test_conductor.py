"""Tests for core/conductor.py."""

from __future__ import annotations

from collections import Counter

import pytest
from pydantic import ValidationError as PydanticValidationError

from maestro.core.conductor import Conductor
from maestro.core.errors import ModelCallError
from maestro.models.conversation import ConductorStatus, ConversationRequest
from maestro.models.message import AssistantMessage, SystemMessage, ToolMessage, UserMessage

UNKNOWN_ID = 999_999_999


def _speakers(result) -> list[str]:
    return [m.name for m in result.messages if isinstance(m, AssistantMessage) and m.tool_call is None]


class TestScenarios:
    @pytest.mark.asyncio
    async def test_two_agents_plain_text(self, conductor, store, provider):
        a = store.create_agent("A", "model-a")
        b = store.create_agent("B", "model-b")
        provider.by_model = {"model-a": ["hi"], "model-b": ["hello"]}

        result = await conductor.run([a.id, b.id], "Say something", max_turns=2)

        assert result.messages == [
            UserMessage(content="Say something"),
            AssistantMessage(content="hi", name="A"),
            AssistantMessage(content="hello", name="B"),
        ]
        assert result.status == ConductorStatus.BUDGET_EXHAUSTED
        assert result.turns == 2

    @pytest.mark.asyncio
    async def test_unknown_agent(self, conductor, provider):
        result = await conductor.run([UNKNOWN_ID], "Hello")
        assert len(result.messages) == 2
        assert result.messages[-1] == SystemMessage(
            content=f"Agent with id={UNKNOWN_ID} not found. Stopping."
        )
        assert result.status == ConductorStatus.AGENT_NOT_FOUND
        assert result.turns == 0
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_unknown_agent_mid_rotation(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        provider.replies = ["one", "two"]
        result = await conductor.run([a.id, UNKNOWN_ID], "Hello", max_turns=6)
        assert result.turns == 1
        assert isinstance(result.messages[-1], SystemMessage)
        assert _speakers(result) == ["A"]

    @pytest.mark.asyncio
    async def test_zero_turns(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        result = await conductor.run([a.id], "Hello", max_turns=0)
        assert result.messages == [UserMessage(content="Hello")]
        assert result.status == ConductorStatus.BUDGET_EXHAUSTED
        assert provider.calls == []

    @pytest.mark.asyncio
    async def test_negative_turns_rejected(self, conductor):
        with pytest.raises(ValueError):
            await conductor.run([1], "Hello", max_turns=-1)


class TestRoundRobin:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("k,n", [(1, 3), (2, 5), (3, 7), (3, 2), (4, 8)])
    async def test_fairness(self, conductor, store, provider, k, n):
        agents = [store.create_agent(f"agent{i}", "m") for i in range(k)]
        provider.replies = [f"turn {t}" for t in range(n)]

        result = await conductor.run([a.id for a in agents], "Go", max_turns=n)

        counts = Counter(_speakers(result))
        for i, agent in enumerate(agents):
            assert counts[agent.name] == (n - i + k - 1) // k
        assert result.turns == n

    @pytest.mark.asyncio
    async def test_order_wraps(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        b = store.create_agent("B", "m")
        provider.replies = ["1", "2", "3", "4", "5"]
        result = await conductor.run([a.id, b.id], "Go", max_turns=5)
        assert _speakers(result) == ["A", "B", "A", "B", "A"]

    @pytest.mark.asyncio
    async def test_each_agent_sees_prior_turns(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        b = store.create_agent("B", "m")
        provider.replies = ["first", "second"]
        await conductor.run([a.id, b.id], "Go", max_turns=2)
        second_call = provider.calls[1]["messages"]
        assert second_call[-1] == AssistantMessage(content="first", name="A")

    @pytest.mark.asyncio
    async def test_transcript_is_append_only(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        provider.replies = ["1", "2", "3"]
        result = await conductor.run([a.id], "Go", max_turns=3)
        seen = [call["messages"][1:] for call in provider.calls]
        for earlier in seen:
            assert result.messages[: len(earlier)] == earlier


class TestToolTurns:
    @pytest.mark.asyncio
    async def test_tool_messages_recorded(self, conductor, store, provider, tool_call):
        a = store.create_agent("A", "m")
        store.assign_tool(a.id, "add")
        provider.replies = [tool_call("add", '{"a": 2, "b": 2}'), "Four."]

        result = await conductor.run([a.id], "2+2?", max_turns=1)

        assert len(result.messages) == 4
        user, echo, tool_result, summary = result.messages
        assert echo.tool_call.name == "add"
        assert isinstance(tool_result, ToolMessage)
        assert summary == AssistantMessage(content="Four.", name="A")

    @pytest.mark.asyncio
    async def test_tool_messages_not_recorded(self, store, responder, config, provider, tool_call):
        config["conversation"]["record_tool_messages"] = False
        conductor = Conductor(store, responder, config)
        a = store.create_agent("A", "m")
        provider.replies = [tool_call("add", '{"a": 2, "b": 2}'), "Four."]

        result = await conductor.run([a.id], "2+2?", max_turns=1)

        assert result.messages == [
            UserMessage(content="2+2?"),
            AssistantMessage(content="Four.", name="A"),
        ]


class TestFailurePolicy:
    @pytest.mark.asyncio
    async def test_tool_failure_aborts(self, conductor, store, provider, tool_call):
        a = store.create_agent("A", "m")
        b = store.create_agent("B", "m")
        provider.replies = ["fine", tool_call("explode")]

        result = await conductor.run([a.id, b.id], "Go", max_turns=4)

        assert result.status == ConductorStatus.FAILED
        assert result.turns == 1
        assert "boom" in result.error
        last = result.messages[-1]
        assert isinstance(last, SystemMessage)
        assert last.content.startswith("Turn 2 by agent B")
        assert last.content.endswith("Stopping.")

    @pytest.mark.asyncio
    async def test_unencodable_tool_result_aborts(self, conductor, store, registry, provider, tool_call):
        @registry.tool()
        def loop():
            data = {}
            data["self"] = data
            return data

        a = store.create_agent("A", "m")
        b = store.create_agent("B", "m")
        provider.replies = ["fine", tool_call("loop")]

        result = await conductor.run([a.id, b.id], "Go", max_turns=4)

        assert result.status == ConductorStatus.FAILED
        assert result.turns == 1
        assert result.messages[:2] == [UserMessage(content="Go"), AssistantMessage(content="fine", name="A")]
        assert "JSON" in result.messages[-1].content
        assert result.messages[-1].content.startswith("Turn 2 by agent B")

    @pytest.mark.asyncio
    async def test_model_failure_aborts(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        provider.replies = [ModelCallError("openai: 401 | key sk-abcdefghijklmnopqrstuvwxyz")]

        result = await conductor.run([a.id], "Go", max_turns=3)

        assert result.status == ConductorStatus.FAILED
        assert result.turns == 0
        assert "sk-abcdefghijklmnopqrstuvwxyz" not in result.messages[-1].content
        assert "[REDACTED_KEY]" in result.messages[-1].content


class TestStart:
    @pytest.mark.asyncio
    async def test_request_aliases(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        provider.replies = ["hi"]
        request = ConversationRequest.model_validate(
            {"agentIds": [a.id], "userInput": "Hello", "maxTurns": 1}
        )
        result = await conductor.start(request)
        assert [m.content for m in result.messages] == ["Hello", "hi"]

    @pytest.mark.asyncio
    async def test_default_max_turns_from_config(self, conductor, store, provider):
        a = store.create_agent("A", "m")
        provider.replies = [str(i) for i in range(10)]
        result = await conductor.start(ConversationRequest(agent_ids=[a.id], user_input="Go"))
        assert result.turns == 6

    def test_empty_agent_ids_rejected(self):
        with pytest.raises(PydanticValidationError):
            ConversationRequest(agent_ids=[], user_input="Go")

    def test_negative_max_turns_rejected(self):
        with pytest.raises(PydanticValidationError):
            ConversationRequest(agent_ids=[1], max_turns=-2)

    def test_result_serializes(self):
        from maestro.models.conversation import ConversationResult

        result = ConversationResult(
            messages=[UserMessage(content="Hi"), AssistantMessage(content="Yo", name="A")],
            status=ConductorStatus.BUDGET_EXHAUSTED,
            turns=1,
        )
        dumped = result.model_dump(mode="json")
        assert dumped["messages"][1] == {"role": "assistant", "content": "Yo", "name": "A", "tool_call": None}
        assert dumped["status"] == "BUDGET_EXHAUSTED"
