"""Round-robin conversation conductor.

Drives agents in the given order over a shared, append-only transcript until
the turn budget is spent, an agent id cannot be resolved, or a turn fails.
"""

from __future__ import annotations

import asyncio
import time
from typing import Optional, Sequence, Union

from rich.console import Console

from ..models.conversation import (
    ConductorStatus,
    ConversationRequest,
    ConversationResult,
    ConversationState,
)
from ..models.message import AssistantMessage, Message, SystemMessage, UserMessage
from ..utils.sanitize import sanitize_error
from .errors import ModelCallError, ToolExecutionError
from .responder import Responder
from .store import AgentStore

console = Console(stderr=True)

DEFAULT_MAX_TURNS = 6


class Conductor:
    def __init__(self, store: AgentStore, responder: Responder, config: Optional[dict] = None):
        conversation = (config or {}).get("conversation", {})
        self.store = store
        self.responder = responder
        self.default_max_turns = conversation.get("max_turns", DEFAULT_MAX_TURNS)
        self.record_tool_messages = conversation.get("record_tool_messages", True)
        # One conversation at a time per conductor; store reads are unsynchronized.
        self._lock = asyncio.Lock()

    async def start(self, request: ConversationRequest) -> ConversationResult:
        """Entry point for outer layers: {agentIds, userInput, maxTurns?}."""
        max_turns = request.max_turns if request.max_turns is not None else self.default_max_turns
        return await self.run(
            request.agent_ids,
            request.user_input,
            max_turns=max_turns,
        )

    async def run(
        self,
        agent_ids: Sequence[int],
        opening_message: Union[str, Message],
        max_turns: int = DEFAULT_MAX_TURNS,
    ) -> ConversationResult:
        if max_turns < 0:
            raise ValueError("max_turns must be >= 0")
        if isinstance(opening_message, str):
            opening_message = UserMessage(content=opening_message)

        state = ConversationState(
            transcript=[opening_message],
            agent_ids=list(agent_ids),
            max_turns=max_turns,
        )
        if max_turns == 0:
            state.status = ConductorStatus.BUDGET_EXHAUSTED
            return self._result(state)

        async with self._lock:
            while state.status == ConductorStatus.AWAITING_TURN:
                await self._step(state)

        return self._result(state)

    async def _step(self, state: ConversationState) -> None:
        agent_id = state.current_agent_id
        agent = self.store.find_agent(agent_id)
        if agent is None:
            console.print(f"  [red]ERROR[/red] Agent with id={agent_id} not found")
            state.transcript.append(
                SystemMessage(content=f"Agent with id={agent_id} not found. Stopping.")
            )
            state.status = ConductorStatus.AGENT_NOT_FOUND
            return

        turn_number = state.turn + 1
        turn_start = time.time()
        try:
            # The responder gets a snapshot so nothing it does can touch the transcript.
            result = await self.responder.respond(agent, list(state.transcript))
        except (ModelCallError, ToolExecutionError) as e:
            error = sanitize_error(str(e))
            console.print(f"  [red]FAILED[/red] Turn {turn_number} ({agent.name}): {error}")
            state.transcript.append(
                SystemMessage(
                    content=(
                        f"Turn {turn_number} by agent {agent.name} (id={agent.id}) failed: "
                        f"{error}. Stopping."
                    )
                )
            )
            state.status = ConductorStatus.FAILED
            state.error = error
            return

        if self.record_tool_messages:
            state.transcript.extend(result.appended_messages)
        state.transcript.append(AssistantMessage(content=result.content, name=agent.name))

        tool_note = f" via {result.tool_call.name}" if result.tool_call else ""
        token_note = ""
        if result.tokens_used:
            token_note = f", {result.tokens_used.get('input', 0)}/{result.tokens_used.get('output', 0)} tokens in/out"
        console.print(
            f"  [green]OK[/green] Turn {turn_number}/{state.max_turns}: {agent.name}{tool_note} "
            f"in {round(time.time() - turn_start, 1)}s{token_note}"
        )
        state.advance()

    @staticmethod
    def _result(state: ConversationState) -> ConversationResult:
        return ConversationResult(
            messages=list(state.transcript),
            status=state.status,
            turns=state.turn,
            error=state.error,
        )
