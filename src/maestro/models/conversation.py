"""Conversation and turn data models."""

from __future__ import annotations

from enum import Enum
from typing import Any, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from .message import Message


class ConductorStatus(str, Enum):
    AWAITING_TURN = "AWAITING_TURN"
    AGENT_NOT_FOUND = "AGENT_NOT_FOUND"
    BUDGET_EXHAUSTED = "BUDGET_EXHAUSTED"
    FAILED = "FAILED"


class ToolCallRecord(BaseModel):
    """Which tool a turn called and with what arguments."""

    name: str
    arguments: dict[str, Any] = {}


class TurnResult(BaseModel):
    role: Literal["assistant"] = "assistant"
    content: str = ""
    model: str = ""
    tool_call: Optional[ToolCallRecord] = None
    tokens_used: Optional[dict] = None
    appended_messages: list[Message] = []
    follow_up_messages: list[Message] = []


class ConversationState(BaseModel):
    """Mutable loop state owned by one conductor run."""

    transcript: list[Message]
    agent_ids: list[int]
    max_turns: int
    turn: int = 0
    agent_index: int = 0
    status: ConductorStatus = ConductorStatus.AWAITING_TURN
    error: Optional[str] = None

    @property
    def current_agent_id(self) -> int:
        return self.agent_ids[self.agent_index]

    def advance(self) -> None:
        self.turn += 1
        self.agent_index = (self.agent_index + 1) % len(self.agent_ids)
        if self.turn >= self.max_turns:
            self.status = ConductorStatus.BUDGET_EXHAUSTED


class ConversationRequest(BaseModel):
    """Payload accepted by the conductor entry point."""

    model_config = ConfigDict(populate_by_name=True)

    agent_ids: list[int] = Field(alias="agentIds", min_length=1)
    user_input: str = Field(default="", alias="userInput")
    max_turns: Optional[int] = Field(default=None, alias="maxTurns", ge=0)


class ConversationResult(BaseModel):
    messages: list[Message]
    status: ConductorStatus
    turns: int = 0
    error: Optional[str] = None
