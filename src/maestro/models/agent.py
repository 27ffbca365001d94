"""Agent data models."""

from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from .message import Message


class Agent(BaseModel):
    id: int
    name: str
    model: str
    system_prompt: Optional[str] = None
    tools: list[str] = []
    history: list[Message] = []
    created_at: datetime = Field(default_factory=datetime.now)

    def has_tool(self, tool_name: str) -> bool:
        return tool_name in self.tools


class AgentSpec(BaseModel):
    """Agent declared in the ``agents:`` config section."""

    name: str
    model: str
    system_prompt: Optional[str] = None
    tools: list[str] = []
