"""Transcript message models.

A message is one of four role variants. Only assistant messages may carry a
tool call and only tool messages carry a correlation id.
"""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field


class ToolCallRequest(BaseModel):
    """A model's request to invoke one named tool."""

    model_config = ConfigDict(frozen=True)

    name: str
    arguments_json: str = "{}"
    call_id: str


class UserMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["user"] = "user"
    content: str = ""


class SystemMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["system"] = "system"
    content: str = ""


class AssistantMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["assistant"] = "assistant"
    content: str = ""
    name: Optional[str] = None
    tool_call: Optional[ToolCallRequest] = None


class ToolMessage(BaseModel):
    model_config = ConfigDict(frozen=True)

    role: Literal["tool"] = "tool"
    content: str = ""
    tool_call_id: str
    name: Optional[str] = None


Message = Annotated[
    Union[UserMessage, SystemMessage, AssistantMessage, ToolMessage],
    Field(discriminator="role"),
]
