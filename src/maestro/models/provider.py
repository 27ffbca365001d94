"""Model provider data models."""

from __future__ import annotations

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from .message import ToolCallRequest


class ToolSchema(BaseModel):
    """Provider-neutral description of a callable tool."""

    name: str
    description: str = ""
    parameters: dict = Field(default_factory=lambda: {"type": "object", "properties": {}})


class TextReply(BaseModel):
    kind: Literal["text"] = "text"
    content: str = ""
    tokens_used: Optional[dict] = None


class ToolCallReply(BaseModel):
    kind: Literal["tool_call"] = "tool_call"
    content: Optional[str] = None
    tool_call: ToolCallRequest
    tokens_used: Optional[dict] = None


ModelReply = Annotated[Union[TextReply, ToolCallReply], Field(discriminator="kind")]
