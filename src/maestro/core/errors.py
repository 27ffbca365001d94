"""Error taxonomy for agent management and conversation turns."""

from __future__ import annotations

from typing import Optional


class MaestroError(Exception):
    """Base class for all maestro errors."""


class ValidationError(MaestroError, ValueError):
    """Required fields missing or invalid on creation."""


class NotFoundError(MaestroError, LookupError):
    """Unknown agent id."""

    def __init__(self, agent_id: object):
        super().__init__(f"Agent with id={agent_id} not found.")
        self.agent_id = agent_id


class UnknownToolError(MaestroError, LookupError):
    def __init__(self, tool_name: str):
        super().__init__(f"Tool '{tool_name}' is not registered.")
        self.tool_name = tool_name


class DuplicateToolError(MaestroError):
    def __init__(self, tool_name: str, agent_id: object):
        super().__init__(f"Tool '{tool_name}' is already assigned to agent {agent_id}.")
        self.tool_name = tool_name
        self.agent_id = agent_id


class ModelCallError(MaestroError):
    """Network or provider failure while calling a language model."""

    def __init__(
        self,
        message: str,
        status_code: Optional[int] = None,
        retryable: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.retryable = retryable


class ToolExecutionError(MaestroError):
    def __init__(self, tool_name: str, message: str):
        super().__init__(f"Tool '{tool_name}' failed: {message}")
        self.tool_name = tool_name
