"""In-memory agent store.

Agents live for the process lifetime: they are created through the store,
mutated only by tool assignment and never deleted.
"""

from __future__ import annotations

import itertools
from typing import Optional

from ..models.agent import Agent, AgentSpec
from .errors import DuplicateToolError, NotFoundError, UnknownToolError, ValidationError
from .tools import ToolRegistry

# Shared by every store so ids stay unique across the whole process.
_agent_ids = itertools.count(1)


class AgentStore:
    def __init__(self, registry: ToolRegistry):
        self.registry = registry
        self._agents: dict[int, Agent] = {}

    def create_agent(
        self,
        name: str,
        model: str,
        system_prompt: Optional[str] = None,
    ) -> Agent:
        if not name or not name.strip():
            raise ValidationError("name and model are required")
        if not model or not model.strip():
            raise ValidationError("name and model are required")

        agent = Agent(
            id=next(_agent_ids),
            name=name.strip(),
            model=model.strip(),
            system_prompt=system_prompt or None,
        )
        self._agents[agent.id] = agent
        return agent

    def find_agent(self, agent_id: int) -> Optional[Agent]:
        return self._agents.get(agent_id)

    def get_agent(self, agent_id: int) -> Agent:
        agent = self._agents.get(agent_id)
        if agent is None:
            raise NotFoundError(agent_id)
        return agent

    def find_by_name(self, name: str) -> Optional[Agent]:
        """First agent with this name (case-insensitive), in insertion order."""
        wanted = name.strip().lower()
        for agent in self._agents.values():
            if agent.name.lower() == wanted:
                return agent
        return None

    def list_agents(self) -> list[Agent]:
        return list(self._agents.values())

    def assign_tool(self, agent_id: int, tool_name: str) -> Agent:
        agent = self.get_agent(agent_id)
        if agent.has_tool(tool_name):
            raise DuplicateToolError(tool_name, agent_id)
        if tool_name not in self.registry.discover_tools():
            raise UnknownToolError(tool_name)

        agent.tools.append(tool_name)
        return agent


def bootstrap_agents(store: AgentStore, config: dict) -> list[Agent]:
    """Create the agents declared under ``agents:`` in config."""
    created = []
    for raw in config.get("agents") or []:
        spec = AgentSpec.model_validate(raw)
        agent = store.create_agent(spec.name, spec.model, spec.system_prompt)
        for tool_name in spec.tools:
            store.assign_tool(agent.id, tool_name)
        created.append(agent)
    return created
