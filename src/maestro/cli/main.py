"""Maestro CLI - run round-robin agent conversations from a config file."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Optional

import click
from rich.console import Console

from .. import __version__
from ..core.config import get_effective_config, write_starter_config
from ..core.conductor import Conductor
from ..core.errors import MaestroError
from ..core.responder import Responder
from ..core.store import AgentStore, bootstrap_agents
from ..core.tools import build_registry
from ..models.conversation import ConductorStatus, ConversationRequest
from ..models.message import AssistantMessage, ToolMessage
from ..providers.base import get_model_provider

console = Console()

ROLE_COLORS = {"user": "cyan", "assistant": "green", "system": "yellow", "tool": "magenta"}


def _load_store(config_path: Optional[str], cli_overrides: Optional[dict] = None) -> tuple[dict, AgentStore]:
    config = get_effective_config(
        Path(config_path) if config_path else None,
        cli_overrides=cli_overrides,
    )
    store = AgentStore(build_registry(config))
    bootstrap_agents(store, config)
    return config, store


def _print_transcript(messages: list) -> None:
    for message in messages:
        color = ROLE_COLORS.get(message.role, "white")
        label = message.role
        if isinstance(message, AssistantMessage) and message.name:
            label = f"{message.role}/{message.name}"
        if isinstance(message, AssistantMessage) and message.tool_call:
            body = f"-> {message.tool_call.name}({message.tool_call.arguments_json})"
        elif isinstance(message, ToolMessage):
            body = f"<- {message.name or message.tool_call_id}: {message.content}"
        else:
            body = message.content
        console.print(f"[bold {color}]{label}[/bold {color}]", end=" ")
        console.print(body, markup=False, highlight=False)


@click.group()
@click.version_option(__version__, prog_name="maestro")
def maestro_cli() -> None:
    """Maestro - round-robin multi-agent conversations with tool calls."""


@maestro_cli.command()
@click.option("--path", "-p", type=click.Path(exists=True, file_okay=False), default=".")
def init(path: str) -> None:
    """Write a starter .maestro/config.yaml."""
    config_path = write_starter_config(Path(path))
    console.print(f"  [green]Initialized[/green] {config_path}")


@maestro_cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False))
def tools(config_path: Optional[str]) -> None:
    """List the tools available to agents."""
    config = get_effective_config(Path(config_path) if config_path else None)
    registry = build_registry(config)
    for name, descriptor in sorted(registry.discover_tools().items()):
        console.print(f"  [cyan]{name}[/cyan]  {descriptor.schema.description}")


@maestro_cli.command()
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False))
def agents(config_path: Optional[str]) -> None:
    """List the agents declared in config."""
    try:
        _, store = _load_store(config_path)
    except (MaestroError, ValueError) as e:
        raise click.ClickException(str(e))
    if not store.list_agents():
        console.print("  [dim]No agents configured.[/dim]")
    for agent in store.list_agents():
        tool_list = ", ".join(agent.tools) or "-"
        console.print(f"  [white]{agent.id}[/white] {agent.name} ({agent.model}) tools: {tool_list}")


@maestro_cli.command()
@click.option("--message", "-m", required=True, help="Opening user message")
@click.option("--agent", "-a", "agent_names", multiple=True, help="Agent name, in speaking order (repeatable)")
@click.option("--max-turns", "-n", type=click.IntRange(min=0), help="Turn budget (default from config)")
@click.option("--provider", type=click.Choice(["openai", "anthropic", "ollama"]))
@click.option("--endpoint", type=str, help="Provider endpoint override")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
def run(
    message: str,
    agent_names: tuple[str, ...],
    max_turns: Optional[int],
    provider: Optional[str],
    endpoint: Optional[str],
    config_path: Optional[str],
    as_json: bool,
) -> None:
    """Run a conversation among configured agents."""
    cli_overrides: dict = {}
    if provider:
        cli_overrides.setdefault("ai", {})["provider"] = provider

    try:
        config, store = _load_store(config_path, cli_overrides or None)
    except (MaestroError, ValueError) as e:
        raise click.ClickException(str(e))

    if agent_names:
        agent_ids = []
        for name in agent_names:
            agent = store.find_by_name(name)
            if agent is None:
                raise click.UsageError(f"Unknown agent: {name}")
            agent_ids.append(agent.id)
    else:
        agent_ids = [a.id for a in store.list_agents()]

    if not agent_ids:
        raise click.UsageError("No agents configured. Add some under 'agents:' in the config.")

    try:
        model_provider = get_model_provider(config, endpoint_override=endpoint)
    except ValueError as e:
        raise click.ClickException(str(e))

    responder = Responder(model_provider, store.registry, config)
    conductor = Conductor(store, responder, config)
    request = ConversationRequest(agent_ids=agent_ids, user_input=message, max_turns=max_turns)

    result = asyncio.run(conductor.start(request))

    if as_json:
        click.echo(json.dumps(result.model_dump(mode="json"), indent=2))
    else:
        _print_transcript(result.messages)

    if result.status != ConductorStatus.BUDGET_EXHAUSTED:
        sys.exit(1)


def main() -> None:
    maestro_cli()


if __name__ == "__main__":
    main()
