"""3-layer configuration system for Maestro.

Loads and merges configuration from:
1. Default settings (built-in)
2. Config file (.maestro/config.yaml or an explicit path)
3. CLI parameters (override)
"""

from __future__ import annotations

import copy
from pathlib import Path
from typing import Optional

import yaml

DEFAULT_SYSTEM_PROMPT = "You are a helpful agent."

CONFIG_DIR = ".maestro"
CONFIG_FILE = "config.yaml"

DEFAULT_CONFIG: dict = {
    "ai": {
        "provider": "openai",
        "temperature": 0.7,
        "timeout_seconds": 120,
        "retry_attempts": 3,
        "retry_delay_seconds": 2,
        "openai": {
            "endpoint": "https://api.openai.com/v1/chat/completions",
            "api_key_env": "OPENAI_API_KEY",
            "max_tokens": 4096,
        },
        "anthropic": {
            "endpoint": "https://api.anthropic.com/v1/messages",
            "api_key_env": "ANTHROPIC_API_KEY",
            "max_tokens": 4096,
        },
        "ollama": {
            "endpoint": "http://localhost:11434",
        },
    },
    "conversation": {
        "max_turns": 6,
        "default_system_prompt": DEFAULT_SYSTEM_PROMPT,
        "model_timeout_seconds": 180,
        "tool_timeout_seconds": 60,
        "record_tool_messages": True,
    },
    "tools": {
        "modules": [],
    },
    "artifacts": {
        "code_path": "code.py",
    },
    "agents": [],
}


def deep_merge(base: dict, override: dict) -> dict:
    """Deep merge two dicts. Arrays are replaced, not merged."""
    result = dict(base)
    for key, value in override.items():
        base_value = result.get(key)
        if isinstance(base_value, dict) and isinstance(value, dict):
            result[key] = deep_merge(base_value, value)
        else:
            result[key] = value
    return result


def default_config_path(root: Optional[Path] = None) -> Path:
    return (root or Path.cwd()) / CONFIG_DIR / CONFIG_FILE


def load_config_file(config_path: Path) -> dict:
    """Load a YAML config file. Missing or empty files yield {}."""
    if not config_path.exists():
        return {}
    content = config_path.read_text(encoding="utf-8-sig")  # utf-8-sig strips BOM
    data = yaml.safe_load(content)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    return data


def get_effective_config(
    config_path: Optional[Path] = None,
    cli_overrides: Optional[dict] = None,
) -> dict:
    """Get the fully resolved configuration."""
    config = copy.deepcopy(DEFAULT_CONFIG)

    file_config = load_config_file(config_path or default_config_path())
    if file_config:
        config = deep_merge(config, file_config)

    if cli_overrides:
        config = deep_merge(config, cli_overrides)

    return config


def write_starter_config(root: Path) -> Path:
    """Create .maestro/config.yaml with a two-agent example if absent."""
    config_path = default_config_path(root)
    config_path.parent.mkdir(parents=True, exist_ok=True)
    if not config_path.exists():
        config_path.write_text(
            "# Maestro configuration\n"
            "\n"
            "ai:\n"
            "  provider: openai\n"
            "\n"
            "conversation:\n"
            "  max_turns: 6\n"
            "\n"
            "agents:\n"
            "  - name: Planner\n"
            "    model: gpt-4o-mini\n"
            "    system_prompt: You break problems into small steps.\n"
            "  - name: Solver\n"
            "    model: gpt-4o-mini\n"
            "    system_prompt: You answer precisely and use tools when useful.\n"
            "    tools: [calculator, current_time]\n",
            encoding="utf-8",
        )
    return config_path
