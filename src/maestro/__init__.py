"""Maestro - round-robin multi-agent conversations with tool calls."""

__version__ = "1.0.0"
