"""Control channel for external stop/restart requests."""

from .commands import Command, CommandProcessor, CommandResult, parse_command
from .server import CommandChannel

__all__ = ["Command", "CommandProcessor", "CommandResult", "parse_command", "CommandChannel"]
