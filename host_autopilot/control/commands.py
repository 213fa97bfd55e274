"""Parsing and execution of control-channel commands."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from ..session import LifecycleCoordinator, StopRequest

logger = logging.getLogger(__name__)

OK = "OK"
OK_ALREADY_STOPPING = "OK already stopping"


@dataclass(frozen=True, slots=True)
class Command:
    verb: str
    payload: str = ""


@dataclass(frozen=True, slots=True)
class CommandResult:
    response: str
    close_connection: bool = False


def parse_command(line: str) -> Optional[Command]:
    """Split a line into an upper-cased verb and the remaining payload."""
    text = (line or "").strip()
    if not text:
        return None
    verb, _, payload = text.partition(" ")
    return Command(verb=verb.upper(), payload=payload.strip())


class CommandProcessor:
    """Turns commands into lifecycle transition requests."""

    def __init__(self, coordinator: LifecycleCoordinator) -> None:
        self._coordinator = coordinator

    def execute(self, command: Command, *, peer: str = "") -> CommandResult:
        logger.info("Command received%s: %s %s", f" from {peer}" if peer else "", command.verb, command.payload)
        if command.verb == "STOP":
            return self._stop(StopRequest(reason="STOP command"))
        if command.verb == "RESTART":
            mode = command.payload.upper()
            if mode not in ("", "WARM", "COLD"):
                return CommandResult(f"ERROR unrecognised restart mode: {command.payload}")
            cold = mode == "COLD"
            return self._stop(StopRequest(reason="RESTART command", restart=True, cold_restart=cold))
        if command.verb == "EXIT":
            return CommandResult(OK, close_connection=True)
        logger.warning("Unrecognised command: %s", command.verb)
        return CommandResult(f"ERROR unrecognised command: {command.verb}")

    def _stop(self, request: StopRequest) -> CommandResult:
        accepted = self._coordinator.request_stop(request)
        return CommandResult(OK if accepted else OK_ALREADY_STOPPING)
