"""
Session state machine: lifecycle phase and connection mode.

Phases move strictly forward, Starting -> LoggingIn -> Running ->
ShuttingDown -> Stopped, and every mutation happens under one lock. The mode
(interactive API or FIX) is fixed when the machine is created.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

from ..errors import ShutdownInProgressError

logger = logging.getLogger(__name__)


class SessionPhase(str, Enum):
    STARTING = "starting"
    LOGGING_IN = "logging_in"
    RUNNING = "running"
    SHUTTING_DOWN = "shutting_down"
    STOPPED = "stopped"


class SessionMode(str, Enum):
    INTERACTIVE_API = "api"
    FIX = "fix"


@dataclass(frozen=True, slots=True)
class StopRequest:
    """Why a session is being stopped and what should follow."""

    reason: str
    restart: bool = False
    cold_restart: bool = False

    def describe(self) -> str:
        if self.cold_restart:
            return f"cold restart ({self.reason})"
        if self.restart:
            return f"restart ({self.reason})"
        return f"stop ({self.reason})"


PhaseListener = Callable[[SessionPhase, SessionPhase], None]


class SessionStateMachine:
    """The single piece of mutable session state, owned by the service."""

    def __init__(self, mode: SessionMode = SessionMode.INTERACTIVE_API) -> None:
        self._mode = mode
        self._phase = SessionPhase.STARTING
        self._stop_request: Optional[StopRequest] = None
        self._lock = threading.Lock()
        self._stopped = threading.Event()
        self._listeners: List[PhaseListener] = []

    @property
    def mode(self) -> SessionMode:
        return self._mode

    @property
    def is_fix(self) -> bool:
        return self._mode is SessionMode.FIX

    @property
    def phase(self) -> SessionPhase:
        with self._lock:
            return self._phase

    @property
    def stop_request(self) -> Optional[StopRequest]:
        with self._lock:
            return self._stop_request

    @property
    def stopping(self) -> bool:
        return self.phase in (SessionPhase.SHUTTING_DOWN, SessionPhase.STOPPED)

    def add_listener(self, listener: PhaseListener) -> None:
        self._listeners.append(listener)

    def host_launched(self) -> None:
        """Starting -> LoggingIn once the host process is up."""
        self._advance(SessionPhase.STARTING, SessionPhase.LOGGING_IN)

    def logged_in(self) -> bool:
        """LoggingIn -> Running; a no-op from any other live phase."""
        return self._advance(SessionPhase.LOGGING_IN, SessionPhase.RUNNING)

    def begin_shutdown(self, request: StopRequest) -> bool:
        """Claim the ShuttingDown transition.

        Returns True only for the request that performed the transition. A
        request arriving while already stopping is accepted without effect.
        """
        with self._lock:
            previous = self._phase
            if previous in (SessionPhase.SHUTTING_DOWN, SessionPhase.STOPPED):
                logger.info(
                    "Ignoring %s: already stopping (%s)",
                    request.describe(),
                    self._stop_request.describe() if self._stop_request else previous.value,
                )
                return False
            self._phase = SessionPhase.SHUTTING_DOWN
            self._stop_request = request
        logger.info("Session %s -> %s: %s", previous.value, SessionPhase.SHUTTING_DOWN.value, request.describe())
        self._notify(previous, SessionPhase.SHUTTING_DOWN)
        return True

    def confirm_stopped(self) -> bool:
        """ShuttingDown -> Stopped once the host has terminated."""
        changed = self._advance(SessionPhase.SHUTTING_DOWN, SessionPhase.STOPPED)
        if changed:
            self._stopped.set()
        return changed

    def wait_until_stopped(self, timeout: Optional[float] = None) -> bool:
        return self._stopped.wait(timeout)

    def _advance(self, expected: SessionPhase, target: SessionPhase) -> bool:
        with self._lock:
            current = self._phase
            if current is not expected:
                if current in (SessionPhase.SHUTTING_DOWN, SessionPhase.STOPPED) and target in (
                    SessionPhase.LOGGING_IN,
                    SessionPhase.RUNNING,
                ):
                    raise ShutdownInProgressError("Shutdown in progress")
                logger.debug("Session transition %s -> %s skipped (phase is %s)", expected.value, target.value, current.value)
                return False
            self._phase = target
        logger.info("Session %s -> %s", expected.value, target.value)
        self._notify(expected, target)
        return True

    def _notify(self, previous: SessionPhase, current: SessionPhase) -> None:
        for listener in list(self._listeners):
            try:
                listener(previous, current)
            except Exception:
                logger.exception("Session listener failed")
