"""Session lifecycle: state machine, coordinator and host process control."""

from .state import SessionMode, SessionPhase, SessionStateMachine, StopRequest
from .lifecycle import LifecycleCoordinator
from .host import HostController, ProcessHostController

__all__ = [
    "SessionMode",
    "SessionPhase",
    "SessionStateMachine",
    "StopRequest",
    "LifecycleCoordinator",
    "HostController",
    "ProcessHostController",
]
