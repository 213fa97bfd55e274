"""
Lifecycle coordination: the single execution point for transition requests.

Scheduler timers, the command channel and dialog handlers all ask for
transitions here. Claiming a transition is synchronous and atomic (through
the state machine's lock); carrying out the host stop happens on the worker
pool so no caller, least of all the dispatch thread, blocks on it.
"""

from __future__ import annotations

import logging
from concurrent.futures import Executor
from typing import Optional

from ..errors import ShutdownInProgressError
from .host import HostController
from .state import SessionStateMachine, StopRequest

logger = logging.getLogger(__name__)


class LifecycleCoordinator:
    def __init__(
        self,
        session: SessionStateMachine,
        host: HostController,
        pool: Executor,
        *,
        shutdown_timeout: float = 60.0,
    ) -> None:
        self.session = session
        self._host = host
        self._pool = pool
        self._shutdown_timeout = shutdown_timeout

    def start(self) -> None:
        """Launch the host and move the session to LoggingIn."""
        if self.session.stopping:
            raise ShutdownInProgressError("Shutdown in progress")
        self._host.launch()
        try:
            self.session.host_launched()
        except ShutdownInProgressError:
            # a stop arrived while the host was starting up
            self._host.request_stop()
            raise

    def request_stop(self, request: StopRequest) -> bool:
        """Ask for ShuttingDown; True when this request started the shutdown."""
        if not self.session.begin_shutdown(request):
            return False
        try:
            self._pool.submit(self._perform_stop, request)
        except RuntimeError:
            logger.debug("Worker pool unavailable; stopping inline")
            self._perform_stop(request)
        return True

    def host_exited(self, returncode: Optional[int] = None) -> None:
        """The host process went away; complete the session if nobody asked for it."""
        if self.session.begin_shutdown(StopRequest(reason=f"host exited with code {returncode}")):
            self.session.confirm_stopped()

    def _perform_stop(self, request: StopRequest) -> None:
        try:
            self._host.request_stop(restart=request.restart, cold_restart=request.cold_restart)
            if not self._host.wait_for_exit(self._shutdown_timeout):
                self._host.terminate()
        except Exception:
            logger.exception("Error while stopping the host")
        finally:
            self.session.confirm_stopped()
