"""Launching and stopping the externally managed host application process."""

from __future__ import annotations

import logging
import shlex
import subprocess
import threading
from pathlib import Path
from typing import Callable, List, Optional, Protocol, Sequence, Union

from ..errors import HostEntryPointError

logger = logging.getLogger(__name__)


class HostController(Protocol):  # pragma: no cover - interface only
    """Lifecycle signals the session needs from the host process."""

    @property
    def process_id(self) -> Optional[int]:
        ...

    def launch(self) -> None:
        ...

    def request_stop(self, *, restart: bool = False, cold_restart: bool = False) -> None:
        ...

    def wait_for_exit(self, timeout: float) -> bool:
        ...

    def terminate(self) -> None:
        ...


class ProcessHostController:
    """Runs the host as a child process.

    A graceful stop asks the host to close its windows (``closer``) so its
    own exit dialogs can be answered by the dialog handlers; termination is
    only the fallback after the shutdown timeout.
    """

    def __init__(
        self,
        command: Union[str, Sequence[str]],
        *,
        cwd: Optional[Path] = None,
        closer: Optional[Callable[[], int]] = None,
        on_exit: Optional[Callable[[Optional[int]], None]] = None,
    ) -> None:
        self._command: List[str] = shlex.split(command) if isinstance(command, str) else list(command)
        self._cwd = cwd
        self._closer = closer
        self._on_exit = on_exit
        self._process: Optional[subprocess.Popen] = None
        self._monitor: Optional[threading.Thread] = None

    @property
    def process_id(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    def set_closer(self, closer: Optional[Callable[[], int]]) -> None:
        self._closer = closer

    def set_exit_callback(self, on_exit: Optional[Callable[[Optional[int]], None]]) -> None:
        self._on_exit = on_exit

    def set_working_dir(self, cwd: Optional[Path]) -> None:
        self._cwd = cwd

    def launch(self) -> None:
        if not self._command:
            raise HostEntryPointError("No host command configured (HostCommand setting is empty)")
        logger.info("Starting host: %s", self._command[0])
        try:
            self._process = subprocess.Popen(self._command, cwd=str(self._cwd) if self._cwd else None)
        except OSError as exc:
            logger.error("Exception occurred at host entry point: %s", self._command[0])
            raise HostEntryPointError(f"Unable to start host '{self._command[0]}': {exc}") from exc
        self._monitor = threading.Thread(target=self._watch, name="host-monitor", daemon=True)
        self._monitor.start()

    def request_stop(self, *, restart: bool = False, cold_restart: bool = False) -> None:
        if self._process is None or self._process.poll() is not None:
            logger.info("Host is not running; nothing to stop")
            return
        verb = "cold restart" if cold_restart else ("restart" if restart else "stop")
        logger.info("Asking host to %s", verb)
        asked = 0
        if self._closer is not None:
            try:
                asked = self._closer()
            except Exception as exc:
                logger.warning("Graceful close failed: %s", exc)
        if not asked:
            self._process.terminate()

    def wait_for_exit(self, timeout: float) -> bool:
        if self._process is None:
            return True
        try:
            self._process.wait(timeout=timeout)
        except subprocess.TimeoutExpired:
            return False
        return True

    def terminate(self) -> None:
        if self._process is None or self._process.poll() is not None:
            return
        logger.warning("Host did not exit in time; terminating it")
        self._process.terminate()
        try:
            self._process.wait(timeout=5.0)
        except subprocess.TimeoutExpired:
            self._process.kill()

    def _watch(self) -> None:
        process = self._process
        if process is None:
            return
        returncode = process.wait()
        logger.info("Host process exited with code %s", returncode)
        if self._on_exit is not None:
            try:
                self._on_exit(returncode)
            except Exception:
                logger.exception("Host exit callback failed")
