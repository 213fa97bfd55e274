"""
Process wiring for one unattended host session.

``AutopilotService`` owns every long-lived collaborator: the worker pool,
the timer service, the window source and its dispatcher, the lifecycle
coordinator, the scheduler, the command channel and the configuration task
runner. ``run()`` starts them, blocks until the session reaches STOPPED and
returns the stop request that ended it.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from datetime import datetime
from typing import Any, List, Optional

from .app.environment import ensure_settings_dir
from .app.settings import AutopilotSettings
from .automation.action import press_button
from .automation.dialogs import HandlerContext, HandlerRegistry, WindowEventDispatcher, build_default_handlers
from .automation.driver import DesktopWindowSource, WindowSignature
from .control import CommandChannel, CommandProcessor
from .errors import ShutdownInProgressError
from .scheduling import Scheduler, TimerService, plan_auto_logoff
from .session import (
    HostController,
    LifecycleCoordinator,
    ProcessHostController,
    SessionMode,
    SessionStateMachine,
    StopRequest,
)
from .tasks import ConfigurationTask, ConfigurationTaskRunner, TaskOutcome, build_configuration_tasks

logger = logging.getLogger(__name__)

_CONFIG_MENUS = {
    False: ("Edit", "Global Configuration..."),
    True: ("Configure", "Settings"),
}


class AutopilotService:
    """Runs one host session from launch to STOPPED."""

    def __init__(
        self,
        settings: AutopilotSettings,
        *,
        host: Optional[HostController] = None,
        window_source: Any = None,
        max_workers: int = 4,
    ) -> None:
        self.settings = settings
        mode = SessionMode.FIX if settings.fix else SessionMode.INTERACTIVE_API
        self.session = SessionStateMachine(mode)
        self.pool = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="autopilot")
        self.timers = TimerService()
        self.host = host if host is not None else ProcessHostController(settings.host_command)
        self.coordinator = LifecycleCoordinator(
            self.session, self.host, self.pool, shutdown_timeout=settings.shutdown_timeout
        )
        self.registry = build_default_handlers(HandlerRegistry())
        self.context = HandlerContext(
            session=self.session,
            settings=settings,
            coordinator=self.coordinator,
            on_logged_in=self._on_logged_in,
        )
        self.dispatcher = WindowEventDispatcher(self.registry, self.context)
        self.scheduler = Scheduler(
            self.coordinator,
            self.timers,
            self.pool,
            closedown_at=settings.closedown_at,
            cold_restart_time=settings.cold_restart_time,
            host_name=settings.host_name,
        )
        self.channel: Optional[CommandChannel] = None
        if settings.command_server_port:
            self.channel = CommandChannel(
                CommandProcessor(self.coordinator),
                host=settings.command_server_host,
                port=settings.command_server_port,
                control_from=settings.control_from,
            )
        self._window_source = window_source
        self._runner: Optional[ConfigurationTaskRunner] = None
        self._tasks: List[ConfigurationTask] = []
        self.task_results: List["Future[TaskOutcome]"] = []

    @property
    def window_source(self) -> Any:
        return self._window_source

    def start(self) -> None:
        """Validate settings, then bring every component up and launch the host.

        Raises FatalError subclasses for misconfiguration, and
        ShutdownInProgressError when a stop arrives before the host is up.
        """
        settings = self.settings
        for line in settings.diagnostic_lines():
            logger.debug("setting %s", line)
        settings_dir = ensure_settings_dir(settings.settings_dir)
        self._tasks = build_configuration_tasks(settings, open_dialog=self._open_config_dialog)
        self.scheduler.plan()

        if self._window_source is None:
            self._window_source = DesktopWindowSource(poll_interval=settings.window_poll_interval)
        source = self._window_source
        self._runner = ConfigurationTaskRunner(source, self.timers, self.pool, self.session)
        self.dispatcher.attach(source)

        if isinstance(self.host, ProcessHostController):
            self.host.set_exit_callback(self.coordinator.host_exited)
            if hasattr(source, "close_windows"):
                self.host.set_closer(source.close_windows)
            self.host.set_working_dir(settings_dir)

        if self.channel is not None:
            self.channel.start()
        self.coordinator.start()
        # observe the host process only
        if self.host.process_id is not None and hasattr(source, "set_process_id"):
            source.set_process_id(self.host.process_id)
        source.start()

        self.scheduler.arm()
        auto = plan_auto_logoff(settings.auto_logoff_time, settings.auto_restart_time, datetime.now())
        if auto is not None:
            logger.info("%s next %s", settings.host_name, auto.describe())

    def run(self, timeout: Optional[float] = None) -> Optional[StopRequest]:
        """Start, wait for STOPPED, clean up; returns the request that ended the session."""
        try:
            try:
                self.start()
            except ShutdownInProgressError:
                logger.info("Shutdown in progress before the host finished starting")
            self.session.wait_until_stopped(timeout)
        finally:
            self.close()
        return self.session.stop_request

    def close(self) -> None:
        self.scheduler.cancel()
        if self.channel is not None:
            self.channel.stop()
        source = self._window_source
        if source is not None:
            source.stop()
        self.timers.shutdown()
        self.pool.shutdown(wait=False)

    def _on_logged_in(self) -> None:
        runner = self._runner
        if runner is None:
            return
        for task in self._tasks:
            future = runner.submit(task)
            future.add_done_callback(lambda done, name=task.name: _log_outcome(name, done))
            self.task_results.append(future)

    def _open_config_dialog(self) -> None:
        source = self._window_source
        if source is None:
            return
        main = source.find_window(WindowSignature(title_prefix="IB Gateway" if self.settings.gateway else "Trader Workstation"))
        if main is None:
            main = source.find_window(WindowSignature(title_prefix="Interactive Brokers"))
        if main is None:
            logger.debug("Main window not visible; cannot open the configuration dialog")
            return
        for item in _CONFIG_MENUS[self.settings.gateway]:
            opened = press_button(main.root, item, role="MenuItem")
            if not opened:
                logger.debug("Configuration menu: %s", opened.detail)
                return


def _log_outcome(name: str, future: "Future[TaskOutcome]") -> None:
    outcome = future.result()
    level = logging.INFO if outcome in (TaskOutcome.APPLIED, TaskOutcome.NO_CHANGE, TaskOutcome.SKIPPED) else logging.WARNING
    logger.log(level, "Configuration task '%s' finished: %s", name, outcome.value)
