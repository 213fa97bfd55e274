"""
Asynchronous one-shot configuration tasks.

A task waits (bounded) for a settings dialog, changes one control in it and
completes. Attempts run on the worker pool and retries are scheduled through
the timer service, so nothing busy-waits and nothing blocks dispatch. Tasks
share one settings dialog: page selection through commit runs for one task
at a time. Every outcome, including a timeout, is reported rather than
raised: configuration is a best-effort convenience on top of a running
session.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Protocol, Set, Tuple, Union

from ..automation.action import ActionResult, press_button, select_page, set_toggle, type_text
from ..automation.driver import WindowSignature, WindowSnapshot, find_control
from ..scheduling.timers import TimerService
from ..session import SessionStateMachine

logger = logging.getLogger(__name__)


class TaskOutcome(str, Enum):
    APPLIED = "applied"
    NO_CHANGE = "no_change"
    CONTROL_MISSING = "control_missing"
    TIMED_OUT = "timed_out"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True, slots=True)
class ToggleMutation:
    control: str
    desired: bool
    role: Optional[str] = None


@dataclass(frozen=True, slots=True)
class TextMutation:
    control: str
    value: str
    role: Optional[str] = "Edit"


@dataclass(frozen=True, slots=True)
class InvokeMutation:
    control: str
    role: Optional[str] = "Button"


Mutation = Union[ToggleMutation, TextMutation, InvokeMutation]


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    interval: float = 2.0
    attempts: int = 30

    @property
    def deadline(self) -> float:
        return self.interval * max(0, self.attempts - 1)


@dataclass(frozen=True)
class ConfigurationTask:
    name: str
    target: WindowSignature
    mutation: Mutation
    retry: RetryPolicy = RetryPolicy()
    page: Tuple[str, ...] = ()
    commit_button: Optional[str] = None
    fix_applicable: bool = False
    open_dialog: Optional[Callable[[], None]] = None


class WindowLocator(Protocol):  # pragma: no cover - interface only
    def find_window(self, signature: WindowSignature) -> Optional[WindowSnapshot]:
        ...


class ConfigurationTaskRunner:
    """Runs configuration tasks on the worker pool with timer-driven retries."""

    def __init__(
        self,
        locator: WindowLocator,
        timers: TimerService,
        pool: Executor,
        session: Optional[SessionStateMachine] = None,
    ) -> None:
        self._locator = locator
        self._timers = timers
        self._pool = pool
        self._session = session
        self._dialog_lock = threading.Lock()
        self._open_lock = threading.Lock()
        self._opened: Set[Callable[[], None]] = set()

    def submit(self, task: ConfigurationTask) -> "Future[TaskOutcome]":
        future: "Future[TaskOutcome]" = Future()
        if self._session is not None and self._session.is_fix and not task.fix_applicable:
            logger.info("%s - ignored for FIX", task.name)
            future.set_result(TaskOutcome.SKIPPED)
            return future
        logger.info("Configuration task '%s' submitted", task.name)
        self._enqueue(task, future, 1)
        return future

    def _enqueue(self, task: ConfigurationTask, future: "Future[TaskOutcome]", attempt: int) -> None:
        try:
            self._pool.submit(self._attempt, task, future, attempt)
        except RuntimeError as exc:
            logger.debug("Configuration task '%s' abandoned: %s", task.name, exc)
            future.set_result(TaskOutcome.FAILED)

    def _attempt(self, task: ConfigurationTask, future: "Future[TaskOutcome]", attempt: int) -> None:
        try:
            snapshot = self._locator.find_window(task.target)
            if snapshot is None:
                if attempt == 1 and task.open_dialog is not None:
                    self._open_dialog(task)
                if attempt >= task.retry.attempts:
                    logger.warning(
                        "%s: timed out after %d attempts waiting for the configuration dialog",
                        task.name,
                        attempt,
                    )
                    future.set_result(TaskOutcome.TIMED_OUT)
                    return
                logger.debug("%s: dialog not visible yet (attempt %d)", task.name, attempt)
                self._timers.schedule(
                    task.retry.interval,
                    lambda: self._enqueue(task, future, attempt + 1),
                    name=task.name,
                )
                return
            with self._dialog_lock:
                outcome = self._apply(task, snapshot)
            future.set_result(outcome)
        except Exception:
            logger.exception("Configuration task '%s' failed", task.name)
            if not future.done():
                future.set_result(TaskOutcome.FAILED)

    def _open_dialog(self, task: ConfigurationTask) -> None:
        # one menu press per opener, however many tasks are waiting on it
        with self._open_lock:
            if task.open_dialog in self._opened:
                return
            self._opened.add(task.open_dialog)
        try:
            task.open_dialog()
        except Exception as exc:
            logger.warning("%s: unable to open the configuration dialog: %s", task.name, exc)

    def _apply(self, task: ConfigurationTask, snapshot: WindowSnapshot) -> TaskOutcome:
        root = snapshot.root
        mutation = task.mutation
        if task.page:
            selected = select_page(root, task.page)
            if not selected:
                logger.debug("%s: %s", task.name, selected.detail)
        if find_control(root, name=mutation.control, role=mutation.role) is None:
            # older host versions lack some settings
            logger.warning("%s: could not find control '%s'", task.name, mutation.control)
            return TaskOutcome.CONTROL_MISSING
        result: ActionResult
        if isinstance(mutation, ToggleMutation):
            result = set_toggle(root, mutation.control, mutation.desired, role=mutation.role)
        elif isinstance(mutation, InvokeMutation):
            result = press_button(root, mutation.control, role=mutation.role)
        else:
            result = type_text(root, mutation.control, mutation.value, role=mutation.role)
        if not result.ok:
            logger.warning("%s: %s", task.name, result.detail)
            return TaskOutcome.FAILED
        if not result.changed:
            logger.info("%s: no change needed, %s", task.name, result.detail)
            return TaskOutcome.NO_CHANGE
        logger.info("%s: %s", task.name, result.detail)
        if task.commit_button:
            committed = press_button(root, task.commit_button)
            if not committed:
                logger.warning("%s: %s", task.name, committed.detail)
        return TaskOutcome.APPLIED
