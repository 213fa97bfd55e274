"""
Ordered registry of dialog handlers.

Each handler pairs a recognizer over a ``WindowSnapshot`` with the action to
run when it matches. Registration order is significant: some recognizers are
deliberately placed before broader ones that would otherwise shadow them. The
registry is append-only and becomes read-only once frozen at startup.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Iterator, List, Optional, Tuple, Union

from ..driver import WindowSignature, WindowSnapshot

if TYPE_CHECKING:  # pragma: no cover
    from .handlers.base import HandlerContext

logger = logging.getLogger(__name__)

Recognizer = Union[WindowSignature, Callable[[WindowSnapshot], bool]]
HandlerAction = Callable[[WindowSnapshot, "HandlerContext"], Any]


class RegistryFrozenError(RuntimeError):
    """Raised when registering a handler after the registry was frozen."""


@dataclass(frozen=True, slots=True)
class WindowHandler:
    """Represents one recognizer/action pair."""

    name: str
    recognizer: Recognizer
    action: HandlerAction
    description: Optional[str] = None

    def recognizes(self, snapshot: WindowSnapshot) -> bool:
        try:
            return bool(self.recognizer(snapshot))
        except Exception as exc:
            logger.warning("Recognizer '%s' failed on %s: %s", self.name, snapshot.describe(), exc)
            return False


class HandlerRegistry:
    """Holds dialog handlers in registration order."""

    def __init__(self) -> None:
        self._handlers: List[WindowHandler] = []
        self._frozen = False

    def register(self, handler: WindowHandler) -> WindowHandler:
        """Append a handler; order of registration is evaluation order."""
        if self._frozen:
            raise RegistryFrozenError(f"Cannot register '{handler.name}': registry is frozen.")
        if any(existing.name == handler.name for existing in self._handlers):
            raise ValueError(f"Handler '{handler.name}' is already registered.")
        self._handlers.append(handler)
        return handler

    def add(
        self,
        name: str,
        recognizer: Recognizer,
        action: HandlerAction,
        description: Optional[str] = None,
    ) -> WindowHandler:
        return self.register(WindowHandler(name=name, recognizer=recognizer, action=action, description=description))

    def freeze(self) -> None:
        self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def first_match(self, snapshot: WindowSnapshot) -> Optional[WindowHandler]:
        """Return the first handler, in registration order, that recognizes the window."""
        for handler in self._handlers:
            if handler.recognizes(snapshot):
                return handler
        return None

    def names(self) -> Tuple[str, ...]:
        return tuple(handler.name for handler in self._handlers)

    def __iter__(self) -> Iterator[WindowHandler]:
        return iter(tuple(self._handlers))

    def __len__(self) -> int:
        return len(self._handlers)
