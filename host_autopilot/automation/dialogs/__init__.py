"""Dialog recognition and dispatch."""

from .registry import HandlerRegistry, RegistryFrozenError, WindowHandler
from .dispatcher import WindowEventDispatcher, WindowEventSource
from .handlers import HandlerContext, build_default_handlers

__all__ = [
    "HandlerRegistry",
    "RegistryFrozenError",
    "WindowHandler",
    "WindowEventDispatcher",
    "WindowEventSource",
    "HandlerContext",
    "build_default_handlers",
]
