"""Window observation, UI actions and dialog handling for the host application."""

from .action import ActionResult, press_button, press_first_button, select_page, set_toggle, type_text
from .dialogs import HandlerContext, HandlerRegistry, WindowEventDispatcher, build_default_handlers
