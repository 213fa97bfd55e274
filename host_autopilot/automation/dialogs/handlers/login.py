"""Handlers for the login sequence: credentials, second factor and the main window."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ....errors import ShutdownInProgressError
from ...action import ActionResult, press_button, press_first_button, set_toggle, type_text
from ...driver import WindowSnapshot, find_control, normalize_label
from .base import HandlerContext, normalize_choice, window

logger = logging.getLogger(__name__)

LOGIN_BUTTONS = ("Log In", "Paper Log In", "Login")
GATEWAY_API_TOGGLE = "IB API"
GATEWAY_FIX_TOGGLE = "FIX CTCI"
MAIN_WINDOW_TITLES = ("Trader Workstation", "Interactive Brokers")
GATEWAY_MAIN_WINDOW_TITLE = "IB Gateway"


def is_login_frame(snapshot: WindowSnapshot) -> bool:
    """The workstation login window: a login button, no API/FIX choice."""
    if "Login" not in normalize_label(snapshot.title):
        return False
    if find_control(snapshot.root, name=GATEWAY_API_TOGGLE) is not None:
        return False
    return any(find_control(snapshot.root, name=label, role="Button") is not None for label in LOGIN_BUTTONS)


def is_gateway_login_frame(snapshot: WindowSnapshot) -> bool:
    """The gateway login window offers the IB API / FIX CTCI choice."""
    if find_control(snapshot.root, name=GATEWAY_API_TOGGLE) is None:
        return False
    return any(find_control(snapshot.root, name=label, role="Button") is not None for label in LOGIN_BUTTONS)


def is_main_window(snapshot: WindowSnapshot) -> bool:
    title = normalize_label(snapshot.title)
    return any(title.startswith(prefix) for prefix in MAIN_WINDOW_TITLES)


def is_gateway_main_window(snapshot: WindowSnapshot) -> bool:
    return normalize_label(snapshot.title).startswith(GATEWAY_MAIN_WINDOW_TITLE)


def handle_login_frame(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    return _login(snapshot, context, gateway=False)


def handle_gateway_login_frame(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    return _login(snapshot, context, gateway=True)


def _login(snapshot: WindowSnapshot, context: HandlerContext, *, gateway: bool) -> Optional[ActionResult]:
    settings = context.settings
    root = snapshot.root
    if context.session.stopping:
        logger.info("Login window ignored: shutdown in progress")
        return None

    if gateway:
        mode_toggle = GATEWAY_FIX_TOGGLE if context.session.is_fix else GATEWAY_API_TOGGLE
        selected = set_toggle(root, mode_toggle, True)
        if not selected:
            return selected

    if context.session.is_fix:
        user, password = settings.fix_login_id, settings.fix_password
    else:
        user, password = settings.login_id, settings.password
    if not user or not password:
        logger.info("No credentials configured; login must be completed manually")
        return None

    trading_toggle = "Paper Trading" if settings.paper_trading else "Live Trading"
    if find_control(root, name=trading_toggle) is not None:
        set_toggle(root, trading_toggle, True)

    for field_name, value in (("Username", user), ("Password", password)):
        typed = type_text(root, field_name, value)
        if not typed:
            return typed
    if context.session.is_fix and settings.login_id and settings.password:
        # the gateway's FIX mode can also carry IB API credentials
        type_text(root, "IB API Username", settings.login_id)
        type_text(root, "IB API Password", settings.password)

    logger.info("Login attempt: %s, %s trading", context.session.mode.value, "paper" if settings.paper_trading else "live")
    return press_first_button(root, LOGIN_BUTTONS)


def handle_main_window(snapshot: WindowSnapshot, context: HandlerContext) -> None:
    if context.session.stopping:
        return
    try:
        entered = context.session.logged_in()
    except ShutdownInProgressError:
        logger.info("Main window appeared after shutdown began; ignoring")
        return
    if entered and context.on_logged_in is not None:
        context.on_logged_in()


def handle_existing_session(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    return _answer_session_conflict(snapshot, context, "Existing session detected", ("Continue Login", "OK"))


def handle_trading_login_handoff(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    """Another device wants the trading session; answered like an existing session."""
    return _answer_session_conflict(snapshot, context, "Trading login handoff", ("Continue", "OK"))


def _answer_session_conflict(
    snapshot: WindowSnapshot, context: HandlerContext, what: str, keep_buttons: Sequence[str]
) -> Optional[ActionResult]:
    choice = normalize_choice(context.settings.existing_session_detected_action)
    if choice in {"primary", "primaryoverride"}:
        logger.info("%s: keeping the session here", what)
        return press_first_button(snapshot.root, keep_buttons)
    if choice == "secondary":
        logger.info("%s: giving the session up", what)
        return press_first_button(snapshot.root, ("Cancel", "Exit Application"))
    logger.info("%s; ExistingSessionDetectedAction is %r, leaving it to the user", what, choice or "manual")
    return None


def handle_non_brokerage_account(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_first_button(snapshot.root, ("I understand and accept", "OK"))


def handle_second_factor(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    if context.settings.read_only_login:
        return press_button(snapshot.root, "Enter Read Only")
    logger.info("Second factor authentication requested; waiting for it to be completed on the device")
    return None


def handle_security_code(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    if context.settings.read_only_login:
        return press_button(snapshot.root, "Enter Read Only")
    logger.warning("Security code requested; it must be entered manually")
    return None


def handle_relogin(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_button(snapshot.root, "Re-login")


def handle_login_failed(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    logger.error("Login failed: check the credentials in the settings file")
    return press_first_button(snapshot.root, ("OK", "Close"))


def handle_login_error(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    logger.error("The host reported a login error: %s", snapshot.title)
    return press_first_button(snapshot.root, ("OK", "Close"))


def handle_too_many_failed_logins(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    logger.error("Too many failed login attempts; stopping")
    result = press_first_button(snapshot.root, ("OK", "Close"))
    context.request_stop("too many failed login attempts")
    return result


existing_session_window = window(title_contains="Existing session detected")
second_factor_window = window(title_contains="Second Factor Authentication", control="Enter Read Only")
security_code_window = window(control="Enter Read Only")
relogin_window = window(text=("Re-login is required",))
non_brokerage_account_window = window(text=("Non-Brokerage Account",))
trading_login_handoff_window = window(title_contains="Trading Login Handoff")
too_many_failed_window = window(text=("Too many failed login attempts",))
login_failed_window = window(title_contains="Login failed", without_text=("Too many failed login attempts",))
login_error_window = window(title_contains="Login Error")
