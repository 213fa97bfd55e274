"""Confirmation dialogs whose answer follows a setting or the session phase."""

from __future__ import annotations

import logging
from typing import Optional

from ...action import ActionResult, press_button, press_first_button, set_toggle
from ...driver import WindowSnapshot, find_control
from .base import HandlerContext, normalize_choice, window

logger = logging.getLogger(__name__)

DO_NOT_SHOW_AGAIN = "Please do not show this message again."


def handle_incoming_connection(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    choice = normalize_choice(context.settings.accept_incoming_connection_action)
    if choice == "accept":
        logger.info("Accepting incoming API connection")
        return press_button(snapshot.root, "Yes")
    if choice == "reject":
        logger.info("Rejecting incoming API connection")
        return press_button(snapshot.root, "No")
    logger.info("Incoming API connection left for manual decision")
    return None


def handle_blind_trading(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    if not context.settings.allow_blind_trading:
        logger.info("Blind trading warning left open: AllowBlindTrading is off")
        return None
    if find_control(snapshot.root, name=DO_NOT_SHOW_AGAIN) is not None:
        set_toggle(snapshot.root, DO_NOT_SHOW_AGAIN, True)
    return press_first_button(snapshot.root, ("Yes", "OK"))


def handle_api_change(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_button(snapshot.root, "Yes")


def handle_exit_confirmation(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    if not context.session.stopping:
        logger.info("Exit confirmation shown outside a shutdown; leaving it to the user")
        return None
    return press_button(snapshot.root, "Yes")


def handle_shutdown_progress(snapshot: WindowSnapshot, context: HandlerContext) -> None:
    if context.request_stop(f"{context.settings.host_name} is shutting down"):
        logger.info("%s started shutting down on its own", context.settings.host_name)


def handle_crypto_order_confirmation(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    logger.info("Acknowledging the cryptocurrency order notice")
    return press_first_button(snapshot.root, ("OK", "Yes"))


def handle_auto_restart_notice(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_first_button(snapshot.root, ("OK", "Close"))


def handle_restart_confirmation(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    if context.settings.accept_auto_restart:
        return press_first_button(snapshot.root, ("Yes", "OK"))
    logger.info("Declining the host restart: AcceptAutoRestart is off")
    return press_first_button(snapshot.root, ("No", "Cancel"))


def handle_reset_order_id(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_button(snapshot.root, "Yes")


def handle_reconnect(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_button(snapshot.root, "Yes")


incoming_connection_window = window(text=("Accept incoming connection",))
blind_trading_window = window(text=("blind trading",))
api_change_window = window(text=("API configuration change",), control="Yes")
exit_confirmation_window = window(text=("Are you sure you want to exit",))
shutdown_progress_window = window(title_contains="Shutdown progress")
crypto_order_confirmation_window = window(title_contains="Cryptocurrency Order")
auto_restart_notice_window = window(text=("will automatically restart",), without_text=("Restart now",))
restart_confirmation_window = window(title_contains="Restart", control="Yes")
reset_order_id_window = window(text=("reset the API order ID sequence",), control="Yes")
reconnect_window = window(text=("reconnect",), control="Yes")
