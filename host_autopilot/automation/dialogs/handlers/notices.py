"""Informational windows that only need to be dismissed or noted."""

from __future__ import annotations

import logging
from typing import Optional

from ...action import ActionResult, press_first_button
from ...driver import WindowSnapshot
from .base import HandlerContext, any_of, window

logger = logging.getLogger(__name__)


def handle_newer_version(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    logger.info("A newer version of %s is available", context.settings.host_name)
    return press_first_button(snapshot.root, ("No", "Close", "OK"))


def handle_newer_version_frame(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    logger.info("A newer version of %s is available", context.settings.host_name)
    return press_first_button(snapshot.root, ("Close", "OK"))


def handle_not_currently_available(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_first_button(snapshot.root, ("OK",))


def handle_tip_of_the_day(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_first_button(snapshot.root, ("Close", "OK"))


def handle_nse_compliance(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_first_button(snapshot.root, ("Close", "OK"))


def handle_password_expiry(snapshot: WindowSnapshot, context: HandlerContext) -> Optional[ActionResult]:
    logger.warning("The host reports that the account password will expire soon")
    if not context.settings.dismiss_password_expiry_warning:
        return None
    return press_first_button(snapshot.root, ("OK", "Close"))


def handle_global_configuration(snapshot: WindowSnapshot, context: HandlerContext) -> None:
    # configuration tasks locate the dialog themselves
    logger.debug("Configuration dialog shown: %s", snapshot.describe())


def handle_trades(snapshot: WindowSnapshot, context: HandlerContext) -> None:
    logger.info("Trades window opened")


def handle_splash(snapshot: WindowSnapshot, context: HandlerContext) -> None:
    logger.info("%s is starting", context.settings.host_name)


def handle_bid_ask_last_size(snapshot: WindowSnapshot, context: HandlerContext) -> ActionResult:
    return press_first_button(snapshot.root, ("OK", "Close"))


newer_version_window = window(text=("newer version",))
newer_version_frame_window = window(title_contains="Newer Version")
not_currently_available_window = window(text=("is not currently available",))
tip_of_the_day_window = window(title_contains="Tip of the Day")
nse_compliance_window = window(title_contains="NSE Compliance")
password_expiry_window = window(text=("password will expire",))
# the gateway titles its dialog plainly "Configuration"
global_configuration_window = any_of(
    window(title_prefix="Global Configuration"),
    window(title="Configuration"),
)
trades_window = window(title_prefix="Trades")
splash_window = window(title_contains="Starting application")
bid_ask_last_size_window = window(text=("Bid, Ask and Last Size Display Update",))
