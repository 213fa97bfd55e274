"""Default dialog handlers and the order they are evaluated in."""

from __future__ import annotations

from ..registry import HandlerRegistry
from . import confirmations, login, notices
from .base import HandlerContext, any_of, window

__all__ = ["HandlerContext", "any_of", "build_default_handlers", "window"]


def build_default_handlers(registry: HandlerRegistry) -> HandlerRegistry:
    """Register the default handlers.

    Order matters: second-factor authentication shares the "Enter Read Only"
    control with the security-code dialog and must be checked before it, and
    both login frames must be checked before the main windows since the
    gateway's login frame carries the same title.
    """
    add = registry.add
    add("accept-incoming-connection", confirmations.incoming_connection_window, confirmations.handle_incoming_connection)
    add("blind-trading-warning", confirmations.blind_trading_window, confirmations.handle_blind_trading)
    add("login", login.is_login_frame, login.handle_login_frame)
    add("gateway-login", login.is_gateway_login_frame, login.handle_gateway_login_frame)
    add("main-window", login.is_main_window, login.handle_main_window, "LoggingIn -> Running")
    add("gateway-main-window", login.is_gateway_main_window, login.handle_main_window, "LoggingIn -> Running")
    add("newer-version", notices.newer_version_window, notices.handle_newer_version)
    add("newer-version-frame", notices.newer_version_frame_window, notices.handle_newer_version_frame)
    add("not-currently-available", notices.not_currently_available_window, notices.handle_not_currently_available)
    add("tip-of-the-day", notices.tip_of_the_day_window, notices.handle_tip_of_the_day)
    add("nse-compliance", notices.nse_compliance_window, notices.handle_nse_compliance)
    add("password-expiry", notices.password_expiry_window, notices.handle_password_expiry)
    add("global-configuration", notices.global_configuration_window, notices.handle_global_configuration)
    add("trades", notices.trades_window, notices.handle_trades)
    add("existing-session", login.existing_session_window, login.handle_existing_session)
    add("api-change-confirmation", confirmations.api_change_window, confirmations.handle_api_change)
    add("splash", notices.splash_window, notices.handle_splash)
    add("second-factor", login.second_factor_window, login.handle_second_factor)
    add("security-code", login.security_code_window, login.handle_security_code)
    add("relogin", login.relogin_window, login.handle_relogin)
    add("non-brokerage-account", login.non_brokerage_account_window, login.handle_non_brokerage_account)
    add("exit-confirmation", confirmations.exit_confirmation_window, confirmations.handle_exit_confirmation)
    add("trading-login-handoff", login.trading_login_handoff_window, login.handle_trading_login_handoff)
    add("login-failed", login.login_failed_window, login.handle_login_failed)
    add("too-many-failed-logins", login.too_many_failed_window, login.handle_too_many_failed_logins)
    add("shutdown-progress", confirmations.shutdown_progress_window, confirmations.handle_shutdown_progress)
    add("bid-ask-last-size", notices.bid_ask_last_size_window, notices.handle_bid_ask_last_size)
    add("login-error", login.login_error_window, login.handle_login_error)
    add(
        "crypto-order-confirmation",
        confirmations.crypto_order_confirmation_window,
        confirmations.handle_crypto_order_confirmation,
    )
    add("auto-restart-notice", confirmations.auto_restart_notice_window, confirmations.handle_auto_restart_notice)
    add("restart-confirmation", confirmations.restart_confirmation_window, confirmations.handle_restart_confirmation)
    add("reset-order-id-confirmation", confirmations.reset_order_id_window, confirmations.handle_reset_order_id)
    add("reconnect-confirmation", confirmations.reconnect_window, confirmations.handle_reconnect)
    return registry
