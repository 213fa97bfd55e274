"""Configuration tasks derived from settings, in the order they are submitted."""

from __future__ import annotations

import logging
from typing import Callable, List, Optional

from ..app.settings import API_PRECAUTION_SETTINGS, AutopilotSettings
from ..automation.driver import WindowSignature
from ..scheduling.timespec import parse_time_spec
from .runner import (
    ConfigurationTask,
    InvokeMutation,
    RetryPolicy,
    TextMutation,
    ToggleMutation,
)

logger = logging.getLogger(__name__)

API_SETTINGS_PAGE = ("API", "Settings")
API_PRECAUTIONS_PAGE = ("API", "Precautions")
LOCK_AND_EXIT_PAGE = ("Lock and Exit",)

PRECAUTION_LABELS = {
    "BypassOrderPrecautions": "Bypass Order Precautions for API Orders",
    "BypassBondWarning": "Bypass Bond warning for API Orders",
    "BypassNegativeYieldToWorstConfirmation": "Bypass negative yield to worst confirmation for API Orders",
    "BypassCalledBondWarning": "Bypass Called Bond warning for API Orders",
    "BypassSameActionPairTradeWarning": 'Bypass "same action pair trade" warning for API orders.',
    "BypassPriceBasedVolatilityRiskWarning": "Bypass price-based volatility risk warning for API Orders",
    "BypassUSStocksMarketDataInSharesWarning": "Bypass US Stocks market data in shares warning for API Orders",
    "BypassRedirectOrderWarning": "Bypass Redirect Order warning for Stock API Orders",
    "BypassNoOverfillProtectionPrecaution": "Bypass No Overfill Protection precaution for destinations where implied natively",
}


def config_dialog_signature(gateway: bool) -> WindowSignature:
    """Signature of the host's settings dialog."""
    if gateway:
        return WindowSignature(title_prefix="Configuration")
    return WindowSignature(title_prefix="Global Configuration")


def build_configuration_tasks(
    settings: AutopilotSettings,
    *,
    open_dialog: Optional[Callable[[], None]] = None,
) -> List[ConfigurationTask]:
    """Build every configuration task whose setting is present.

    Malformed auto-logoff/auto-restart times raise InvalidSettingError.
    """
    target = config_dialog_signature(settings.gateway)
    retry = RetryPolicy(interval=settings.config_task_interval, attempts=settings.config_task_attempts)

    def task(name: str, mutation, page=API_SETTINGS_PAGE, commit: Optional[str] = "Apply") -> ConfigurationTask:
        return ConfigurationTask(
            name=name,
            target=target,
            mutation=mutation,
            retry=retry,
            page=page,
            commit_button=commit,
            open_dialog=open_dialog,
        )

    tasks: List[ConfigurationTask] = []
    if settings.read_only_api is not None:
        tasks.append(task("ReadOnlyApi", ToggleMutation("Read-Only API", settings.read_only_api)))
    if settings.allow_connections_localhost_only is not None:
        tasks.append(
            task(
                "AllowConnectionsFromLocalhostOnly",
                ToggleMutation("Allow connections from localhost only", settings.allow_connections_localhost_only),
            )
        )
    if settings.override_api_port:
        tasks.append(task("OverrideTwsApiPort", TextMutation("Socket port", str(settings.override_api_port))))
    if settings.master_client_id:
        tasks.append(task("OverrideTwsMasterClientID", TextMutation("Master API client ID", settings.master_client_id)))
    if settings.reset_order_ids_at_start:
        tasks.append(task("ResetOrderIdsAtStart", InvokeMutation("Reset API order ID sequence"), commit=None))
    if settings.send_market_data_in_lots is not None:
        tasks.append(
            task(
                "SendMarketDataInLotsForUSstocks",
                ToggleMutation(
                    "Send market data in lots for US stocks for dual-mode API clients",
                    settings.send_market_data_in_lots,
                ),
            )
        )
    tasks.extend(_auto_logoff_tasks(settings, task))
    for key in API_PRECAUTION_SETTINGS:
        if key in settings.api_precautions:
            tasks.append(
                task(key, ToggleMutation(PRECAUTION_LABELS[key], settings.api_precautions[key]), page=API_PRECAUTIONS_PAGE)
            )
    return tasks


def _auto_logoff_tasks(settings: AutopilotSettings, task) -> List[ConfigurationTask]:
    if settings.auto_restart_time.strip():
        kind, setting, text = "Auto restart", "AutoRestartTime", settings.auto_restart_time
        if settings.auto_logoff_time.strip():
            logger.info("AutoLogoffTime is ignored because AutoRestartTime is also set")
    elif settings.auto_logoff_time.strip():
        kind, setting, text = "Auto log off", "AutoLogoffTime", settings.auto_logoff_time
    else:
        return []
    spec = parse_time_spec(text, setting=setting, allow_weekday=False)
    return [
        task(f"{setting} mode", ToggleMutation(kind, True, role="RadioButton"), page=LOCK_AND_EXIT_PAGE),
        task(setting, TextMutation("Set time", spec.clock()), page=LOCK_AND_EXIT_PAGE),
    ]
