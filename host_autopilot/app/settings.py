# host_autopilot/app/settings.py
from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, List, Optional

_SECRET_FIELDS = {"password", "fix_password"}

API_PRECAUTION_SETTINGS = (
    "BypassOrderPrecautions",
    "BypassBondWarning",
    "BypassNegativeYieldToWorstConfirmation",
    "BypassCalledBondWarning",
    "BypassSameActionPairTradeWarning",
    "BypassPriceBasedVolatilityRiskWarning",
    "BypassUSStocksMarketDataInSharesWarning",
    "BypassRedirectOrderWarning",
    "BypassNoOverfillProtectionPrecaution",
)


@dataclass
class AutopilotSettings:
    host_command: str = ""
    settings_dir: Optional[str] = None
    gateway: bool = False
    fix: bool = False
    login_id: str = ""
    password: str = ""
    fix_login_id: str = ""
    fix_password: str = ""
    trading_mode: str = "live"
    command_server_host: str = "127.0.0.1"
    command_server_port: int = 7462
    control_from: List[str] = field(default_factory=list)
    closedown_at: str = ""
    cold_restart_time: str = ""
    auto_logoff_time: str = ""
    auto_restart_time: str = ""
    accept_incoming_connection_action: str = "manual"
    existing_session_detected_action: str = "manual"
    allow_blind_trading: bool = False
    read_only_login: bool = False
    dismiss_password_expiry_warning: bool = False
    accept_auto_restart: bool = True
    read_only_api: Optional[bool] = None
    allow_connections_localhost_only: Optional[bool] = None
    override_api_port: int = 0
    master_client_id: str = ""
    reset_order_ids_at_start: bool = False
    send_market_data_in_lots: Optional[bool] = None
    api_precautions: Dict[str, bool] = field(default_factory=dict)
    shutdown_timeout: float = 60.0
    window_poll_interval: float = 0.25
    config_task_interval: float = 2.0
    config_task_attempts: int = 30
    extras: Dict[str, str] = field(default_factory=dict)

    @property
    def host_name(self) -> str:
        return "Gateway" if self.gateway else "TWS"

    @property
    def paper_trading(self) -> bool:
        return self.trading_mode.strip().lower() in {"paper", "papertrading"}

    def diagnostic_lines(self) -> List[str]:
        """Render the effective settings for the log, with secrets masked."""
        lines: List[str] = []
        for item in fields(self):
            value: Any = getattr(self, item.name)
            if item.name in _SECRET_FIELDS and value:
                value = "***"
            lines.append(f"{item.name} = {value!r}")
        return lines
