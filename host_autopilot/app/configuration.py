"""Runtime configuration loading helpers for host-autopilot."""

from __future__ import annotations

import configparser
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional, Tuple

from ..errors import InvalidSettingError
from .settings import API_PRECAUTION_SETTINGS, AutopilotSettings

logger = logging.getLogger(__name__)

_ENV_PREFIX = "HOST_AUTOPILOT_"
_SECTION = "autopilot"
_BOOL_TRUE = {"1", "true", "yes", "on"}
_BOOL_FALSE = {"0", "false", "no", "off"}

# INI key -> (settings attribute, kind)
_KEYS: Tuple[Tuple[str, str, str], ...] = (
    ("HostCommand", "host_command", "str"),
    ("IbDir", "settings_dir", "str"),
    ("Gateway", "gateway", "bool"),
    ("FIX", "fix", "bool"),
    ("IbLoginId", "login_id", "str"),
    ("IbPassword", "password", "str"),
    ("FIXLoginId", "fix_login_id", "str"),
    ("FIXPassword", "fix_password", "str"),
    ("TradingMode", "trading_mode", "str"),
    ("CommandServerHost", "command_server_host", "str"),
    ("CommandServerPort", "command_server_port", "int"),
    ("ControlFrom", "control_from", "list"),
    ("ClosedownAt", "closedown_at", "str"),
    ("ColdRestartTime", "cold_restart_time", "str"),
    ("AutoLogoffTime", "auto_logoff_time", "str"),
    ("AutoRestartTime", "auto_restart_time", "str"),
    ("AcceptIncomingConnectionAction", "accept_incoming_connection_action", "str"),
    ("ExistingSessionDetectedAction", "existing_session_detected_action", "str"),
    ("AllowBlindTrading", "allow_blind_trading", "bool"),
    ("ReadOnlyLogin", "read_only_login", "bool"),
    ("DismissPasswordExpiryWarning", "dismiss_password_expiry_warning", "bool"),
    ("AcceptAutoRestart", "accept_auto_restart", "bool"),
    ("ReadOnlyApi", "read_only_api", "optbool"),
    ("AllowConnectionsFromLocalhostOnly", "allow_connections_localhost_only", "optbool"),
    ("OverrideTwsApiPort", "override_api_port", "int"),
    ("OverrideTwsMasterClientID", "master_client_id", "str"),
    ("ResetOrderIdsAtStart", "reset_order_ids_at_start", "bool"),
    ("SendMarketDataInLotsForUSstocks", "send_market_data_in_lots", "optbool"),
    ("ShutdownTimeout", "shutdown_timeout", "float"),
    ("WindowPollInterval", "window_poll_interval", "float"),
    ("ConfigTaskInterval", "config_task_interval", "float"),
    ("ConfigTaskAttempts", "config_task_attempts", "int"),
)


@dataclass(slots=True)
class LoadedSettings:
    settings: AutopilotSettings
    config_source: Optional[Path] = None


def load_settings(
    env: Mapping[str, str] | None = None,
    config_path: Optional[Path] = None,
) -> LoadedSettings:
    """Load settings from an optional INI file, then apply environment overrides."""

    source_env = os.environ if env is None else env
    config_file = _determine_config_path(source_env, config_path)
    settings = AutopilotSettings()

    if config_file is not None and config_file.is_file():
        parser = configparser.ConfigParser(interpolation=None)
        parser.read(config_file, encoding="utf-8")
        if parser.has_section(_SECTION):
            _apply_mapping(settings, parser[_SECTION], prefix="")
            known = {key.lower() for key, _, _ in _KEYS} | {key.lower() for key in API_PRECAUTION_SETTINGS}
            for key, value in parser[_SECTION].items():
                if key not in known:
                    settings.extras[key] = value
        else:
            logger.warning("Config file %s has no [%s] section", config_file, _SECTION)
    elif config_file is not None:
        logger.warning("Config file %s not found; using defaults", config_file)

    _apply_mapping(settings, source_env, prefix=_ENV_PREFIX)
    return LoadedSettings(settings=settings, config_source=config_file)


def _determine_config_path(env: Mapping[str, str], explicit: Optional[Path]) -> Optional[Path]:
    if explicit is not None:
        return explicit
    env_override = env.get(f"{_ENV_PREFIX}CONFIG_FILE")
    if env_override:
        return Path(env_override).expanduser()
    candidate = Path.cwd() / "autopilot.ini"
    return candidate if candidate.is_file() else None


def _apply_mapping(settings: AutopilotSettings, source: Mapping[str, str], *, prefix: str) -> None:
    lookup = _case_insensitive(source, prefix)
    for key, attr, kind in _KEYS:
        raw = lookup.get(key.lower())
        if raw is None:
            continue
        setattr(settings, attr, _convert(key, raw, kind, getattr(settings, attr)))
    for key in API_PRECAUTION_SETTINGS:
        raw = lookup.get(key.lower())
        if raw is None or not raw.strip():
            continue
        settings.api_precautions[key] = _parse_bool(key, raw)


def _case_insensitive(source: Mapping[str, str], prefix: str) -> dict:
    result = {}
    prefix_lower = prefix.lower()
    for key, value in source.items():
        lowered = str(key).lower()
        if prefix_lower and not lowered.startswith(prefix_lower):
            continue
        result[lowered[len(prefix_lower):]] = value
    return result


def _convert(key: str, raw: str, kind: str, default):
    value = str(raw).strip()
    if kind == "str":
        return value
    if kind == "list":
        return [item.strip() for item in value.split(",") if item.strip()]
    if kind == "optbool":
        return _parse_bool(key, value) if value else None
    if not value:
        return default
    if kind == "bool":
        return _parse_bool(key, value)
    if kind == "int":
        try:
            return int(value)
        except ValueError:
            raise InvalidSettingError(key, value, "an integer") from None
    if kind == "float":
        try:
            return float(value)
        except ValueError:
            raise InvalidSettingError(key, value, "a number") from None
    raise ValueError(f"Unknown setting kind: {kind}")


def _parse_bool(key: str, raw: str) -> bool:
    value = str(raw).strip().lower()
    if value in _BOOL_TRUE:
        return True
    if value in _BOOL_FALSE:
        return False
    raise InvalidSettingError(key, raw, "yes or no")
