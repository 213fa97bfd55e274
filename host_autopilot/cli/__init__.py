from __future__ import annotations

import argparse
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional

from host_autopilot.app.configuration import load_settings
from host_autopilot.errors import AutopilotError, ExitCode, FatalError
from host_autopilot.session import StopRequest

logger = logging.getLogger("host_autopilot.cli")

_MAX_POSITIONALS = 6


@dataclass(slots=True)
class PositionalArguments:
    """Settings file and credential overrides given on the command line."""

    config_path: Optional[Path] = None
    overrides: Dict[str, str] = field(default_factory=dict)


def parse_positionals(values: List[str]) -> PositionalArguments:
    """Interpret the positional argument forms.

    ``[ini] [tradingMode]``, ``[ini] apiUser apiPassword [tradingMode]`` and
    ``[ini] fixUser fixPassword apiUser apiPassword [tradingMode]``. An ini
    argument that is empty or ``NULL`` selects the default settings file.
    """
    if len(values) > _MAX_POSITIONALS:
        raise FatalError(
            f"Incorrect number of arguments passed: {len(values)} (at most {_MAX_POSITIONALS})",
            ExitCode.INCORRECT_ARGUMENTS,
        )
    result = PositionalArguments()
    if not values:
        return result
    ini, rest = values[0], values[1:]
    if ini.strip() and ini.strip().upper() != "NULL":
        result.config_path = Path(ini).expanduser()
    if len(rest) in (1, 3, 5):
        result.overrides["trading_mode"] = rest[-1]
        rest = rest[:-1]
    if len(rest) == 4:
        result.overrides["fix_login_id"], result.overrides["fix_password"] = rest[0], rest[1]
        result.overrides["fix"] = "yes"
        rest = rest[2:]
    if len(rest) == 2:
        result.overrides["login_id"], result.overrides["password"] = rest[0], rest[1]
    return result


def exit_code_for(request: Optional[StopRequest]) -> ExitCode:
    """Exit code that tells the supervising script whether to relaunch."""
    if request is None:
        return ExitCode.OK
    if request.cold_restart:
        return ExitCode.COLD_RESTART_REQUESTED
    if request.restart:
        return ExitCode.RESTART_REQUESTED
    return ExitCode.OK


def _configure_logging(verbose: bool, log_file: Optional[Path]) -> None:
    handlers: List[logging.Handler] = [logging.StreamHandler()]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s - %(message)s",
        handlers=handlers,
    )


def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(
        prog="host-autopilot",
        description="Run a desktop trading host unattended: log in, answer dialogs, stop or restart on schedule.",
    )
    parser.add_argument("positionals", nargs="*", metavar="ARG", help="[ini] [fixUser fixPassword] [apiUser apiPassword] [tradingMode]")
    parser.add_argument("--gateway", action="store_true", help="Drive the gateway rather than the workstation")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    parser.add_argument("--log-file", type=Path, help="Also write the log to this file")
    args = parser.parse_args(argv)

    _configure_logging(args.verbose, args.log_file)

    from host_autopilot.service import AutopilotService

    try:
        positionals = parse_positionals(args.positionals)
        loaded = load_settings(config_path=positionals.config_path)
        settings = loaded.settings
        for name, value in positionals.overrides.items():
            setattr(settings, name, value == "yes" if name == "fix" else value)
        if args.gateway:
            settings.gateway = True
        logger.info("Settings loaded from %s", loaded.config_source or "defaults and environment")
        service = AutopilotService(settings)
        request = service.run()
    except FatalError as exc:
        logger.error("%s", exc)
        return int(exc.exit_code)
    except AutopilotError as exc:
        logger.error("%s", exc)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted")
        return int(ExitCode.OK)

    code = exit_code_for(request)
    logger.info("Session ended: %s", request.describe() if request else "no stop request")
    return int(code)


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
