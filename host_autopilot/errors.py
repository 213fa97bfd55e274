"""Process exit codes and the top-level error hierarchy."""

from __future__ import annotations

from enum import IntEnum


class ExitCode(IntEnum):
    """Distinct process exit codes that external supervisors can branch on."""

    OK = 0
    INCORRECT_ARGUMENTS = 2
    INVALID_SETTING_VALUE = 3
    CANT_CREATE_SETTINGS_DIR = 4
    CANT_FIND_ENTRYPOINT = 5
    RESTART_REQUESTED = 10
    COLD_RESTART_REQUESTED = 11


class AutopilotError(RuntimeError):
    """Base class for host-autopilot failures."""


class FatalError(AutopilotError):
    """A condition the process cannot work around; carries its exit code."""

    exit_code: ExitCode = ExitCode.INCORRECT_ARGUMENTS

    def __init__(self, message: str, exit_code: ExitCode | None = None) -> None:
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidSettingError(FatalError):
    """Raised for malformed settings such as an unparseable schedule time."""

    exit_code = ExitCode.INVALID_SETTING_VALUE

    def __init__(self, setting: str, value: str, expected: str) -> None:
        super().__init__(f"Invalid {setting} setting: '{value}'; format should be: {expected}")
        self.setting = setting
        self.value = value


class SettingsDirectoryError(FatalError):
    """Raised when the host settings directory cannot be created."""

    exit_code = ExitCode.CANT_CREATE_SETTINGS_DIR


class HostEntryPointError(FatalError):
    """Raised when the host application cannot be launched."""

    exit_code = ExitCode.CANT_FIND_ENTRYPOINT


class ShutdownInProgressError(AutopilotError):
    """Raised when a startup transition races with an accepted stop request.

    This is benign: the service treats it as a clean exit.
    """
