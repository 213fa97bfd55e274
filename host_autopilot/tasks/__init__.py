"""One-shot configuration tasks applied after the host starts."""

from .runner import (
    ConfigurationTask,
    ConfigurationTaskRunner,
    InvokeMutation,
    Mutation,
    RetryPolicy,
    TaskOutcome,
    TextMutation,
    ToggleMutation,
    WindowLocator,
)
from .builtin import build_configuration_tasks, config_dialog_signature

__all__ = [
    "ConfigurationTask",
    "ConfigurationTaskRunner",
    "InvokeMutation",
    "Mutation",
    "RetryPolicy",
    "TaskOutcome",
    "TextMutation",
    "ToggleMutation",
    "WindowLocator",
    "build_configuration_tasks",
    "config_dialog_signature",
]
