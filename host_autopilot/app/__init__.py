"""Application-level utilities (environment, settings)."""

from .settings import AutopilotSettings
from .configuration import LoadedSettings, load_settings
from .environment import ensure_settings_dir
