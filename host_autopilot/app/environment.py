# host_autopilot/app/environment.py
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from ..errors import SettingsDirectoryError

logger = logging.getLogger(__name__)


def ensure_settings_dir(path: Optional[str]) -> Path:
    """Create the host settings directory (defaults to the working directory)."""
    directory = Path(path).expanduser() if path else Path.cwd()
    if directory.exists() and not directory.is_dir():
        raise SettingsDirectoryError(
            f"Failed to create host settings directory at: {directory}; a file of that name already exists"
        )
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as exc:
        raise SettingsDirectoryError(f"Failed to create host settings directory at: {directory}: {exc}") from exc
    logger.info("Host settings directory is: %s", directory)
    return directory
