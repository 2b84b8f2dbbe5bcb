"""
Base controller with shared functionality.

All controllers should inherit from this class to access
common configuration and directories.
"""
from pathlib import Path
from typing import Optional

from core.config import Settings, get_settings


class BaseController:
    """Base class for all controllers."""

    def __init__(self, settings: Optional[Settings] = None):
        """Initialize controller with settings and resolved directories."""
        self.settings: Settings = settings or get_settings()
        self.input_dir: Path = self.settings.paths.input_path
        self.output_dir: Path = self.settings.paths.output_path

    @staticmethod
    def coerce_index(value) -> int:
        """
        Turn a client-supplied index into a usable one.

        Anything that is not a non-negative integer becomes 0.
        """
        try:
            index = int(str(value).strip())
        except (TypeError, ValueError):
            return 0
        return index if index >= 0 else 0
