"""Read-only access to the LocWatch JSON config file.

The file lives in the platformdirs user config directory and holds overrides
for ``LocWatchSettings`` fields, below environment variables in priority.
"""

import json
from pathlib import Path
from typing import Any, Optional

import platformdirs

from locwatch.constants import APP_AUTHOR, APP_NAME, CONFIG_FILE_NAME
from locwatch.logging import LOCWATCH_LOGGER


class ConfigManager:
    """Locates and loads the settings override file."""

    def __init__(self, config_dir: Optional[Path] = None):
        if config_dir is None:
            config_dir = platformdirs.user_config_dir(APP_NAME, appauthor=APP_AUTHOR)
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / CONFIG_FILE_NAME

    def load_config(self, known_fields: Optional[set[str]] = None) -> dict[str, Any]:
        """Load overrides from the config file.

        Args:
            known_fields: If given, keys outside this set are dropped with a warning.

        Returns:
            Dict of overrides; empty if the file is missing, unreadable or not a
            JSON object.
        """
        if not self.config_file.exists():
            return {}

        try:
            with open(self.config_file, "r") as f:
                config = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            LOCWATCH_LOGGER.warning(f"Error loading config file {self.config_file}: {e}")
            return {}

        if not isinstance(config, dict):
            LOCWATCH_LOGGER.warning(f"Ignoring config file {self.config_file}: top level must be a JSON object")
            return {}

        if known_fields is not None:
            unknown = sorted(set(config) - known_fields)
            if unknown:
                LOCWATCH_LOGGER.warning(f"Ignoring unknown keys in {self.config_file}: {', '.join(unknown)}")
            config = {name: value for name, value in config.items() if name in known_fields}
        return config
