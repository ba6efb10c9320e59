from locwatch.settings._locwatch_settings import LocWatchSettings
from locwatch.settings.config_manager import ConfigManager

__all__ = ["ConfigManager", "LocWatchSettings"]
