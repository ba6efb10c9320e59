from typing import Any, Optional

from pydantic import field_validator
from pydantic.fields import FieldInfo
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

from locwatch.constants import (
    DEFAULT_DUMMY_LATITUDE,
    DEFAULT_DUMMY_LONGITUDE,
    DEFAULT_GPS_POLL_INTERVAL_SECONDS,
    DEFAULT_GPSPIPE_MESSAGE_COUNT,
    POSITION_SOURCE_DUMMY,
    POSITION_SOURCES,
)
from locwatch.location.position_source import PositionOptions
from locwatch.settings.config_manager import ConfigManager


class ConfigFileSettingsSource(PydanticBaseSettingsSource):
    """Settings source reading overrides from the user's JSON config file."""

    def __init__(self, settings_cls: type[BaseSettings], config_manager: Optional[ConfigManager] = None):
        super().__init__(settings_cls)
        self._config = (config_manager or ConfigManager()).load_config(set(settings_cls.model_fields))

    def get_field_value(self, field: FieldInfo, field_name: str) -> tuple[Any, str, bool]:
        return self._config.get(field_name), field_name, False

    def __call__(self) -> dict[str, Any]:
        return dict(self._config)


class LocWatchSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="LOCWATCH_",
        env_nested_delimiter="__",
    )

    log_level: str = "INFO"

    # Position source selection
    position_source: str = POSITION_SOURCE_DUMMY  # Options: "dummy", "gpsd"

    # gpsd source settings
    gps_poll_interval_seconds: float = DEFAULT_GPS_POLL_INTERVAL_SECONDS
    gpspipe_message_count: int = DEFAULT_GPSPIPE_MESSAGE_COUNT

    # Dummy source settings
    dummy_latitude: float = DEFAULT_DUMMY_LATITUDE
    dummy_longitude: float = DEFAULT_DUMMY_LONGITUDE
    dummy_interval_seconds: float = 1.0

    # Pass-through position options
    enable_high_accuracy: bool = False
    timeout_ms: Optional[int] = None
    maximum_age_ms: int = 0

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Explicit arguments win over environment, environment over the config file
        return init_settings, env_settings, ConfigFileSettingsSource(settings_cls), file_secret_settings

    @field_validator("position_source")
    @classmethod
    def _check_position_source(cls, value: str) -> str:
        value = value.lower()
        if value not in POSITION_SOURCES:
            raise ValueError(f"position_source must be one of {', '.join(POSITION_SOURCES)}")
        return value

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        return value.upper()

    def position_options(self) -> PositionOptions:
        """Build the pass-through options handed to position sources."""
        return PositionOptions(
            enable_high_accuracy=self.enable_high_accuracy,
            timeout_ms=self.timeout_ms,
            maximum_age_ms=self.maximum_age_ms,
        )
