import pytest


@pytest.fixture(autouse=True)
def isolated_config_dir(tmp_path, monkeypatch):
    """Keep settings tests away from the real user config directory."""
    config_dir = tmp_path / "config"
    monkeypatch.setattr(
        "locwatch.settings.config_manager.platformdirs.user_config_dir",
        lambda *args, **kwargs: str(config_dir),
    )
    for name in ("LOCWATCH_POSITION_SOURCE", "LOCWATCH_LOG_LEVEL", "LOCWATCH_TIMEOUT_MS"):
        monkeypatch.delenv(name, raising=False)
    return config_dir


@pytest.fixture(autouse=True)
def restore_log_level():
    from locwatch.logging import LOCWATCH_LOGGER

    level = LOCWATCH_LOGGER.level
    yield
    LOCWATCH_LOGGER.setLevel(level)
