from locwatch.logging._locwatch_logger import LOCWATCH_LOGGER, ColoredFormatter, set_log_level

__all__ = ["LOCWATCH_LOGGER", "ColoredFormatter", "set_log_level"]
