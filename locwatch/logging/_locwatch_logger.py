import logging


class ColoredFormatter(logging.Formatter):
    COLORS = {
        "DEBUG": "\033[94m",  # Blue
        "INFO": "\033[92m",  # Green
        "WARNING": "\033[93m",  # Yellow
        "ERROR": "\033[91m",  # Red
        "CRITICAL": "\033[95m",  # Magenta
    }
    RESET = "\033[0m"

    def format(self, record):
        # Color a copy so other handlers still see the plain level name
        colored = logging.makeLogRecord(record.__dict__)
        color = self.COLORS.get(record.levelname, self.RESET)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


LOCWATCH_LOGGER = logging.getLogger()
LOCWATCH_LOGGER.setLevel(logging.INFO)

handler = logging.StreamHandler()
log_format = "%(asctime)s %(levelname)s %(message)s"
date_format = "%Y-%m-%d %H:%M:%S"
formatter = ColoredFormatter(fmt=log_format, datefmt=date_format)
handler.setFormatter(formatter)
LOCWATCH_LOGGER.handlers.clear()
LOCWATCH_LOGGER.addHandler(handler)


def set_log_level(level: str) -> None:
    """Set the application log level from a name such as ``"DEBUG"``."""
    numeric = logging.getLevelName(level.upper())
    if not isinstance(numeric, int):
        LOCWATCH_LOGGER.warning(f"Unknown log level {level!r}, keeping {logging.getLevelName(LOCWATCH_LOGGER.level)}")
        return
    LOCWATCH_LOGGER.setLevel(numeric)
