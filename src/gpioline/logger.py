import logging
import os
from logging import Formatter

from colorlog import ColoredFormatter

from gpioline.config import LoggerConfig
from gpioline.version import __version__

_LOGGER = logging.getLogger(__name__)
_nameToLevel = {
    "CRITICAL": logging.CRITICAL,
    "FATAL": logging.FATAL,
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}


def get_log_level(level_name: str) -> int:
    """Convert string log level to logging constant."""
    return _nameToLevel.get(level_name.upper(), logging.INFO)


def configure_logger(debug: int, log_config: LoggerConfig | None = None) -> None:
    """Apply levels from the debug count and an optional logger config."""
    if log_config is not None:
        if log_config.default is not None:
            logging.getLogger().setLevel(get_log_level(log_config.default))
        for log_key, log_level in log_config.logs.items():
            _LOGGER.info("Setting %s log level to %s", log_key, log_level)
            logging.getLogger(log_key).setLevel(get_log_level(log_level))
        if debug == 0:
            return

    if debug == 0:
        logging.getLogger().setLevel(logging.INFO)
    if debug > 0:
        logging.getLogger().setLevel(logging.DEBUG)
        _LOGGER.info("Debug mode active")
        _LOGGER.debug("Lib version is %s", __version__)


def is_running_under_systemd() -> bool:
    """Check if the process is running under systemd."""
    return os.getenv("JOURNAL_STREAM") is not None


def get_log_formatter(color: bool = True) -> Formatter:
    """Get log formatter with optional color support."""
    # journald adds its own timestamp
    if is_running_under_systemd():
        log_format = "%(levelname)s [%(name)s] %(message)s"
    else:
        log_format = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

    date_format = "%Y-%m-%d %H:%M:%S"

    if color:
        return ColoredFormatter(
            fmt="%(log_color)s" + log_format + "%(reset)s",
            datefmt=date_format,
            reset=True,
            log_colors={
                "DEBUG": "cyan",
                "INFO": "green",
                "WARNING": "yellow",
                "ERROR": "red",
                "CRITICAL": "red",
            },
        )
    return Formatter(log_format, datefmt=date_format)


def setup_logging(debug_level: int = 0, color: bool = True) -> None:
    """Setup console logging."""
    logging.basicConfig(level=logging.INFO if debug_level == 0 else logging.DEBUG)
    for handler in logging.getLogger().handlers:
        handler.setFormatter(get_log_formatter(color=color))
