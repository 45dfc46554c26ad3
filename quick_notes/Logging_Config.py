# Logging_Config.py
# Description: Configuration for logging
#
# Imports
import logging
import logging.handlers
import sys
from pathlib import Path
from typing import Any, Dict, Optional
#
# 3rd-Party Imports
from loguru import logger as loguru_logger
#
# Local Imports
from .config import get_cli_setting, get_log_file_path, get_log_level
#
########################################################################################################################
#
# Functions:

LOG_FORMAT = "%(asctime)s [%(levelname)-8s] %(name)s:%(lineno)d - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_LOGURU_TO_STD_LEVEL = {
    "TRACE": logging.DEBUG, "DEBUG": logging.DEBUG, "INFO": logging.INFO,
    "SUCCESS": logging.INFO, "WARNING": logging.WARNING, "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}


def sink_to_standard_logging(message) -> None:
    """Loguru sink that re-emits each record through the standard logging tree."""
    record = message.record
    std_level = _LOGURU_TO_STD_LEVEL.get(record["level"].name, logging.INFO)
    std_logger = logging.getLogger(record["name"])
    if record["exception"]:
        std_logger.log(std_level, record["message"], exc_info=record["exception"])
    else:
        std_logger.log(std_level, record["message"])


def configure_logging(config: Optional[Dict[str, Any]] = None, log_file_path: Optional[Path] = None) -> Path:
    """
    Sets up all logging handlers, including Loguru integration.

    Loguru records are forwarded into standard logging, whose root logger gets a
    stderr handler and a rotating file handler.

    Returns:
        The path of the log file in use.
    """
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    # --- Loguru: drop the default stderr sink, forward everything to std logging ---
    loguru_logger.remove()
    loguru_logger.add(sink_to_standard_logging, format="{message}", level="TRACE")

    # --- Root logger ---
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)
        handler.close()

    log_level = getattr(logging, get_log_level(config), logging.INFO)
    root_logger.setLevel(log_level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # --- File logging ---
    log_file_path = Path(log_file_path) if log_file_path else get_log_file_path(config)
    try:
        log_file_path.parent.mkdir(parents=True, exist_ok=True)
        max_bytes = int(get_cli_setting("logging", "log_max_bytes", 10485760, config=config))
        backup_count = int(get_cli_setting("logging", "log_backup_count", 5, config=config))
        file_log_level_str = str(get_cli_setting("logging", "file_log_level", "INFO", config=config)).upper()
        file_log_level = getattr(logging, file_log_level_str, logging.INFO)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        file_handler.setLevel(file_log_level)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        # Root must let through whatever the most verbose handler wants.
        if root_logger.level > file_log_level:
            root_logger.setLevel(file_log_level)
    except (OSError, ValueError) as e:
        logging.warning(f"Could not set up file logging at {log_file_path}: {e}")

    logging.getLogger(__name__).info(
        f"Logging configured (console: {logging.getLevelName(log_level)}, file: '{log_file_path}')."
    )
    return log_file_path

#
# End of Logging_Config.py
########################################################################################################################
