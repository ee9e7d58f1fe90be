import logging
import os
import sys
from logging.handlers import RotatingFileHandler

LOGGER_NAME = "pcdoctor"


def _log_dir():
    base = os.environ.get("PCDOCTOR_HOME") or os.path.join(os.path.expanduser("~"), ".pcdoctor")
    return os.path.join(base, "logs")


def setup_logger(name=LOGGER_NAME, log_file="pcdoctor.log", level=logging.INFO):
    """
    Sets up a logger with console and rotating file handlers.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent adding handlers multiple times
    if logger.hasHandlers():
        return logger

    formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    try:
        log_dir = _log_dir()
        os.makedirs(log_dir, exist_ok=True)
        file_handler = RotatingFileHandler(
            os.path.join(log_dir, log_file), maxBytes=5*1024*1024, backupCount=3, encoding="utf-8"
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)
    except Exception as e:
        print(f"Failed to setup file logging: {e}")

    return logger


def get_logger(name=None):
    """Child logger under the pcdoctor root, e.g. get_logger(__name__)."""
    if not name or name == LOGGER_NAME:
        return logging.getLogger(LOGGER_NAME)
    if name.startswith(LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


log = setup_logger()
