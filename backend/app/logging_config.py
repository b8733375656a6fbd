"""Root logger setup, called once at startup."""
import logging
import sys

from app.config import settings


def setup_logging() -> None:
    """Configure the root logger from LOG_LEVEL with a timestamped stdout handler."""
    root_logger = logging.getLogger()
    log_level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)
    console_handler.setLevel(log_level)
    root_logger.addHandler(console_handler)

    root_logger.info("Logging initialised at level %s", settings.LOG_LEVEL)
