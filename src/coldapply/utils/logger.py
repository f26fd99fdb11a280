"""
Logging setup for the ColdApply service.

Every module logs through ``logging.getLogger(__name__)``; this configures the
shared ``coldapply`` parent logger once at process start.
"""
import logging
import os

LOGGER_NAME = "coldapply"


def setup_logger(level: str = "INFO", log_file: str | None = None) -> logging.Logger:
    """
    Set up the application logger.

    Args:
        level:    Console log level name (e.g. "INFO", "DEBUG").
        log_file: Optional path of a file that receives DEBUG and above.

    Returns:
        The configured ``coldapply`` logger.
    """
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(logging.DEBUG)

    # Re-running setup (tests, --once then schedule) must not duplicate output
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if log_file:
        directory = os.path.dirname(log_file)
        if directory:
            os.makedirs(directory, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(getattr(logging, level.upper(), logging.INFO))
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    logger.propagate = False
    return logger
