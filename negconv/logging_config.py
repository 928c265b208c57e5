"""
Logging configuration for negconv.
"""

import logging
import sys
from logging.handlers import RotatingFileHandler


def setup_logging(log_level=logging.INFO, log_file=None):
    """
    Configure the root logger for command-line use.

    Args:
        log_level: Logging level (default: INFO)
        log_file: Optional path of an additional rotating log file

    Logs go to stderr so that stdout stays free for tool output
    (the calibration tool prints its profile there).
    """
    logger = logging.getLogger()
    logger.setLevel(log_level)

    formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)

    # Remove handlers from earlier calls
    logger.handlers.clear()
    logger.addHandler(console_handler)

    if log_file:
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=10*1024*1024,  # 10 MB
            backupCount=5
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logging.getLogger('PIL').setLevel(logging.WARNING)

    return logger
