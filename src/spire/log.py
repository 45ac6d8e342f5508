"""
Logging setup for Spire.

Module code logs through `logging.getLogger(__name__)`. The CLI calls
`setup_logging` once to attach console and (optionally) rotating file
handlers to the `spire` logger.
"""

import logging
import sys
import time
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

LOGGER_NAME = "spire"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def setup_logging(verbose: bool = False, log_file: Optional[Path] = None) -> logging.Logger:
    """Configure the `spire` logger.

    Args:
        verbose: Log at DEBUG level instead of INFO
        log_file: Optional path of a rotating log file

    Returns:
        The configured `spire` logger
    """
    level = logging.DEBUG if verbose else logging.INFO
    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False

    # Avoid duplicate output when invoked more than once (watch mode, tests)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter("[spire] %(levelname)s %(message)s"))
    logger.addHandler(console_handler)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            str(log_file),
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=3,
        )
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(file_handler)

    return logger


class TimeSpan:
    """Logs the start of an operation and its duration when finished.

    Example usage:
        span = TimeSpan(logger, "build, dev mode, started")
        ...
        span.finish("build finished")
    """

    def __init__(self, logger: logging.Logger, start_message: str):
        self.logger = logger
        self.start_time = time.time()
        self.logger.info(start_message)

    @property
    def elapsed(self) -> float:
        return time.time() - self.start_time

    def finish(self, finish_message: str) -> float:
        """Log the finish message with the elapsed time.

        Returns:
            Elapsed time in seconds
        """
        elapsed = self.elapsed
        self.logger.info(f"{finish_message} in {elapsed * 1000:.0f} ms")
        return elapsed
