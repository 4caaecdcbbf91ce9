from __future__ import annotations

import logging
import sys


class _ColorFormatter(logging.Formatter):
    COLORS = {
        logging.DEBUG: "\033[90m",  # gray
        logging.INFO: "\033[94m",  # blue
        logging.WARNING: "\033[93m",  # yellow
        logging.ERROR: "\033[91m",  # red
        logging.CRITICAL: "\033[95m",  # magenta
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelno, self.RESET)
        record = logging.makeLogRecord(record.__dict__)
        record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)


def setup_logging(*, level: str = "INFO", color: bool | None = None) -> None:
    """Configure the ``quiz`` logger hierarchy with a single console handler.

    Safe to call more than once: a previously installed handler is replaced.
    """
    logger = logging.getLogger("quiz")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in list(logger.handlers):
        logger.removeHandler(h)

    if color is None:
        color = sys.stdout.isatty()

    fmt = "%(asctime)s %(levelname)-8s %(name)s %(message)s"
    ch = logging.StreamHandler(sys.stdout)
    ch.setFormatter(
        _ColorFormatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")
        if color
        else logging.Formatter(fmt=fmt, datefmt="%Y-%m-%d %H:%M:%S")
    )
    logger.addHandler(ch)

    # httpx logs every request URL at INFO, and the Gemini URL carries the key
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)

    logger.debug("Logging initialized. level=%s", level)
