"""Terminal logging setup for the CLI entry point."""

from __future__ import annotations

import logging
import sys


class ColorFormatter(logging.Formatter):
    """ANSI-colored log formatter for terminal output."""

    _COLORS = {
        logging.DEBUG:    "\033[36m",     # cyan
        logging.INFO:     "\033[32m",     # green
        logging.WARNING:  "\033[33m",     # yellow
        logging.ERROR:    "\033[31m",     # red
        logging.CRITICAL: "\033[1;31m",   # bold red
    }
    _RESET = "\033[0m"
    _DIM = "\033[2m"

    def format(self, record: logging.LogRecord) -> str:
        color = self._COLORS.get(record.levelno, "")
        ts = self.formatTime(record, "%H:%M:%S")
        name = record.name.split(".")[-1][:14]
        msg = record.getMessage()
        return (
            f"{self._DIM}{ts}{self._RESET} "
            f"{color}{record.levelname:<8s}{self._RESET} "
            f"{self._DIM}[{name:>14s}]{self._RESET} "
            f"{color}{msg}{self._RESET}"
        )


def configure_logging(level: str = "INFO") -> None:
    """Install the colored stderr handler on the root logger."""
    log_level = getattr(logging, level.upper(), logging.INFO)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(ColorFormatter())
    logging.basicConfig(level=log_level, handlers=[handler], force=True)
    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
