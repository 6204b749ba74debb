"""
Logging configuration for dbexec.

DbExecLogger provides human-readable, color-coded console output plus a plain
log file. Bound SQL and transaction markers get their own color so they stand
out from pool lifecycle messages.
"""
import logging
import os
import sys
from pathlib import Path
from typing import Optional

import colorama

# Initialize colorama for cross-platform color support
colorama.init()


class ColorFormatter(logging.Formatter):
    """Custom formatter with colors"""

    COLORS = {
        "INFO": colorama.Fore.BLUE,
        "WARNING": colorama.Fore.YELLOW,
        "ERROR": colorama.Fore.RED,
        "DEBUG": colorama.Fore.BLUE,
        "START": colorama.Fore.CYAN,
        "OK": colorama.Fore.GREEN,
        "SQL": colorama.Fore.MAGENTA,
    }

    def format(self, record):
        # Pool loggers are named dbexec.pool.<alias>; show the alias
        if record.name.startswith("dbexec.pool."):
            alias = record.name.replace("dbexec.pool.", "")
            white = colorama.Fore.WHITE
            reset = colorama.Style.RESET_ALL
            record.alias_name = f"{white}[{alias}]{reset} "
        else:
            record.alias_name = ""

        if hasattr(record, "color_prefix"):
            color = self.COLORS.get(record.color_prefix, "")
            record.msg = f"{color}{record.msg}{colorama.Style.RESET_ALL}"

        return super().format(record)


class PlainFormatter(logging.Formatter):
    """File formatter: same layout, no escape codes."""

    def format(self, record):
        if not hasattr(record, "alias_name"):
            record.alias_name = ""
        return super().format(record)


class DbExecLogger:
    """Central logging class for dbexec"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

        # Only set up handlers if they haven't been set up already
        if not self.logger.handlers:
            self.logger.setLevel(logging.INFO)

            log_dir = Path(os.getenv("DBEXEC_LOG_DIR", Path.cwd() / "logs"))
            log_dir.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(
                log_dir / "dbexec.log", encoding="utf-8"
            )
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(
                PlainFormatter(
                    "%(asctime)s  %(alias_name)s%(message)s", datefmt="%H:%M:%S"
                )
            )

            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(logging.DEBUG)
            console_handler.setFormatter(
                ColorFormatter(
                    "%(asctime)s  %(alias_name)s%(message)s", datefmt="%H:%M:%S"
                )
            )

            self.logger.addHandler(file_handler)
            self.logger.addHandler(console_handler)

            # Prevent logs from being passed to root logger
            self.logger.propagate = False

    def info(self, msg: str, color_prefix: Optional[str] = None) -> None:
        """Log info message with optional color prefix"""
        extra = {"color_prefix": color_prefix} if color_prefix else None
        self.logger.info(msg, extra=extra)

    def start(self, msg: str) -> None:
        """Log start message in cyan"""
        self.info(f"START {msg}", color_prefix="START")

    def success(self, msg: str) -> None:
        """Log success message in green"""
        self.info(f"OK {msg}", color_prefix="OK")

    def sql(self, msg: str) -> None:
        """Log a bound statement or transaction marker in magenta"""
        self.info(f"SQL {msg}", color_prefix="SQL")

    def error(self, msg: str) -> None:
        """Log error message in red"""
        self.logger.error(msg)

    def warning(self, msg: str) -> None:
        """Log warning message in yellow"""
        self.logger.warning(msg)

    def debug(self, msg: str) -> None:
        self.logger.debug(msg)


def get_logger(name: str) -> DbExecLogger:
    """Get a configured logger instance."""
    return DbExecLogger(name)
