"""
Logging configuration for tally.
"""
import logging
import sys
from pathlib import Path
from typing import Optional

import colorama

from .settings import settings

# Initialize colorama for cross-platform color support
colorama.init()


class ColorFormatter(logging.Formatter):
    """Custom formatter with colors"""

    # Color codes
    COLORS = {
        "INFO": colorama.Fore.GREEN,
        "WARNING": colorama.Fore.YELLOW,
        "ERROR": colorama.Fore.RED,
        "DEBUG": colorama.Fore.BLUE,
        "START": colorama.Fore.CYAN,
        "OK": colorama.Fore.GREEN,
    }

    def format(self, record):
        # Add color to levelname if it exists in our color mapping
        if record.levelname in self.COLORS:
            color = self.COLORS[record.levelname]
            record.levelname = f"{color}{record.levelname}{colorama.Style.RESET_ALL}"

        # Add color to message for START and OK prefixes
        if hasattr(record, "color_prefix"):
            color = self.COLORS.get(record.color_prefix, "")
            record.msg = f"{color}{record.msg}{colorama.Style.RESET_ALL}"

        return super().format(record)


class TallyLogger:
    """Central logging class for tally"""

    def __init__(self, name: str):
        self.logger = logging.getLogger(name)

        # Only set up handlers if they haven't been set up already
        if not self.logger.handlers:
            self.logger.setLevel(logging.DEBUG)

            # Console handler
            console_handler = logging.StreamHandler(sys.stdout)
            console_handler.setLevel(
                getattr(logging, settings.logging.level.upper(), logging.INFO)
            )
            color_formatter = ColorFormatter(
                "%(asctime)s  %(message)s", datefmt="%H:%M:%S"
            )
            console_handler.setFormatter(color_formatter)
            self.logger.addHandler(console_handler)

            # File handler, only when a log directory is configured
            if settings.logging.log_dir:
                log_dir = Path(settings.logging.log_dir)
                log_dir.mkdir(parents=True, exist_ok=True)
                file_handler = logging.FileHandler(
                    log_dir / "tally.log", encoding="utf-8"
                )
                file_handler.setLevel(logging.DEBUG)
                file_handler.setFormatter(
                    logging.Formatter("%(asctime)s  %(message)s", datefmt="%H:%M:%S")
                )
                self.logger.addHandler(file_handler)

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

    def error(self, msg: str) -> None:
        """Log error message in red"""
        self.logger.error(msg)

    def warning(self, msg: str) -> None:
        """Log warning message in yellow"""
        self.logger.warning(msg)

    def debug(self, msg: str) -> None:
        """Log debug message in blue"""
        self.logger.debug(msg)


def get_logger(name: str) -> TallyLogger:
    """Get a configured logger instance."""
    return TallyLogger(name)
