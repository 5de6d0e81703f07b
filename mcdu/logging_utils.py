"""Logging utilities for the MCDU terminal.

Provides color-coded output to distinguish normal operation, user-facing
rejections and faults.
"""

import os
from enum import Enum


class Color(Enum):
    """ANSI color codes for terminal output."""

    BLUE = "\033[94m"      # Debug / internal detail
    YELLOW = "\033[93m"    # Warnings (misconfiguration, ignored input)
    RED = "\033[91m"       # Errors (remote failures, validator faults)
    GREEN = "\033[92m"     # Success (writes, confirmations)
    CYAN = "\033[96m"      # Info/metadata

    # Formatting
    BOLD = "\033[1m"
    RESET = "\033[0m"


# Markers for message types (color-blind accessible)
LOG_TAG_DEBUG = "[.]"
LOG_TAG_INFO = "[i]"
LOG_TAG_SUCCESS = "[OK]"
LOG_TAG_WARNING = "[!]"
LOG_TAG_ERROR = "[ERR]"


def colored(text: str, color: Color, bold: bool = False) -> str:
    """Wrap text in ANSI color codes if colors are enabled.

    Args:
        text: Text to colorize
        color: Color to apply
        bold: Whether to make text bold

    Returns:
        Colorized text if MCDU_NO_COLOR is not set, otherwise plain text
    """
    if os.getenv("MCDU_NO_COLOR"):
        return text

    prefix = color.value
    if bold:
        prefix = Color.BOLD.value + prefix

    return f"{prefix}{text}{Color.RESET.value}"


def _format(tag: str, component: str, message: str) -> str:
    return f"  {tag} [{component}] {message}"


def log_debug(component: str, message: str) -> None:
    """Log internal detail (blue). Printed only when MCDU_DEBUG is set."""
    if os.getenv("MCDU_DEBUG"):
        print(colored(_format(LOG_TAG_DEBUG, component, message), Color.BLUE))


def log_info(component: str, message: str) -> None:
    """Log metadata/info (cyan)."""
    print(colored(_format(LOG_TAG_INFO, component, message), Color.CYAN))


def log_success(component: str, message: str) -> None:
    """Log a success (green)."""
    print(colored(_format(LOG_TAG_SUCCESS, component, message), Color.GREEN))


def log_warning(component: str, message: str) -> None:
    """Log a warning (yellow)."""
    print(colored(_format(LOG_TAG_WARNING, component, message), Color.YELLOW))


def log_error(component: str, message: str) -> None:
    """Log an error (red)."""
    print(colored(_format(LOG_TAG_ERROR, component, message), Color.RED))
