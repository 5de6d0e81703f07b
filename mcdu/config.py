"""
MCDU Configuration

Loads configuration from environment variables with sensible defaults.
"""

import os
from dotenv import load_dotenv

# Load .env file if it exists
load_dotenv()


class Config:
    """Terminal configuration loaded from environment variables."""

    # Display geometry (14 lines x 24 columns on the real hardware)
    DISPLAY_COLUMNS: int = int(os.getenv("MCDU_DISPLAY_COLUMNS", "24"))
    DISPLAY_ROWS: int = int(os.getenv("MCDU_DISPLAY_ROWS", "14"))

    # Scratchpad
    SCRATCHPAD_MAX_LENGTH: int = int(os.getenv("MCDU_SCRATCHPAD_MAX_LENGTH", "20"))
    RENDER_DEBOUNCE_MS: int = int(os.getenv("MCDU_RENDER_DEBOUNCE_MS", "80"))

    # Timers (milliseconds unless noted)
    DOUBLE_CLR_WINDOW_MS: int = int(os.getenv("MCDU_DOUBLE_CLR_WINDOW_MS", "1000"))
    ERROR_OVERLAY_MS: int = int(os.getenv("MCDU_ERROR_OVERLAY_MS", "3000"))
    SUCCESS_OVERLAY_MS: int = int(os.getenv("MCDU_SUCCESS_OVERLAY_MS", "2000"))
    FLASH_MS: int = int(os.getenv("MCDU_FLASH_MS", "1000"))
    COUNTDOWN_TICK_SECONDS: float = float(os.getenv("MCDU_COUNTDOWN_TICK_SECONDS", "1.0"))

    # Remote value store
    REMOTE_READ_ATTEMPTS: int = int(os.getenv("MCDU_REMOTE_READ_ATTEMPTS", "3"))

    @classmethod
    def validate(cls) -> None:
        """Validate configuration and raise errors for impossible settings."""
        if cls.DISPLAY_ROWS < 14:
            raise ValueError(
                "MCDU_DISPLAY_ROWS must be at least 14 (dialog layout and scratchpad "
                "line assume the full 14-line display)"
            )

        if cls.SCRATCHPAD_MAX_LENGTH >= cls.DISPLAY_COLUMNS:
            raise ValueError(
                "MCDU_SCRATCHPAD_MAX_LENGTH must leave room for the entry marker. "
                f"Got {cls.SCRATCHPAD_MAX_LENGTH} for a {cls.DISPLAY_COLUMNS}-column display."
            )

        timings = {
            "MCDU_RENDER_DEBOUNCE_MS": cls.RENDER_DEBOUNCE_MS,
            "MCDU_DOUBLE_CLR_WINDOW_MS": cls.DOUBLE_CLR_WINDOW_MS,
            "MCDU_ERROR_OVERLAY_MS": cls.ERROR_OVERLAY_MS,
            "MCDU_SUCCESS_OVERLAY_MS": cls.SUCCESS_OVERLAY_MS,
            "MCDU_FLASH_MS": cls.FLASH_MS,
        }
        for name, value in timings.items():
            if value < 0:
                raise ValueError(f"{name} must not be negative (got {value})")

        if cls.COUNTDOWN_TICK_SECONDS <= 0:
            raise ValueError("MCDU_COUNTDOWN_TICK_SECONDS must be positive")

        if cls.REMOTE_READ_ATTEMPTS < 1:
            raise ValueError("MCDU_REMOTE_READ_ATTEMPTS must be >= 1")

    @classmethod
    def display(cls) -> str:
        """Return a formatted string showing current configuration."""
        lines = [
            "MCDU Configuration:",
            f"  Display: {cls.DISPLAY_ROWS}x{cls.DISPLAY_COLUMNS}",
            f"  Scratchpad: {cls.SCRATCHPAD_MAX_LENGTH} chars, debounce {cls.RENDER_DEBOUNCE_MS}ms",
            f"  Double-CLR window: {cls.DOUBLE_CLR_WINDOW_MS}ms",
            f"  Overlays: error {cls.ERROR_OVERLAY_MS}ms, success {cls.SUCCESS_OVERLAY_MS}ms",
            f"  Countdown tick: {cls.COUNTDOWN_TICK_SECONDS}s",
            f"  Remote read attempts: {cls.REMOTE_READ_ATTEMPTS}",
        ]
        return "\n".join(lines)
