"""Display primitives: colors, lines, the publisher interface and text helpers.

The publisher is the only way the input subsystem reaches the hardware. The
transport behind it (MQTT, serial, a test recorder) is not our concern; we
only promise to hand it fixed-width ASCII lines with a color name.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel

from .config import Config


class DisplayColor(str, Enum):
    """Colors understood by the MCDU display firmware."""

    WHITE = "white"
    GREEN = "green"
    RED = "red"
    AMBER = "amber"
    CYAN = "cyan"


class DisplayLine(BaseModel):
    """One row of a full-display frame."""

    text: str
    color: DisplayColor = DisplayColor.WHITE


def pad_text(text: str, columns: int = Config.DISPLAY_COLUMNS) -> str:
    """Pad (or truncate) ``text`` to exactly ``columns`` characters."""

    if len(text) >= columns:
        return text[:columns]
    return text.ljust(columns)


def center_text(text: str, columns: int = Config.DISPLAY_COLUMNS) -> str:
    """Center ``text`` in ``columns`` characters; extra padding goes right."""

    if len(text) >= columns:
        return text[:columns]
    padding = columns - len(text)
    left = padding // 2
    return " " * left + text + " " * (padding - left)


def word_wrap(text: str, width: int = Config.DISPLAY_COLUMNS) -> List[str]:
    """Wrap ``text`` to ``width`` columns.

    Breaks at the last space at or before the column limit; hard-breaks a word
    only when the remaining chunk contains no such space.
    """

    if len(text) <= width:
        return [text]

    lines: List[str] = []
    remaining = text
    while len(remaining) > width:
        break_at = remaining.rfind(" ", 0, width + 1)
        if break_at <= 0:
            break_at = width
        lines.append(remaining[:break_at].strip())
        remaining = remaining[break_at:].strip()

    if remaining:
        lines.append(remaining)
    return lines


class DisplayPublisher(ABC):
    """Interface to the physical display.

    Rows are 1-based (1..14) to match the labels printed next to the line
    select keys on the hardware.
    """

    @abstractmethod
    async def publish_line(self, row: int, text: str, color: DisplayColor) -> None:
        """Replace a single row."""

    @abstractmethod
    async def publish_full_display(self, lines: List[DisplayLine]) -> None:
        """Replace the whole screen with ``lines`` (one entry per row)."""


@dataclass
class PublishedLine:
    row: int
    text: str
    color: DisplayColor


class RecordingDisplayPublisher(DisplayPublisher):
    """In-memory publisher that records everything and keeps a screen model.

    Used by tests and by local demos that have no hardware attached.
    """

    def __init__(self, rows: int = Config.DISPLAY_ROWS, columns: int = Config.DISPLAY_COLUMNS):
        self.rows = rows
        self.columns = columns
        self.lines: List[PublishedLine] = []
        self.frames: List[List[DisplayLine]] = []
        self.screen: Dict[int, DisplayLine] = {
            row: DisplayLine(text=" " * columns) for row in range(1, rows + 1)
        }

    async def publish_line(self, row: int, text: str, color: DisplayColor) -> None:
        self.lines.append(PublishedLine(row=row, text=text, color=DisplayColor(color)))
        self.screen[row] = DisplayLine(text=text, color=color)

    async def publish_full_display(self, lines: List[DisplayLine]) -> None:
        frame = list(lines)
        self.frames.append(frame)
        for index, line in enumerate(frame, start=1):
            self.screen[index] = line

    def last_line(self, row: Optional[int] = None) -> Optional[PublishedLine]:
        """Return the most recent single-line publish (optionally for one row)."""

        for published in reversed(self.lines):
            if row is None or published.row == row:
                return published
        return None

    def lines_for(self, row: int) -> List[PublishedLine]:
        return [published for published in self.lines if published.row == row]

    @property
    def last_frame(self) -> Optional[List[DisplayLine]]:
        return self.frames[-1] if self.frames else None

    def screen_text(self, row: int) -> str:
        return self.screen[row].text
