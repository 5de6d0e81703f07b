"""
Default page renderer.

Turns a ``PageConfig`` into the 13 page rows above the scratchpad. The page
name is centered on row 1 unless row 1 is configured; each configured row
shows its left side left-aligned and its right side right-aligned.

Datapoint values are read from the value store on every render:
- missing value -> ``---`` (amber)
- bad quality   -> ``OFFLINE`` (amber)
- read failure  -> ``ERR`` (red)

Terminals with their own layout rules pass a different ``PageRenderer``.
"""

from __future__ import annotations

from typing import Any, Awaitable, Callable, List, Optional, Tuple

from .config import Config
from .display import DisplayColor, DisplayLine, center_text, pad_text
from .logging_utils import log_debug, log_error, log_warning
from .messages import NO_VALUE, OFFLINE, READ_ERROR
from .pages import DisplayField, FieldType, PageConfig, SideConfig
from .remote import MetadataCache, RemoteAccessError, RemoteValueStore, read_with_retries


PageRenderer = Callable[[PageConfig], Awaitable[List[DisplayLine]]]
"""Async callable returning the page rows (scratchpad row excluded)."""


def compose_row(left: str, right: str, columns: int = Config.DISPLAY_COLUMNS) -> str:
    """Left text flush left, right text flush right; left wins on overlap."""

    if not right:
        return pad_text(left, columns)
    gap = columns - len(left) - len(right)
    if gap < 1:
        return pad_text(f"{left} {right}", columns)
    return left + " " * gap + right


def truncate(text: str, width: int) -> str:
    if len(text) <= width:
        return text
    return text[: max(0, width - 3)] + "..."


def format_value(value: Any, display: DisplayField, states: Optional[dict] = None) -> str:
    if value is None:
        return NO_VALUE
    if states and str(value) in states:
        return states[str(value)]
    if isinstance(value, bool):
        return "ON" if value else "OFF"
    if display.format:
        try:
            return display.format % value
        except (TypeError, ValueError) as exc:
            log_warning("Renderer", f"Format {display.format!r} failed for {display.source}: {exc}")
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


class DefaultPageRenderer:
    """Renders labels and live datapoint values, one row per configured line."""

    def __init__(
        self,
        store: RemoteValueStore,
        metadata: Optional[MetadataCache] = None,
        *,
        columns: int = Config.DISPLAY_COLUMNS,
        page_rows: int = Config.DISPLAY_ROWS - 1,
        read_attempts: int = Config.REMOTE_READ_ATTEMPTS,
    ) -> None:
        self.store = store
        self.metadata: MetadataCache = metadata if metadata is not None else {}
        self.columns = columns
        self.page_rows = page_rows
        self.read_attempts = read_attempts

    async def __call__(self, page: PageConfig) -> List[DisplayLine]:
        lines = [DisplayLine(text=pad_text("", self.columns)) for _ in range(self.page_rows)]
        lines[0] = DisplayLine(text=center_text(page.display_name.upper(), self.columns))

        for line in page.lines:
            if not 1 <= line.row <= self.page_rows:
                log_debug("Renderer", f"Row {line.row} on {page.id} is outside the page area")
                continue
            left_text, left_color = await self.render_side(line.left)
            right_text, right_color = await self.render_side(line.right)
            color = left_color if left_color is not DisplayColor.WHITE else right_color
            lines[line.row - 1] = DisplayLine(
                text=compose_row(left_text, right_text, self.columns),
                color=color,
            )
        return lines

    async def render_side(self, side: SideConfig) -> Tuple[str, DisplayColor]:
        display = side.display
        color = _color_of(display.color)
        if display.is_datapoint:
            return await self.render_datapoint(display, side.label)
        if display.type == FieldType.LABEL:
            return truncate(display.text or side.label, self.columns), color
        return truncate(display.label or side.label, self.columns), color

    async def render_datapoint(self, display: DisplayField, label: str = "") -> Tuple[str, DisplayColor]:
        source = display.source or ""
        prefix = f"{display.label or label} " if (display.label or label) else ""
        meta = self.metadata.get(source)

        try:
            remote = await read_with_retries(self.store, source, attempts=self.read_attempts)
        except RemoteAccessError as exc:
            log_error("Renderer", f"Error rendering datapoint {source}: {exc}")
            return truncate(f"{prefix}{READ_ERROR}", self.columns), DisplayColor.RED

        if remote is None:
            log_warning("Renderer", f"Data source not found: {source}")
            return truncate(f"{prefix}{NO_VALUE}", self.columns), DisplayColor.AMBER
        if not remote.is_good:
            log_debug("Renderer", f"Data source {source} has quality issue: {remote.quality:#x}")
            return truncate(f"{prefix}{OFFLINE}", self.columns), DisplayColor.AMBER

        text = format_value(remote.val, display, meta.states if meta else None)
        unit = display.unit or (meta.unit if meta else None) or ""
        if remote.val is not None:
            text = f"{text}{unit}"
        return truncate(f"{prefix}{text}", self.columns), _color_of(display.color)


def _color_of(raw: Optional[str]) -> DisplayColor:
    try:
        return DisplayColor(raw) if raw else DisplayColor.WHITE
    except ValueError:
        return DisplayColor.WHITE
