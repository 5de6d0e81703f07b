"""
Scratchpad: the single-line entry buffer on the bottom display row.

Typed characters collect here until an LSK press writes them to a datapoint.
A rejected entry is replaced by a short error token, but the typed text is
kept aside so that one CLR brings it back and a second CLR clears for real
(two-stage recovery).

Buffer state is one tagged value rather than a set of flags:

    Clean                   nothing typed
    Editing(text)           text typed (or copied in for editing)
    ErrorShown(current, saved)
                            ``current`` is on screen (the error token, plus
                            anything typed after it), ``saved`` is what the
                            first CLR restores

Rendering is debounced: a burst of keystrokes publishes only the final state.
"""

from __future__ import annotations

import asyncio
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Union

from ..config import Config
from ..display import DisplayColor, DisplayPublisher, pad_text
from ..logging_utils import log_debug
from ..messages import ERROR_PREFIX, SAVED, VALIDATION_MESSAGES
from ..pages import PageControl
from ..schemas import FieldConfig, InputType, ValidationResult
from ..timers import OwnedTimer
from .validation import TIME_PATTERN, format_number, matches_step, pattern_matches


# ============================================================================
# Buffer State
# ============================================================================


@dataclass(frozen=True)
class Clean:
    pass


@dataclass(frozen=True)
class Editing:
    text: str


@dataclass(frozen=True)
class ErrorShown:
    current: str
    saved: str


BufferState = Union[Clean, Editing, ErrorShown]


class ScratchpadColor(str, Enum):
    """Validity annotation of the buffer, shown as the scratchpad line color."""

    NEUTRAL = "neutral"
    VALID = "valid"
    INVALID = "invalid"
    EDITING = "editing"

    @property
    def display_color(self) -> DisplayColor:
        return _DISPLAY_COLORS[self]


_DISPLAY_COLORS = {
    ScratchpadColor.NEUTRAL: DisplayColor.WHITE,
    ScratchpadColor.VALID: DisplayColor.GREEN,
    ScratchpadColor.INVALID: DisplayColor.RED,
    ScratchpadColor.EDITING: DisplayColor.AMBER,
}

_DECIMAL = re.compile(r"-?\d+(\.\d+)?")
_AMBIGUOUS_LEADING_ZERO = re.compile(r"-?0\d+")


# ============================================================================
# Buffer
# ============================================================================


class ScratchpadBuffer:
    """Capacity-limited entry buffer with two-stage error recovery.

    Args:
        publisher: Display the scratchpad line and overlays are published to
        page_control: Asked to redraw the page when an overlay expires
        max_length: Buffer capacity
        debounce_ms: Render debounce interval
        error_overlay_ms / success_overlay_ms: Overlay lifetimes
        row: Display row of the scratchpad (bottom row)
        overlay_row: Display row used for transient messages
    """

    def __init__(
        self,
        publisher: DisplayPublisher,
        page_control: Optional[PageControl] = None,
        *,
        max_length: int = Config.SCRATCHPAD_MAX_LENGTH,
        debounce_ms: int = Config.RENDER_DEBOUNCE_MS,
        error_overlay_ms: int = Config.ERROR_OVERLAY_MS,
        success_overlay_ms: int = Config.SUCCESS_OVERLAY_MS,
        row: int = Config.DISPLAY_ROWS,
        overlay_row: int = Config.DISPLAY_ROWS - 1,
        columns: int = Config.DISPLAY_COLUMNS,
    ) -> None:
        self.publisher = publisher
        self.page_control = page_control
        self.max_length = max_length
        self.debounce_ms = debounce_ms
        self.error_overlay_ms = error_overlay_ms
        self.success_overlay_ms = success_overlay_ms
        self.row = row
        self.overlay_row = overlay_row
        self.columns = columns
        self.placeholder = "_" * max_length

        self.state: BufferState = Clean()
        self.color = ScratchpadColor.NEUTRAL
        self.error_message: Optional[str] = None
        self.buffer_full_warned = False

        self._render_timer = OwnedTimer("scratchpad-render")
        self._overlay_timer = OwnedTimer("scratchpad-overlay")
        log_debug("Scratchpad", "ScratchpadBuffer initialized")

    # ------------------------------------------------------------------
    # State views
    # ------------------------------------------------------------------

    @property
    def content(self) -> str:
        state = self.state
        if isinstance(state, Editing):
            return state.text
        if isinstance(state, ErrorShown):
            return state.current
        return ""

    @property
    def error_showing(self) -> bool:
        return isinstance(self.state, ErrorShown)

    @property
    def saved_content(self) -> Optional[str]:
        """Text the next CLR restores; ``None`` unless an error is showing."""

        state = self.state
        return state.saved if isinstance(state, ErrorShown) else None

    @property
    def has_content(self) -> bool:
        return bool(self.content)

    @property
    def is_full(self) -> bool:
        return len(self.content) >= self.max_length

    @property
    def display_text(self) -> str:
        content = self.content
        if not content:
            return self.placeholder
        return f"{content}*"

    # ------------------------------------------------------------------
    # Mutation
    # ------------------------------------------------------------------

    def append(self, char: str) -> bool:
        """Append ``char``; returns ``False`` (no mutation) when the buffer is full."""

        if self.is_full:
            log_debug("Scratchpad", f"Full (max {self.max_length} chars), rejected {char!r}")
            return False

        state = self.state
        if isinstance(state, ErrorShown):
            self.state = ErrorShown(current=state.current + char, saved=state.saved)
        else:
            self.state = Editing(self.content + char)

        # A new keystroke invalidates any earlier verdict
        self.color = ScratchpadColor.NEUTRAL
        self.error_message = None
        log_debug("Scratchpad", f"Append {char!r} -> {self.content!r}")
        return True

    def clear(self) -> None:
        """First CLR after a rejection restores the typed text; otherwise clear for real."""

        state = self.state
        if isinstance(state, ErrorShown):
            self.state = Editing(state.saved) if state.saved else Clean()
            log_debug("Scratchpad", f"Restored {state.saved!r}")
            return

        self.reset()

    def reset(self) -> None:
        """Clear for real, discarding any text kept for recovery."""

        self.state = Clean()
        self.color = ScratchpadColor.NEUTRAL
        self.error_message = None
        self.buffer_full_warned = False
        log_debug("Scratchpad", "Cleared")

    def set(self, value: Any) -> None:
        """Load an existing value for editing (amber)."""

        text = str(value)[: self.max_length]
        self.state = Editing(text) if text else Clean()
        self.color = ScratchpadColor.EDITING
        log_debug("Scratchpad", f"Set {text!r}")

    def show_error(self, message: str) -> None:
        """Put ``message`` in the buffer, keeping the typed text for the next CLR.

        Showing a second error while one is already up keeps the originally
        saved text, so CLR always returns to what the operator typed.
        Safe to call without a running event loop (the redraw is deferred).
        """

        state = self.state
        saved = state.saved if isinstance(state, ErrorShown) else self.content
        self.state = ErrorShown(current=message[: self.max_length], saved=saved)
        self.color = ScratchpadColor.NEUTRAL
        log_debug("Scratchpad", f"Error {message!r} (saved {saved!r})")
        self.render()

    def set_valid(self, is_valid: bool, message: Optional[str] = None) -> None:
        self.color = ScratchpadColor.VALID if is_valid else ScratchpadColor.INVALID
        self.error_message = message
        log_debug("Scratchpad", f"Validation: {'VALID' if is_valid else 'INVALID'} {message or ''}")

    def claim_full_warning(self) -> bool:
        """Return ``True`` once per overflow streak; the latch resets on a real clear."""

        if self.buffer_full_warned:
            return False
        self.buffer_full_warned = True
        return True

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def render(self, override_color: Optional[DisplayColor] = None) -> None:
        """Schedule a debounced publish of the scratchpad line.

        Each call replaces the pending one; what is published is the buffer
        state at the moment the timer fires. Nothing is published while a
        confirmation dialog owns the display; the page redraw after the
        dialog closes shows the buffer again.

        Outside a running event loop only the state changes; the next render
        from inside the loop publishes it.
        """

        async def publish() -> None:
            if self.modal_active:
                log_debug("Scratchpad", "Render skipped: dialog active")
                return
            color = override_color or self.color.display_color
            text = self.display_text
            log_debug("Scratchpad", f"Render row {self.row}: {text!r} ({color.value})")
            await self.publisher.publish_line(self.row, pad_text(text, self.columns), color)

        try:
            asyncio.get_running_loop()
        except RuntimeError:
            log_debug("Scratchpad", "Render deferred: no running event loop")
            return
        self._render_timer.schedule(self.debounce_ms / 1000, publish)

    @property
    def modal_active(self) -> bool:
        return self.page_control is not None and self.page_control.modal_active

    async def flush(self) -> None:
        """Wait for a pending render to publish."""

        await self._render_timer.wait()

    async def render_notice(self, message: str, color: DisplayColor, duration_ms: int) -> None:
        """Show ``message`` on the overlay row, then ask for a page redraw.

        Suppressed while a confirmation dialog owns the display.
        """

        if self.modal_active:
            log_debug("Scratchpad", f"Notice {message!r} suppressed: dialog active")
            return
        await self.publisher.publish_line(self.overlay_row, pad_text(message, self.columns), color)
        self._overlay_timer.schedule(duration_ms / 1000, self._restore_page)

    async def render_error(self, message: str) -> None:
        await self.render_notice(f"{ERROR_PREFIX}{message}", DisplayColor.RED, self.error_overlay_ms)

    async def render_success(self, message: str = SAVED) -> None:
        await self.render_notice(message, DisplayColor.GREEN, self.success_overlay_ms)

    async def _restore_page(self) -> None:
        if self.page_control is not None:
            await self.page_control.render_current_page()

    def cancel_timers(self) -> None:
        self._render_timer.cancel()
        self._overlay_timer.cancel()

    async def wait_for_overlay(self) -> None:
        await self._overlay_timer.wait()

    # ------------------------------------------------------------------
    # Stand-alone validation
    # ------------------------------------------------------------------

    def validate(self, field_config: Union[FieldConfig, Mapping[str, Any], None]) -> ValidationResult:
        """Check the current content against a field's rules without touching state."""

        if field_config is None:
            return ValidationResult.ok()
        if not isinstance(field_config, FieldConfig):
            field_config = FieldConfig.model_validate(field_config)

        value = self.content
        rules = field_config.validation
        input_type = field_config.effective_input_type

        if rules.required and not value:
            return ValidationResult.fail(VALIDATION_MESSAGES["required"])
        if not value:
            return ValidationResult.ok()

        if input_type is InputType.NUMERIC:
            result = validate_numeric_format(value)
            if not result.valid or value == "-":
                return result
            number = float(value)
            if rules.min is not None and number < rules.min:
                return ValidationResult.fail(f"{VALIDATION_MESSAGES['belowMin']} {format_number(rules.min)}")
            if rules.max is not None and number > rules.max:
                return ValidationResult.fail(f"{VALIDATION_MESSAGES['aboveMax']} {format_number(rules.max)}")
            if rules.step is not None and not matches_step(number, rules.step, rules.min):
                return ValidationResult.fail(f"{VALIDATION_MESSAGES['invalidStep']} {format_number(rules.step)}")

        elif input_type is InputType.TIME:
            if not TIME_PATTERN.match(value):
                return ValidationResult.fail(VALIDATION_MESSAGES["invalidTime"])

        elif input_type is InputType.TEXT:
            if rules.max_length and len(value) > rules.max_length:
                return ValidationResult.fail(f"MAX {rules.max_length} CHARS")
            if rules.pattern and not pattern_matches(rules.pattern, value):
                return ValidationResult.fail(VALIDATION_MESSAGES["invalidFormat"])

        elif input_type is InputType.SELECT:
            if rules.options is not None and value not in rules.options:
                return ValidationResult.fail(VALIDATION_MESSAGES["invalidOption"])

        return ValidationResult.ok()


def validate_numeric_format(value: str) -> ValidationResult:
    """Strict decimal check for typed numbers.

    Rejected: ``22.5.5``, ``1e5``, ``0123``, ``.``, ``22.``, ``.5``.
    Accepted: ``22``, ``22.5``, ``-10.5``, ``0``, ``-0`` and a lone ``-``
    (the operator is still typing a negative number).
    """

    invalid = ValidationResult.fail(VALIDATION_MESSAGES["invalidFormat"])
    if value.count(".") > 1:
        return invalid
    if "e" in value or "E" in value:
        return invalid
    if _AMBIGUOUS_LEADING_ZERO.match(value):
        return invalid
    if not _DECIMAL.fullmatch(value):
        if value == "-":
            return ValidationResult.ok()
        return invalid
    return ValidationResult.ok()
