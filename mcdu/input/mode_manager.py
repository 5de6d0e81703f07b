"""
Input mode state machine and LSK dispatch.

Two modes only:

    NORMAL --first accepted key--> INPUT
    INPUT  --CLR empties buffer / successful write / double CLR / set_mode--> NORMAL

Everything else (including a rejected or failed write) stays in INPUT, with
the scratchpad holding a recoverable error token.

LSK presses are resolved against the active page's line configuration. A
configured button wins when it is actionable; otherwise a datapoint display
field is handled from its cached metadata:

    no metadata / read-only / unsupported type  -> ignored
    boolean                                     -> toggle the remote value
    number / string with scratchpad content     -> validate and write

Every public handler is total: remote and configuration failures are logged
and shown as a short token, never raised to the event source.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Dict, Optional

from ..config import Config
from ..display import DisplayColor
from ..logging_utils import log_debug, log_error, log_info, log_success, log_warning
from ..messages import (
    ENTRY_OUT_OF_RANGE,
    FORMAT_ERROR,
    GENERIC_ERROR,
    RETURNING_HOME,
    SCRATCHPAD_FULL,
    WRITE_ERROR,
)
from ..pages import ButtonField, ConfigurationError, DisplayField, PageConfigProvider, PageControl
from ..remote import MetadataCache, RemoteAccessError, RemoteValueStore, read_with_retries
from ..schemas import DatapointMetadata, DatapointType
from ..timers import Clock, monotonic_clock
from .scratchpad import ScratchpadBuffer
from .validation import ValidationEngine


class InputMode(str, Enum):
    NORMAL = "normal"
    INPUT = "input"


class InputModeManager:
    """Owns the NORMAL/INPUT mode and routes key, CLR and LSK events."""

    def __init__(
        self,
        scratchpad: ScratchpadBuffer,
        page_control: PageControl,
        pages: PageConfigProvider,
        store: RemoteValueStore,
        metadata: Optional[MetadataCache] = None,
        *,
        validation_engine: Optional[ValidationEngine] = None,
        clock: Clock = monotonic_clock,
        double_clr_window_ms: int = Config.DOUBLE_CLR_WINDOW_MS,
        exit_notice_ms: int = 500,
        read_attempts: int = Config.REMOTE_READ_ATTEMPTS,
    ) -> None:
        self.scratchpad = scratchpad
        self.page_control = page_control
        self.pages = pages
        self.store = store
        self.metadata: MetadataCache = metadata if metadata is not None else {}
        self.validation_engine = validation_engine
        self.clock = clock
        self.double_clr_window_ms = double_clr_window_ms
        self.exit_notice_ms = exit_notice_ms
        self.read_attempts = read_attempts

        self.mode = InputMode.NORMAL
        self.mode_change_time = clock()
        self.last_clr_press: Optional[float] = None
        log_debug("Input", "InputModeManager initialized")

    # ------------------------------------------------------------------
    # Keypad
    # ------------------------------------------------------------------

    async def handle_key_input(self, char: str) -> None:
        """Append a keypad character, entering INPUT mode on the first one."""

        log_debug("Input", f"Key {char!r} (mode: {self.mode.value})")
        if self.scratchpad.append(char):
            if self.mode is InputMode.NORMAL:
                self.mode = InputMode.INPUT
                log_info("Input", "Mode: NORMAL -> INPUT")
            self.mode_change_time = self.clock()
        elif self.scratchpad.claim_full_warning():
            # One warning per overflow streak, not one per bounced key
            await self.scratchpad.render_error(SCRATCHPAD_FULL)

        self.scratchpad.render()

    # ------------------------------------------------------------------
    # CLR
    # ------------------------------------------------------------------

    async def handle_clr(self) -> None:
        """Context-aware CLR.

        Priority (first match wins):
            0. Second CLR inside the double-press window -> emergency exit home
            1. Buffer has content or shows an error -> two-stage clear
            2. Active page has a parent -> navigate up
            3. Nothing to do
        """

        now = self.clock()
        log_debug("Input", f"CLR (mode: {self.mode.value}, scratchpad: {self.scratchpad.content!r})")

        if self.last_clr_press is not None and (now - self.last_clr_press) * 1000 < self.double_clr_window_ms:
            log_warning("Input", "Double CLR - emergency exit to home page")
            await self.emergency_exit()
            self.last_clr_press = None
            return

        if self.scratchpad.has_content or self.scratchpad.error_showing:
            self.last_clr_press = now
            self.scratchpad.clear()
            self.scratchpad.render()
            if not self.scratchpad.has_content:
                self._set_normal()
            log_info("Input", "Scratchpad cleared")
            return

        page_id = self.page_control.current_page_id
        parent = self.pages.parent_of(page_id) if page_id else None
        if parent is not None:
            self.last_clr_press = now
            log_info("Input", f"Navigate to parent: {parent.id}")
            await self.page_control.switch_to_page(parent.id)
            return

        log_debug("Input", "CLR: nothing to clear and no parent page")

    async def emergency_exit(self) -> None:
        """Drop everything and return to the root page."""

        self.scratchpad.reset()
        self._set_normal()
        self.scratchpad.render()

        root = self.pages.root_page
        if root is None:
            log_warning("Input", "Emergency exit: no pages configured")
        else:
            await self.page_control.switch_to_page(root.id)
            log_info("Input", "Emergency exit to home page")
        await self.scratchpad.render_notice(RETURNING_HOME, DisplayColor.AMBER, self.exit_notice_ms)

    # ------------------------------------------------------------------
    # LSK
    # ------------------------------------------------------------------

    async def handle_lsk(self, side: str, line_number: int) -> None:
        """Resolve and run the field next to the pressed line select key."""

        log_debug("Input", f"LSK {side} line {line_number} (mode: {self.mode.value})")
        try:
            page_id = self.page_control.current_page_id
            if not page_id:
                log_warning("Input", "LSK ignored: no current page")
                return

            page = self.pages.require_page(page_id)
            line = page.line_for(line_number)
            if line is None:
                log_debug("Input", f"No line config for row {line_number}")
                return

            side_config = line.side(side)
            if self.is_actionable(side_config.button):
                await self.page_control.execute_button_action(side_config.button)
                return

            if side_config.display.is_datapoint:
                await self.handle_datapoint_lsk(side_config.display)
                return

            log_debug("Input", f"No actionable field for {side} on line {line_number}")
        except ConfigurationError as exc:
            log_error("Input", f"LSK abandoned: {exc}")
        except RemoteAccessError as exc:
            log_error("Input", f"LSK failed: {exc}")
            await self.scratchpad.render_error(GENERIC_ERROR)

    @staticmethod
    def is_actionable(button: Optional[ButtonField]) -> bool:
        return button is not None and button.is_actionable

    async def handle_datapoint_lsk(self, display: DisplayField) -> None:
        """Decide toggle vs. write from the datapoint's cached metadata."""

        source = display.source or ""
        meta = self.metadata.get(source)
        if meta is None:
            log_debug("Input", f"No metadata for {source}, ignoring LSK")
            return
        if not meta.writable:
            log_debug("Input", f"{source} is read-only, ignoring LSK")
            return

        kind = meta.type
        if kind is DatapointType.BOOLEAN:
            await self.toggle_boolean(source)
        elif kind is DatapointType.NUMBER or kind is DatapointType.STRING:
            if not self.scratchpad.has_content:
                log_debug("Input", "Scratchpad empty, nothing to write")
                return
            if self.scratchpad.error_showing:
                log_debug("Input", "Error showing, CLR before writing")
                return
            await self.write_from_scratchpad(source, meta, display)
        elif kind is DatapointType.UNSUPPORTED:
            log_debug("Input", f"Unsupported datapoint type for {source}, ignoring LSK")

    async def toggle_boolean(self, source: str) -> None:
        """Invert a boolean datapoint. The scratchpad is left untouched."""

        try:
            current = await read_with_retries(self.store, source, attempts=self.read_attempts)
            new_value = not (current.val if current is not None else False)
            await self.store.set_value(source, new_value)
        except RemoteAccessError as exc:
            log_error("Input", f"Failed to toggle {source}: {exc}")
            await self.scratchpad.render_error(WRITE_ERROR)
            return

        log_success("Input", f"Toggled {source}: {new_value}")
        await self.page_control.render_current_page()

    async def write_from_scratchpad(
        self,
        source: str,
        meta: DatapointMetadata,
        display: Optional[DisplayField] = None,
    ) -> None:
        """Check the typed text against the datapoint and write it.

        Rejections and write failures become a recoverable scratchpad error;
        one CLR brings back exactly the text that was typed.
        """

        content = self.scratchpad.content
        value: Any = content

        if meta.type is DatapointType.NUMBER:
            number = _parse_number(content)
            if number is None:
                self.scratchpad.show_error(FORMAT_ERROR)
                return
            if meta.min is not None and number < meta.min:
                self.scratchpad.show_error(ENTRY_OUT_OF_RANGE)
                return
            if meta.max is not None and number > meta.max:
                self.scratchpad.show_error(ENTRY_OUT_OF_RANGE)
                return
            value = number

        if display is not None and display.declares_rules and self.validation_engine is not None:
            result = await self.validation_engine.validate(content, display, self.store)
            if not result.valid:
                self.scratchpad.show_error(result.error or GENERIC_ERROR)
                return

        try:
            await self.store.set_value(source, value)
        except RemoteAccessError as exc:
            log_error("Input", f"Failed to write {source}: {exc}")
            self.scratchpad.show_error(WRITE_ERROR)
            return

        log_success("Input", f"Written {source}: {value!r}")
        self.scratchpad.reset()
        self._set_normal()
        self.scratchpad.render()
        await self.page_control.render_current_page()
        await self.scratchpad.render_success()

    # ------------------------------------------------------------------
    # External control
    # ------------------------------------------------------------------

    def set_mode(self, mode: InputMode | str) -> None:
        self.mode = InputMode(mode)
        self.mode_change_time = self.clock()
        log_debug("Input", f"Mode set to {self.mode.value}")

    def get_state(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "scratchpad_content": self.scratchpad.content,
            "scratchpad_color": self.scratchpad.color.value,
            "error_showing": self.scratchpad.error_showing,
        }

    async def check_timeout(self) -> None:
        """Entry never times out; the scratchpad persists until CLR."""

    def _set_normal(self) -> None:
        if self.mode is not InputMode.NORMAL:
            log_info("Input", "Mode: INPUT -> NORMAL")
        self.mode = InputMode.NORMAL
        self.mode_change_time = self.clock()


def _parse_number(text: str) -> Optional[float]:
    # float() accepts digit separators ("1_0") and padding, the keypad types both
    if "_" in text or text != text.strip():
        return None
    try:
        number = float(text)
    except ValueError:
        return None
    # "NAN" and "INF" can be typed on the keypad
    if not math.isfinite(number):
        return None
    return number
