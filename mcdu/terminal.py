"""
MCDU terminal: wires the input subsystem to pages, the value store and the display.

Fully decoupled from transports. The event source (MQTT bridge, serial
reader, test) calls ``handle_button`` / ``handle_keypad``; everything the
terminal needs is injected.

Event routing:
1. A confirmation dialog is up -> only OVFY, LSK6L, LSK6R reach it
2. LSKnL / LSKnR -> LSK on row 2n-1
3. CLR -> context-aware clear
4. PREV_PAGE / NEXT_PAGE -> circular sibling navigation
5. Other function keys -> configured action (MENU defaults to home)

The terminal is also the ``PageControl`` the input components call back into
after writes, clears, overlay expiry and dialog teardown.
"""

from __future__ import annotations

import string
from typing import Dict, Iterable, List, Optional

from .config import Config
from .display import DisplayLine, DisplayPublisher, pad_text
from .input import ConfirmationDialog, InputMode, InputModeManager, ScratchpadBuffer, ValidationEngine
from .input.confirmation import RESPONSE_KEYS
from .logging_utils import log_debug, log_error, log_info, log_success, log_warning
from .messages import GENERIC_ERROR, PAGE_NOT_FOUND, WRITE_ERROR
from .pages import (
    ButtonAction,
    ButtonField,
    FieldType,
    FunctionKeyAction,
    FunctionKeyConfig,
    PageConfig,
    PageConfigProvider,
)
from .remote import MetadataCache, RemoteAccessError, RemoteValueStore, read_with_retries
from .renderer import DefaultPageRenderer, PageRenderer
from .timers import Clock, monotonic_clock


# =============================
# Hardware key maps
# =============================

def _build_keypad_map() -> Dict[str, str]:
    keypad = {f"KEY_{digit}": digit for digit in string.digits}
    keypad.update({f"KEY_{letter}": letter for letter in string.ascii_uppercase})
    keypad.update(
        {
            "KEY_DOT": ".",
            "KEY_SLASH": "/",
            "KEY_SPACE": " ",
            "KEY_PLUS": "+",
            "KEY_MINUS": "-",
            "KEY_UNDERSCORE": "_",
        }
    )
    return keypad


KEYPAD_MAP = _build_keypad_map()

# LSK1 -> row 1, LSK2 -> row 3, ... LSK6 -> row 11
LSK_ROWS = {f"LSK{index}{side}": index * 2 - 1 for index in range(1, 7) for side in "LR"}

FUNCTION_KEYS = (
    "DIR", "PROG", "PERF", "INIT", "FPLN", "RAD", "FUEL", "SEC", "ATC", "MENU", "AIRPORT",
    "PREV_PAGE", "NEXT_PAGE",
)


class Terminal:
    """
    One physical MCDU.

    Owns exactly one scratchpad and one confirmation dialog. Components may be
    passed in pre-built (tests shrink their timers that way); they are attached
    to this terminal as their page control.
    """

    def __init__(
        self,
        pages: PageConfigProvider,
        store: RemoteValueStore,
        publisher: DisplayPublisher,
        *,
        metadata: Optional[MetadataCache] = None,
        validation_engine: Optional[ValidationEngine] = None,
        scratchpad: Optional[ScratchpadBuffer] = None,
        dialog: Optional[ConfirmationDialog] = None,
        page_renderer: Optional[PageRenderer] = None,
        function_keys: Iterable[FunctionKeyConfig] = (),
        clock: Clock = monotonic_clock,
        double_clr_window_ms: int = Config.DOUBLE_CLR_WINDOW_MS,
        rows: int = Config.DISPLAY_ROWS,
        columns: int = Config.DISPLAY_COLUMNS,
        read_attempts: int = Config.REMOTE_READ_ATTEMPTS,
    ) -> None:
        self.pages = pages
        self.store = store
        self.publisher = publisher
        self.metadata: MetadataCache = metadata if metadata is not None else {}
        self.rows = rows
        self.columns = columns
        self.read_attempts = read_attempts
        self.function_keys: Dict[str, FunctionKeyConfig] = {fk.key: fk for fk in function_keys}

        self.current_page_id: Optional[str] = None
        self.previous_page_id: Optional[str] = None
        self.breadcrumb: List[PageConfig] = []

        self.scratchpad = scratchpad or ScratchpadBuffer(publisher, columns=columns, row=rows, overlay_row=rows - 1)
        self.scratchpad.page_control = self
        self.dialog = dialog or ConfirmationDialog(publisher, columns=columns)
        self.dialog.page_control = self
        self.validation_engine = validation_engine or ValidationEngine()
        self.input = InputModeManager(
            self.scratchpad,
            self,
            pages,
            store,
            self.metadata,
            validation_engine=self.validation_engine,
            clock=clock,
            double_clr_window_ms=double_clr_window_ms,
            read_attempts=read_attempts,
        )
        self.page_renderer: PageRenderer = page_renderer or DefaultPageRenderer(
            store,
            self.metadata,
            columns=columns,
            page_rows=rows - 1,
            read_attempts=read_attempts,
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Show the root page."""

        root = self.pages.root_page
        if root is None:
            log_warning("Terminal", "No pages configured")
            await self.publish_blank()
            return
        log_info("Terminal", f"Starting on page {root.id} ({len(self.pages.pages)} pages)")
        await self.switch_to_page(root.id)

    async def stop(self) -> None:
        """Cancel pending timers (dialog and scratchpad)."""

        await self.dialog.clear()
        self.scratchpad.cancel_timers()

    # ------------------------------------------------------------------
    # Page control
    # ------------------------------------------------------------------

    @property
    def modal_active(self) -> bool:
        return self.dialog.active

    async def switch_to_page(self, page_id: str) -> None:
        page = self.pages.get_page(page_id)
        if page is None:
            log_error("Terminal", f"Page not found: {page_id}")
            return

        log_info("Terminal", f"Switching to page: {page_id}")
        if self.current_page_id and self.current_page_id != page_id:
            self.previous_page_id = self.current_page_id
        self.current_page_id = page_id
        self.breadcrumb = self.build_breadcrumb(page_id)
        await self.render_current_page()

    async def render_current_page(self) -> None:
        """Redraw the dialog if one is up, else the active page plus scratchpad row.

        A failing renderer leaves a blank screen rather than a frozen one.
        """

        if self.dialog.active:
            await self.dialog.render()
            return

        page = self.pages.get_page(self.current_page_id)
        if page is None:
            log_warning("Terminal", "No current page to render")
            return

        try:
            page_lines = list(await self.page_renderer(page))
        except Exception as exc:
            log_error("Terminal", f"Failed to render page {page.id}: {exc}")
            await self.publish_blank()
            return

        page_lines = page_lines[: self.rows - 1]
        while len(page_lines) < self.rows - 1:
            page_lines.append(DisplayLine(text=pad_text("", self.columns)))
        page_lines.append(
            DisplayLine(
                text=pad_text(self.scratchpad.display_text, self.columns),
                color=self.scratchpad.color.display_color,
            )
        )
        await self.publisher.publish_full_display(page_lines)
        log_debug("Terminal", f"Rendered page {page.id}")

    async def publish_blank(self) -> None:
        blank = [DisplayLine(text=" " * self.columns) for _ in range(self.rows)]
        await self.publisher.publish_full_display(blank)

    async def navigate_home(self) -> None:
        root = self.pages.root_page
        if root is not None:
            await self.switch_to_page(root.id)

    async def navigate_next(self) -> None:
        await self._navigate_sibling(1)

    async def navigate_previous(self) -> None:
        await self._navigate_sibling(-1)

    async def _navigate_sibling(self, offset: int) -> None:
        if not self.current_page_id:
            return
        siblings = self.pages.siblings_of(self.current_page_id)
        if len(siblings) <= 1:
            log_debug("Terminal", f"No siblings to navigate to from {self.current_page_id}")
            return
        index = next(i for i, page in enumerate(siblings) if page.id == self.current_page_id)
        await self.switch_to_page(siblings[(index + offset) % len(siblings)].id)

    async def go_back(self) -> None:
        """Return to the page shown before the current one."""

        if self.previous_page_id:
            await self.switch_to_page(self.previous_page_id)

    def build_breadcrumb(self, page_id: str) -> List[PageConfig]:
        return self.pages.build_breadcrumb(page_id)

    # ------------------------------------------------------------------
    # Button actions
    # ------------------------------------------------------------------

    async def execute_button_action(self, button: ButtonField) -> None:
        """Run a configured button: page navigation or a datapoint action."""

        log_debug("Terminal", f"Execute button: {button.type} {button.action or ''}")
        if button.type == FieldType.NAVIGATION:
            if not button.target:
                log_warning("Terminal", "Navigation button has no target page")
                return
            await self.switch_to_page(button.target)
            return

        if button.type != FieldType.DATAPOINT:
            log_warning("Terminal", f"Unknown button type: {button.type}")
            return
        if not button.target:
            log_error("Terminal", "Datapoint button has no target")
            return

        target = button.target
        try:
            current = await read_with_retries(self.store, target, attempts=self.read_attempts)
            value = current.val if current is not None else None
            if button.action == ButtonAction.TOGGLE:
                new_value = not value
            elif button.action == ButtonAction.INCREMENT:
                new_value = _as_number(value) + 1
            elif button.action == ButtonAction.DECREMENT:
                new_value = _as_number(value) - 1
            else:
                log_warning("Terminal", f"Unknown action: {button.action}")
                return
            await self.store.set_value(target, new_value)
        except RemoteAccessError as exc:
            log_error("Terminal", f"Failed to execute button action on {target}: {exc}")
            await self.scratchpad.render_error(WRITE_ERROR if exc.operation == "write" else GENERIC_ERROR)
            return

        log_success("Terminal", f"{button.action} {target}: {new_value!r}")
        await self.render_current_page()

    # ------------------------------------------------------------------
    # Event dispatch
    # ------------------------------------------------------------------

    async def handle_button(self, button: str) -> None:
        """Dispatch a hardware button press."""

        if self.dialog.active:
            if button in RESPONSE_KEYS:
                await self.dialog.handle_response(button)
            else:
                log_debug("Terminal", f"Button {button} ignored - confirmation active")
            return

        if button in LSK_ROWS:
            side = "left" if button.endswith("L") else "right"
            await self.input.handle_lsk(side, LSK_ROWS[button])
        elif button.startswith("LSK"):
            log_warning("Terminal", f"Unknown LSK button: {button}")
        elif button == "CLR":
            await self.input.handle_clr()
        elif button == "OVFY":
            log_debug("Terminal", "OVFY pressed (no active confirmation)")
        elif button in FUNCTION_KEYS:
            await self.handle_function_key(button)
        else:
            log_debug("Terminal", f"Button {button} not handled")

    async def handle_keypad(self, key: str) -> None:
        """Dispatch a keypad press (``KEY_5``, ``KEY_DOT``...) as a character."""

        char = KEYPAD_MAP.get(key)
        if char is None:
            log_debug("Terminal", f"Unknown keypad key: {key}")
            return
        if self.dialog.active:
            log_debug("Terminal", f"Keypad {key} ignored - confirmation active")
            return
        await self.input.handle_key_input(char)

    async def handle_function_key(self, button: str) -> None:
        if button == "PREV_PAGE":
            await self.navigate_previous()
            return
        if button == "NEXT_PAGE":
            await self.navigate_next()
            return

        config = self.function_keys.get(button)
        if config is None and button == "MENU":
            config = FunctionKeyConfig(key="MENU", action=FunctionKeyAction.NAVIGATE_HOME.value)
        if config is None or not config.enabled:
            log_debug("Terminal", f"Function key {button} not configured or disabled")
            return

        if config.action == FunctionKeyAction.NAVIGATE_HOME:
            log_info("Terminal", f"{button} key - navigating to home page")
            await self.navigate_home()
        elif config.action == FunctionKeyAction.GOTO_PAGE:
            if config.target_page_id:
                await self.switch_to_page(config.target_page_id)
            else:
                log_debug("Terminal", f"{button} key - no target page configured")
        elif config.action == FunctionKeyAction.DIRECT_ACCESS:
            await self._direct_access(button)
        else:
            log_debug("Terminal", f"Unknown action for {button}: {config.action}")

    async def _direct_access(self, button: str) -> None:
        """Jump to the page whose id was typed into the scratchpad."""

        content = self.scratchpad.content
        if not content or self.scratchpad.error_showing:
            log_debug("Terminal", f"{button} pressed with empty scratchpad")
            return
        target = self.pages.get_page(content) or self.pages.get_page(content.lower())
        if target is None:
            await self.scratchpad.render_error(PAGE_NOT_FOUND)
            return
        self.scratchpad.reset()
        self.input.set_mode(InputMode.NORMAL)
        await self.switch_to_page(target.id)


def _as_number(value) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0
