"""
Modal confirmation dialogs.

A dialog replaces the whole page until it is answered:

    Line 1:      TITLE
    Line 2:      !! WARNING (hard only)
    Line 3:      ------------------------
    Line 4-10:   details (word wrapped)
    Line 11:     ------------------------
    Line 12:     instruction
    Line 13:     < CANCEL        CONFIRM*
    Line 14:     (blank, the scratchpad row is left alone)

Variants:
- soft: LSK6R or OVFY confirms, LSK6L cancels
- hard: only OVFY confirms; LSK6L/LSK6R flash a wrong-key hint and the
  dialog stays up; there is no way to cancel from the keys
- countdown: soft, plus a tick timer that auto-confirms at zero

Confirm/cancel handlers are injected as a ``ConfirmationHandler``. A handler
that raises is logged; the dialog is cleared regardless. A handler that opens
a follow-up dialog (soft leading to hard, say) leaves that dialog up.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, List, Optional, Protocol, Sequence, Union

from ..config import Config
from ..display import DisplayColor, DisplayLine, DisplayPublisher, center_text, pad_text, word_wrap
from ..logging_utils import log_debug, log_error, log_info, log_warning
from ..messages import (
    COUNTDOWN_DETAIL,
    INSTRUCTION_COUNTDOWN,
    INSTRUCTION_HARD,
    INSTRUCTION_SOFT,
    OPTION_CANCEL,
    OPTION_CONFIRM,
    OPTION_HARD,
    WARNING_PREFIX,
    WRONG_KEY,
)
from ..pages import PageControl
from ..timers import OwnedTimer


KEY_CONFIRM = "OVFY"
KEY_LSK_CANCEL = "LSK6L"
KEY_LSK_CONFIRM = "LSK6R"
RESPONSE_KEYS = (KEY_CONFIRM, KEY_LSK_CANCEL, KEY_LSK_CONFIRM)

DETAIL_LINES = 7
INSTRUCTION_ROW = 12


class DialogType(str, Enum):
    SOFT = "soft"
    HARD = "hard"
    COUNTDOWN = "countdown"


class ConfirmationHandler(Protocol):
    """What a dialog calls when it is answered."""

    async def on_confirm(self) -> None:
        ...

    async def on_cancel(self) -> None:
        ...


DialogCallback = Callable[[], Awaitable[None]]


class CallbackHandler:
    """Adapts plain async callables to ``ConfirmationHandler``. Either may be omitted."""

    def __init__(
        self,
        on_confirm: Optional[DialogCallback] = None,
        on_cancel: Optional[DialogCallback] = None,
    ) -> None:
        self._on_confirm = on_confirm
        self._on_cancel = on_cancel

    async def on_confirm(self) -> None:
        if self._on_confirm is not None:
            await self._on_confirm()

    async def on_cancel(self) -> None:
        if self._on_cancel is not None:
            await self._on_cancel()


@dataclass
class DialogState:
    dialog_type: DialogType
    title: str
    handler: ConfirmationHandler
    details: List[str] = field(default_factory=list)
    # Hard dialogs only
    warning: Optional[str] = None
    # Countdown dialogs only
    countdown_remaining: Optional[int] = None


class ConfirmationDialog:
    """The single dialog slot of the terminal.

    Showing a dialog always tears down the previous one first (timers
    included), so rapid repeated ``show_*`` calls leave exactly one dialog.
    """

    def __init__(
        self,
        publisher: DisplayPublisher,
        page_control: Optional[PageControl] = None,
        *,
        columns: int = Config.DISPLAY_COLUMNS,
        tick_seconds: float = Config.COUNTDOWN_TICK_SECONDS,
        flash_ms: int = Config.FLASH_MS,
    ) -> None:
        self.publisher = publisher
        self.page_control = page_control
        self.columns = columns
        self.tick_seconds = tick_seconds
        self.flash_ms = flash_ms

        self.state: Optional[DialogState] = None
        self._countdown_timer = OwnedTimer("dialog-countdown")
        self._flash_timer = OwnedTimer("dialog-flash")
        log_debug("Dialog", "ConfirmationDialog initialized")

    # ------------------------------------------------------------------
    # State views
    # ------------------------------------------------------------------

    @property
    def active(self) -> bool:
        return self.state is not None

    @property
    def dialog_type(self) -> Optional[DialogType]:
        return self.state.dialog_type if self.state else None

    @property
    def countdown_remaining(self) -> Optional[int]:
        return self.state.countdown_remaining if self.state else None

    @property
    def countdown_running(self) -> bool:
        return self._countdown_timer.pending

    # ------------------------------------------------------------------
    # Showing
    # ------------------------------------------------------------------

    async def show_soft_confirmation(
        self,
        title: str,
        details: Union[str, Sequence[str]],
        handler: Optional[ConfirmationHandler] = None,
    ) -> None:
        log_info("Dialog", f"Soft confirmation: {title}")
        await self._install(
            DialogState(
                dialog_type=DialogType.SOFT,
                title=title,
                details=_as_lines(details),
                handler=handler or CallbackHandler(),
            )
        )

    async def show_hard_confirmation(
        self,
        title: str,
        warning: str,
        details: Union[str, Sequence[str]],
        handler: Optional[ConfirmationHandler] = None,
    ) -> None:
        """Irreversible action: only the OVFY key confirms."""

        log_warning("Dialog", f"Hard confirmation: {title}")
        await self._install(
            DialogState(
                dialog_type=DialogType.HARD,
                title=title,
                warning=warning,
                details=_as_lines(details),
                handler=handler or CallbackHandler(),
            )
        )

    async def show_countdown_confirmation(
        self,
        title: str,
        seconds: int,
        handler: Optional[ConfirmationHandler] = None,
    ) -> None:
        """Confirms itself after ``seconds`` ticks unless cancelled first."""

        log_info("Dialog", f"Countdown confirmation: {title} ({seconds}s)")
        remaining = max(0, int(seconds))
        await self._install(
            DialogState(
                dialog_type=DialogType.COUNTDOWN,
                title=title,
                details=[COUNTDOWN_DETAIL.format(seconds=remaining)],
                handler=handler or CallbackHandler(),
                countdown_remaining=remaining,
            )
        )
        self._countdown_timer.schedule_repeating(self.tick_seconds, self.tick)

    async def _install(self, state: DialogState) -> None:
        await self.clear()
        self.state = state
        await self.render()

    async def tick(self) -> bool:
        """Advance the countdown by one second; returns False once it is over."""

        state = self.state
        if state is None or state.dialog_type is not DialogType.COUNTDOWN:
            return False

        remaining = (state.countdown_remaining or 0) - 1
        state.countdown_remaining = remaining
        state.details = [COUNTDOWN_DETAIL.format(seconds=max(0, remaining))]
        await self.render()

        if remaining <= 0:
            log_info("Dialog", "Countdown expired - auto-confirming")
            await self.confirm()
            return False
        return True

    # ------------------------------------------------------------------
    # Answering
    # ------------------------------------------------------------------

    async def handle_response(self, key: str) -> None:
        """Apply a key press (OVFY, LSK6L or LSK6R) to the active dialog."""

        state = self.state
        if state is None:
            log_debug("Dialog", f"{key} ignored: no active dialog")
            return

        log_debug("Dialog", f"Response {key} ({state.dialog_type.value})")
        if state.dialog_type is DialogType.HARD:
            if key == KEY_CONFIRM:
                await self.confirm()
            elif key in (KEY_LSK_CANCEL, KEY_LSK_CONFIRM):
                await self.flash_instruction(WRONG_KEY, DisplayColor.RED, self.flash_ms)
            return

        if key in (KEY_LSK_CONFIRM, KEY_CONFIRM):
            await self.confirm()
        elif key == KEY_LSK_CANCEL:
            await self.cancel()

    async def confirm(self) -> None:
        state = self.state
        if state is None:
            return
        log_info("Dialog", f"Confirmed: {state.title}")
        self._stop_timers()
        try:
            await state.handler.on_confirm()
        except Exception as exc:
            log_error("Dialog", f"Confirm handler failed: {exc}")
        await self._clear_answered(state)

    async def cancel(self) -> None:
        state = self.state
        if state is None:
            return
        log_info("Dialog", f"Cancelled: {state.title}")
        self._stop_timers()
        if state.dialog_type is not DialogType.HARD:
            try:
                await state.handler.on_cancel()
            except Exception as exc:
                log_error("Dialog", f"Cancel handler failed: {exc}")
        await self._clear_answered(state)

    async def _clear_answered(self, state: DialogState) -> None:
        # A handler may chain a follow-up dialog; that one stays up
        if self.state is not state:
            log_debug("Dialog", f"Handler for {state.title} opened another dialog")
            return
        await self.clear()

    async def clear(self) -> None:
        """Drop the dialog and redraw the page underneath. Safe to call twice."""

        if self.state is None:
            return
        self._stop_timers()
        self.state = None
        log_debug("Dialog", "Cleared")
        if self.page_control is not None:
            await self.page_control.render_current_page()

    def _stop_timers(self) -> None:
        self._countdown_timer.cancel()
        self._flash_timer.cancel()

    async def wait_for_countdown(self) -> None:
        await self._countdown_timer.wait()

    async def wait_for_flash(self) -> None:
        await self._flash_timer.wait()

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    async def render(self) -> None:
        if self.state is None:
            return
        await self.publisher.publish_full_display(self.build_lines())
        log_debug("Dialog", "Rendered")

    def build_lines(self) -> List[DisplayLine]:
        state = self.state
        if state is None:
            return []

        separator = DisplayLine(text="-" * self.columns)
        lines = [DisplayLine(text=center_text(state.title, self.columns))]

        if state.dialog_type is DialogType.HARD and state.warning:
            lines.append(
                DisplayLine(
                    text=center_text(f"{WARNING_PREFIX}{state.warning}", self.columns),
                    color=DisplayColor.RED,
                )
            )
        else:
            lines.append(DisplayLine(text=pad_text("", self.columns)))

        lines.append(separator)
        lines.extend(
            DisplayLine(text=pad_text(detail, self.columns))
            for detail in self.format_details(state.details, DETAIL_LINES)
        )
        lines.append(separator)

        lines.append(
            DisplayLine(
                text=center_text(_INSTRUCTIONS[state.dialog_type], self.columns),
                color=DisplayColor.AMBER,
            )
        )

        if state.dialog_type is DialogType.HARD:
            options = center_text(OPTION_HARD, self.columns)
        else:
            options = self.format_options()
        lines.append(DisplayLine(text=options, color=DisplayColor.GREEN))

        lines.append(DisplayLine(text=pad_text("", self.columns)))
        return lines

    def format_details(self, details: Sequence[str], max_lines: int) -> List[str]:
        result: List[str] = []
        for detail in details:
            for line in word_wrap(detail, self.columns):
                if len(result) >= max_lines:
                    return result
                result.append(line)
        while len(result) < max_lines:
            result.append("")
        return result

    def format_options(self) -> str:
        spacing = max(1, self.columns - len(OPTION_CANCEL) - len(OPTION_CONFIRM))
        return pad_text(OPTION_CANCEL + " " * spacing + OPTION_CONFIRM, self.columns)

    async def flash_instruction(self, message: str, color: DisplayColor, duration_ms: int) -> None:
        """Replace the instruction line briefly, then redraw the dialog."""

        await self.publisher.publish_line(INSTRUCTION_ROW, center_text(message, self.columns), color)
        self._flash_timer.schedule(duration_ms / 1000, self.render)


_INSTRUCTIONS = {
    DialogType.SOFT: INSTRUCTION_SOFT,
    DialogType.HARD: INSTRUCTION_HARD,
    DialogType.COUNTDOWN: INSTRUCTION_COUNTDOWN,
}


def _as_lines(details: Union[str, Sequence[str]]) -> List[str]:
    if isinstance(details, str):
        return [details]
    return list(details)
