"""Tests for soft, hard and countdown confirmation dialogs."""

import asyncio

import pytest

from mcdu.display import DisplayColor, RecordingDisplayPublisher
from mcdu.input import CallbackHandler, ConfirmationDialog, DialogType


class RecordingHandler:
    """ConfirmationHandler that counts calls and can be told to fail."""

    def __init__(self, fail: bool = False) -> None:
        self.confirmed = 0
        self.cancelled = 0
        self.fail = fail

    async def on_confirm(self) -> None:
        self.confirmed += 1
        if self.fail:
            raise RuntimeError("device refused")

    async def on_cancel(self) -> None:
        self.cancelled += 1
        if self.fail:
            raise RuntimeError("device refused")


class RecordingPageControl:
    current_page_id = "home"
    modal_active = False

    def __init__(self) -> None:
        self.render_calls = 0

    async def switch_to_page(self, page_id: str) -> None:
        self.current_page_id = page_id

    async def render_current_page(self) -> None:
        self.render_calls += 1

    async def execute_button_action(self, button) -> None:
        pass


def make_dialog(**overrides):
    publisher = RecordingDisplayPublisher()
    pages = RecordingPageControl()
    options = {"tick_seconds": 60.0, "flash_ms": 0}
    options.update(overrides)
    return ConfirmationDialog(publisher, pages, **options), publisher, pages


# ============================================================================
# Soft
# ============================================================================


@pytest.mark.asyncio
async def test_soft_confirm_with_lsk6r():
    dialog, _, pages = make_dialog()
    handler = RecordingHandler()
    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", handler)

    assert dialog.active
    assert dialog.dialog_type is DialogType.SOFT

    await dialog.handle_response("LSK6R")
    assert handler.confirmed == 1
    assert handler.cancelled == 0
    assert not dialog.active
    assert pages.render_calls == 1


@pytest.mark.asyncio
async def test_soft_confirm_with_ovfy():
    dialog, _, _ = make_dialog()
    handler = RecordingHandler()
    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", handler)

    await dialog.handle_response("OVFY")
    assert handler.confirmed == 1


@pytest.mark.asyncio
async def test_soft_cancel_with_lsk6l():
    dialog, _, _ = make_dialog()
    handler = RecordingHandler()
    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", handler)

    await dialog.handle_response("LSK6L")
    assert handler.cancelled == 1
    assert handler.confirmed == 0
    assert not dialog.active


@pytest.mark.asyncio
async def test_other_keys_leave_soft_dialog_up():
    dialog, _, _ = make_dialog()
    handler = RecordingHandler()
    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", handler)

    await dialog.handle_response("LSK3L")
    assert dialog.active
    assert handler.confirmed == handler.cancelled == 0


# ============================================================================
# Hard
# ============================================================================


@pytest.mark.asyncio
async def test_hard_dialog_only_confirms_with_ovfy():
    dialog, publisher, _ = make_dialog(flash_ms=5000)
    handler = RecordingHandler()
    await dialog.show_hard_confirmation("FACTORY RESET", "IRREVERSIBLE", "ALL SETTINGS LOST", handler)

    await dialog.handle_response("LSK6R")
    await dialog.handle_response("LSK6L")
    assert dialog.active
    assert handler.confirmed == handler.cancelled == 0

    flash = publisher.last_line(12)
    assert flash.text.strip() == "OVFY KEY ONLY!"
    assert flash.color is DisplayColor.RED

    await dialog.handle_response("OVFY")
    assert handler.confirmed == 1
    assert not dialog.active


@pytest.mark.asyncio
async def test_hard_flash_reverts_to_dialog():
    dialog, publisher, _ = make_dialog(flash_ms=0)
    await dialog.show_hard_confirmation("FACTORY RESET", "IRREVERSIBLE", "ALL SETTINGS LOST")
    frames_before = len(publisher.frames)

    await dialog.handle_response("LSK6L")
    await dialog.wait_for_flash()

    assert len(publisher.frames) == frames_before + 1
    assert publisher.last_frame[11].text.strip() == "PRESS OVFY TO CONFIRM"


@pytest.mark.asyncio
async def test_hard_cancel_never_calls_on_cancel():
    dialog, _, _ = make_dialog()
    handler = RecordingHandler()
    await dialog.show_hard_confirmation("FACTORY RESET", "IRREVERSIBLE", "ALL SETTINGS LOST", handler)

    await dialog.cancel()
    assert handler.cancelled == 0
    assert not dialog.active


# ============================================================================
# Countdown
# ============================================================================


@pytest.mark.asyncio
async def test_countdown_cancelled_before_zero_never_confirms():
    dialog, _, _ = make_dialog()
    handler = RecordingHandler()
    await dialog.show_countdown_confirmation("ARM ALARM", 5, handler)
    assert dialog.countdown_running

    assert await dialog.tick()
    assert await dialog.tick()
    assert dialog.countdown_remaining == 3

    await dialog.handle_response("LSK6L")
    assert handler.cancelled == 1
    assert handler.confirmed == 0
    assert not dialog.countdown_running


@pytest.mark.asyncio
async def test_countdown_updates_detail_each_tick():
    dialog, publisher, _ = make_dialog()
    await dialog.show_countdown_confirmation("ARM ALARM", 3)
    assert publisher.last_frame[3].text.strip() == "AUTO EXECUTE IN 3 SEC"

    await dialog.tick()
    assert publisher.last_frame[3].text.strip() == "AUTO EXECUTE IN 2 SEC"
    await dialog.clear()


@pytest.mark.asyncio
async def test_countdown_auto_confirms_exactly_once():
    dialog, _, pages = make_dialog(tick_seconds=0.01)
    handler = RecordingHandler()
    await dialog.show_countdown_confirmation("ARM ALARM", 3, handler)

    await asyncio.wait_for(dialog.wait_for_countdown(), timeout=2)

    assert handler.confirmed == 1
    assert not dialog.active
    assert not dialog.countdown_running
    assert pages.render_calls == 1


@pytest.mark.asyncio
async def test_countdown_confirm_early_with_ovfy_stops_timer():
    dialog, _, _ = make_dialog(tick_seconds=0.01)
    handler = RecordingHandler()
    await dialog.show_countdown_confirmation("ARM ALARM", 50, handler)

    await dialog.handle_response("OVFY")
    await asyncio.sleep(0.05)

    assert handler.confirmed == 1
    assert not dialog.countdown_running


@pytest.mark.asyncio
async def test_zero_second_countdown_confirms_on_first_tick():
    dialog, _, _ = make_dialog()
    handler = RecordingHandler()
    await dialog.show_countdown_confirmation("ARM ALARM", 0, handler)

    assert not await dialog.tick()
    assert handler.confirmed == 1


# ============================================================================
# Lifecycle
# ============================================================================


@pytest.mark.asyncio
async def test_new_dialog_replaces_previous_one():
    dialog, _, _ = make_dialog()
    first = RecordingHandler()
    second = RecordingHandler()
    await dialog.show_countdown_confirmation("ARM ALARM", 5, first)
    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", second)

    assert dialog.dialog_type is DialogType.SOFT
    assert not dialog.countdown_running

    await dialog.handle_response("OVFY")
    assert first.confirmed == 0
    assert second.confirmed == 1


@pytest.mark.asyncio
async def test_failing_handler_still_clears_dialog():
    dialog, _, pages = make_dialog()
    handler = RecordingHandler(fail=True)
    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", handler)

    await dialog.handle_response("OVFY")
    assert handler.confirmed == 1
    assert not dialog.active
    assert pages.render_calls == 1


@pytest.mark.asyncio
async def test_confirm_handler_can_chain_a_hard_dialog():
    dialog, publisher, pages = make_dialog()
    final = RecordingHandler()

    async def escalate():
        await dialog.show_hard_confirmation("FACTORY RESET", "IRREVERSIBLE", "ALL SETTINGS LOST", final)

    await dialog.show_soft_confirmation("RESET", "ARE YOU SURE", CallbackHandler(on_confirm=escalate))
    await dialog.handle_response("OVFY")

    assert dialog.active
    assert dialog.dialog_type is DialogType.HARD
    assert publisher.last_frame[11].text.strip() == "PRESS OVFY TO CONFIRM"
    assert pages.render_calls == 1

    await dialog.handle_response("OVFY")
    assert final.confirmed == 1
    assert not dialog.active
    assert pages.render_calls == 2


@pytest.mark.asyncio
async def test_cancel_handler_can_chain_another_dialog():
    dialog, _, _ = make_dialog()

    async def ask_again():
        await dialog.show_soft_confirmation("LIGHTS OFF", "KEEP HALLWAY ON?")

    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", CallbackHandler(on_cancel=ask_again))
    await dialog.handle_response("LSK6L")

    assert dialog.active
    assert dialog.state.details == ["KEEP HALLWAY ON?"]
    await dialog.clear()


@pytest.mark.asyncio
async def test_clear_is_idempotent():
    dialog, _, pages = make_dialog()
    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS")

    await dialog.clear()
    await dialog.clear()
    assert pages.render_calls == 1


@pytest.mark.asyncio
async def test_response_without_dialog_is_ignored():
    dialog, publisher, _ = make_dialog()
    await dialog.handle_response("OVFY")
    assert publisher.frames == []


@pytest.mark.asyncio
async def test_callback_handler_adapts_plain_callables():
    dialog, _, _ = make_dialog()
    calls = []

    async def confirmed():
        calls.append("confirm")

    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", CallbackHandler(on_confirm=confirmed))
    await dialog.handle_response("LSK6L")
    assert calls == []

    await dialog.show_soft_confirmation("LIGHTS OFF", "ALL ROOMS", CallbackHandler(on_confirm=confirmed))
    await dialog.handle_response("LSK6R")
    assert calls == ["confirm"]


# ============================================================================
# Layout
# ============================================================================


@pytest.mark.asyncio
async def test_soft_layout():
    dialog, publisher, _ = make_dialog()
    await dialog.show_soft_confirmation("LIGHTS OFF", ["TURN OFF ALL LIGHTS IN THE HOUSE NOW"])

    frame = publisher.last_frame
    assert len(frame) == 14
    assert all(len(line.text) == 24 for line in frame)
    assert frame[0].text.strip() == "LIGHTS OFF"
    assert frame[1].text.strip() == ""
    assert frame[2].text == "-" * 24
    assert frame[3].text.strip() == "TURN OFF ALL LIGHTS IN"
    assert frame[4].text.strip() == "THE HOUSE NOW"
    assert frame[10].text == "-" * 24
    assert frame[11].text.strip() == "LSK OR OVFY TO SELECT"
    assert frame[11].color is DisplayColor.AMBER
    assert frame[12].text == "< CANCEL        CONFIRM*"
    assert frame[12].color is DisplayColor.GREEN
    assert frame[13].text.strip() == ""
    await dialog.clear()


@pytest.mark.asyncio
async def test_hard_layout_shows_red_warning():
    dialog, publisher, _ = make_dialog()
    await dialog.show_hard_confirmation("FACTORY RESET", "IRREVERSIBLE", "ALL SETTINGS LOST")

    frame = publisher.last_frame
    assert frame[1].text.strip() == "!! IRREVERSIBLE"
    assert frame[1].color is DisplayColor.RED
    assert frame[11].text.strip() == "PRESS OVFY TO CONFIRM"
    assert frame[12].text.strip() == "OVFY KEY ONLY"
    await dialog.clear()


def test_details_are_capped_at_seven_lines():
    dialog, _, _ = make_dialog()
    details = [f"LINE {index}" for index in range(10)]

    formatted = dialog.format_details(details, 7)
    assert formatted == [f"LINE {index}" for index in range(7)]
    assert dialog.format_details(["ONE"], 3) == ["ONE", "", ""]
