"""Tests for configuration validation and tagged log output."""

import pytest

from mcdu.config import Config
from mcdu.logging_utils import Color, colored, log_debug, log_error, log_info, log_success, log_warning


def test_default_config_is_valid():
    Config.validate()
    assert Config.DISPLAY_COLUMNS == 24
    assert Config.SCRATCHPAD_MAX_LENGTH == 20


def test_scratchpad_must_fit_display(monkeypatch):
    monkeypatch.setattr(Config, "SCRATCHPAD_MAX_LENGTH", 24)
    with pytest.raises(ValueError, match="SCRATCHPAD_MAX_LENGTH"):
        Config.validate()


def test_negative_timings_are_rejected(monkeypatch):
    monkeypatch.setattr(Config, "ERROR_OVERLAY_MS", -1)
    with pytest.raises(ValueError, match="MCDU_ERROR_OVERLAY_MS"):
        Config.validate()


def test_countdown_tick_must_be_positive(monkeypatch):
    monkeypatch.setattr(Config, "COUNTDOWN_TICK_SECONDS", 0)
    with pytest.raises(ValueError, match="COUNTDOWN_TICK_SECONDS"):
        Config.validate()


def test_display_summarizes_settings():
    summary = Config.display()
    assert summary.startswith("MCDU Configuration:")
    assert "Display: 14x24" in summary


def test_log_lines_carry_tag_and_component(monkeypatch, capsys):
    monkeypatch.setenv("MCDU_NO_COLOR", "1")

    log_info("Input", "Mode: NORMAL -> INPUT")
    log_success("Input", "Written a.b: 22.0")
    log_warning("Dialog", "Hard confirmation: RESET")
    log_error("Remote", "Read failed")

    assert capsys.readouterr().out.splitlines() == [
        "  [i] [Input] Mode: NORMAL -> INPUT",
        "  [OK] [Input] Written a.b: 22.0",
        "  [!] [Dialog] Hard confirmation: RESET",
        "  [ERR] [Remote] Read failed",
    ]


def test_debug_output_needs_debug_flag(monkeypatch, capsys):
    monkeypatch.setenv("MCDU_NO_COLOR", "1")
    monkeypatch.delenv("MCDU_DEBUG", raising=False)
    log_debug("Scratchpad", "hidden")
    assert capsys.readouterr().out == ""

    monkeypatch.setenv("MCDU_DEBUG", "1")
    log_debug("Scratchpad", "shown")
    assert capsys.readouterr().out == "  [.] [Scratchpad] shown\n"


def test_colored_respects_no_color(monkeypatch):
    monkeypatch.delenv("MCDU_NO_COLOR", raising=False)
    assert colored("x", Color.RED) == f"{Color.RED.value}x{Color.RESET.value}"
    assert colored("x", Color.RED, bold=True).startswith(Color.BOLD.value)

    monkeypatch.setenv("MCDU_NO_COLOR", "1")
    assert colored("x", Color.RED) == "x"
