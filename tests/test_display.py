"""Tests for display text helpers and the recording publisher."""

import pytest

from mcdu.display import DisplayColor, DisplayLine, RecordingDisplayPublisher, center_text, pad_text, word_wrap


def test_pad_and_center():
    assert pad_text("AB", 5) == "AB   "
    assert pad_text("ABCDEFG", 5) == "ABCDE"
    assert center_text("AB", 5) == " AB  "
    assert center_text("ABCDEFG", 5) == "ABCDE"


def test_word_wrap_breaks_at_spaces():
    assert word_wrap("SHORT", 24) == ["SHORT"]
    assert word_wrap("ALL LIGHTS WILL BE SWITCHED OFF", 12) == ["ALL LIGHTS", "WILL BE", "SWITCHED OFF"]


def test_word_wrap_hard_breaks_long_words():
    assert word_wrap("ABCDEFGHIJ KL", 4) == ["ABCD", "EFGH", "IJ", "KL"]


@pytest.mark.asyncio
async def test_recording_publisher_tracks_lines_and_frames():
    publisher = RecordingDisplayPublisher(rows=3, columns=4)
    await publisher.publish_line(2, "ERR ", DisplayColor.RED)
    await publisher.publish_line(3, "OK  ", DisplayColor.GREEN)

    assert publisher.last_line().row == 3
    assert publisher.last_line(2).color is DisplayColor.RED
    assert [line.text for line in publisher.lines_for(2)] == ["ERR "]

    await publisher.publish_full_display([DisplayLine(text="A"), DisplayLine(text="B")])
    assert publisher.last_frame[1].text == "B"
    assert publisher.screen_text(1) == "A"
    assert publisher.screen_text(3) == "OK  "
