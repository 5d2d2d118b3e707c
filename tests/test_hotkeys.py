"""Tests for core/control/hotkeys.py — hotkey string parsing."""

from __future__ import annotations

import pytest

from core.control.errors import ControlConfigError
from core.control.hotkeys import parse_hotkey


class TestParseHotkey:
    def test_modifiers_and_key(self) -> None:
        assert parse_hotkey("ctrl+shift a") == (("ctrl", "shift"), "a")

    def test_single_modifier(self) -> None:
        assert parse_hotkey("alt f4") == (("alt",), "f4")

    def test_plain_key(self) -> None:
        assert parse_hotkey("audio_vol_up") == ((), "audio_vol_up")

    def test_aliases_normalized(self) -> None:
        assert parse_hotkey("control+command x") == (("ctrl", "cmd"), "x")

    def test_case_insensitive(self) -> None:
        assert parse_hotkey("CTRL+Shift A") == (("ctrl", "shift"), "a")

    def test_extra_whitespace(self) -> None:
        assert parse_hotkey("  ctrl   a ") == (("ctrl",), "a")


class TestParseHotkeyErrors:
    def test_empty(self) -> None:
        with pytest.raises(ControlConfigError, match="empty"):
            parse_hotkey("   ")

    def test_unknown_modifier(self) -> None:
        with pytest.raises(ControlConfigError, match="unknown modifier"):
            parse_hotkey("hyper a")

    def test_too_many_parts(self) -> None:
        with pytest.raises(ControlConfigError, match="mod\\+mod key"):
            parse_hotkey("ctrl a b")
