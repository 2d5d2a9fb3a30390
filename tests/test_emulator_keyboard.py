"""
Keyboard Unit Tests
===================

Tests for the 16-key hex keypad state and key parsing.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

import pytest
from chip8_emu.emulator import Keyboard, parse_key


class TestParseKey:
    """Test key name parsing."""

    @pytest.mark.parametrize("key,expected", [
        (0, 0),
        (15, 15),
        ("a", 10),
        ("F", 15),
        ("0xB", 11),
        (" 7 ", 7),
    ])
    def test_valid_keys(self, key, expected):
        """Ints and hex digits map to key indices."""
        assert parse_key(key) == expected

    @pytest.mark.parametrize("key", [16, -1, "G", "10", ""])
    def test_invalid_keys(self, key):
        """Anything outside 0-F raises ValueError."""
        with pytest.raises(ValueError):
            parse_key(key)


class TestKeyboard:
    """Test keypad state."""

    def test_initially_released(self):
        """No keys are held at start."""
        kb = Keyboard()
        assert kb.first_pressed_key() is None
        assert kb.pressed_keys == []

    def test_press_and_release(self):
        """key_down/key_up toggle a key."""
        kb = Keyboard()
        kb.key_down(0xA)
        assert kb.is_pressed(0xA) is True
        kb.key_up("a")
        assert kb.is_pressed(0xA) is False

    def test_first_pressed_is_lowest(self):
        """first_pressed_key returns the lowest held key."""
        kb = Keyboard()
        kb.key_down(9)
        kb.key_down(3)
        assert kb.first_pressed_key() == 3
        assert kb.pressed_keys == [3, 9]

    def test_out_of_range_not_pressed(self):
        """Register values above 15 name no key."""
        kb = Keyboard()
        kb.key_down(0)
        assert kb.is_pressed(0x10) is False
        assert kb.is_pressed(0xFF) is False

    def test_clear(self):
        """clear() releases everything."""
        kb = Keyboard()
        kb.key_down(1)
        kb.key_down(2)
        kb.clear()
        assert kb.pressed_keys == []

    def test_repr(self):
        """repr lists held keys in hex."""
        kb = Keyboard()
        kb.key_down(0xC)
        assert "C" in repr(kb)
