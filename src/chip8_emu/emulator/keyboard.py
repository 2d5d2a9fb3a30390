"""
Keyboard for CHIP-8 Emulator
============================

The CHIP-8 hex keypad has 16 keys, 0-F, traditionally laid out as:

    1 2 3 C
    4 5 6 D
    7 8 9 E
    A 0 B F

The keyboard only tracks which keys are held. Mapping host keys onto the
keypad is the driver's job.

Copyright (c) 2025 Hugo José Pinto & Contributors
"""

from typing import List, Optional, Union

NUM_KEYS = 16


def parse_key(key: Union[int, str]) -> int:
    """
    Convert a key given as an int or a single hex digit into a key index.

    Args:
        key: 0-15, or a string such as "A" or "0xA"

    Returns:
        Key index 0-15

    Raises:
        ValueError: If the key is not a valid keypad key
    """
    if isinstance(key, str):
        text = key.strip().lower()
        if text.startswith("0x"):
            text = text[2:]
        try:
            value = int(text, 16)
        except ValueError:
            raise ValueError(f"Invalid key: {key!r}") from None
    else:
        value = key

    if not 0 <= value < NUM_KEYS:
        raise ValueError(f"Key must be 0-F, got {key!r}")
    return value


class Keyboard:
    """
    State of the 16-key hex keypad.

    Example:
        >>> kb = Keyboard()
        >>> kb.key_down(0xA)
        >>> kb.is_pressed(0xA)
        True
        >>> kb.first_pressed_key()
        10
    """

    def __init__(self):
        self._pressed: List[bool] = [False] * NUM_KEYS

    def key_down(self, key: Union[int, str]) -> None:
        """Mark a key as held."""
        self._pressed[parse_key(key)] = True

    def key_up(self, key: Union[int, str]) -> None:
        """Mark a key as released."""
        self._pressed[parse_key(key)] = False

    def clear(self) -> None:
        """Release all keys."""
        self._pressed = [False] * NUM_KEYS

    def is_pressed(self, key: int) -> bool:
        """
        Check whether a key is held.

        The interpreter passes register values here, so any byte is
        accepted; values above 15 name no key and report False.
        """
        if 0 <= key < NUM_KEYS:
            return self._pressed[key]
        return False

    def first_pressed_key(self) -> Optional[int]:
        """Lowest-indexed held key, or None if no key is held."""
        for key, pressed in enumerate(self._pressed):
            if pressed:
                return key
        return None

    @property
    def pressed_keys(self) -> List[int]:
        """All held keys in ascending order."""
        return [key for key, pressed in enumerate(self._pressed) if pressed]

    def __repr__(self) -> str:
        keys = ",".join(f"{key:X}" for key in self.pressed_keys)
        return f"Keyboard(pressed=[{keys}])"
