"""The joypad register (0xFF00) fed by a queue of key events."""

from __future__ import annotations

import queue
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional


class KeypadKey(Enum):
    """A button, valued by (row, bit) in the joypad matrix."""

    RIGHT = (0, 0)
    LEFT = (0, 1)
    UP = (0, 2)
    DOWN = (0, 3)
    A = (1, 0)
    B = (1, 1)
    SELECT = (1, 2)
    START = (1, 3)

    @property
    def row(self) -> int:
        return self.value[0]

    @property
    def mask(self) -> int:
        return 1 << self.value[1]


@dataclass(frozen=True)
class KeypadEvent:
    """A key being pressed or released."""

    key: KeypadKey
    pressed: bool

    @classmethod
    def down(cls, key: KeypadKey) -> "KeypadEvent":
        return cls(key, True)

    @classmethod
    def up(cls, key: KeypadKey) -> "KeypadEvent":
        return cls(key, False)


class Keypad:
    """Joypad state; pending events are applied whenever the register is read."""

    def __init__(self, events: Optional[Any] = None) -> None:
        self.events = events if events is not None else queue.SimpleQueue()
        self._rows = [0x0F, 0x0F]
        self._data = 0xFF

    def rb(self) -> int:
        """Read the joypad register after applying queued events."""
        self._update()
        return self._data

    def wb(self, value: int) -> None:
        """Select which button rows are visible (bits 4 and 5)."""
        self._data = (self._data & 0xCF) | (value & 0x30)

    def _drain(self) -> None:
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                return
            key = event.key
            if event.pressed:
                self._rows[key.row] &= ~key.mask & 0x0F
            else:
                self._rows[key.row] |= key.mask

    def _update(self) -> None:
        self._drain()
        new_values = 0xF
        if self._data & 0x10 == 0x00:
            new_values &= self._rows[0]
        if self._data & 0x20 == 0x00:
            new_values &= self._rows[1]
        self._data = (self._data & 0xF0) | new_values