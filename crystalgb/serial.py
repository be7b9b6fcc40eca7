"""The serial link port registers (0xFF01-0xFF02)."""

from __future__ import annotations

from typing import Callable, Optional

SerialCallback = Callable[[int], Optional[int]]


class Serial:
    """SB and SC; a transfer hands the outgoing byte to a callback."""

    def __init__(self, callback: Optional[SerialCallback] = None) -> None:
        self.data = 0
        self.control = 0
        self.interrupt = 0
        self._callback: Optional[SerialCallback] = callback

    def wb(self, a: int, v: int) -> None:
        """Write SB or SC; starting an internal-clock transfer calls the callback."""
        if a == 0xFF01:
            self.data = v & 0xFF
        elif a == 0xFF02:
            self.control = v & 0xFF
            if v & 0x81 == 0x81 and self._callback is not None:
                reply = self._callback(self.data)
                if reply is not None:
                    self.data = reply & 0xFF
                    self.interrupt = 0x8
        else:
            raise ValueError(f"Serial does not handle address {a:04X} (write)")

    def rb(self, a: int) -> int:
        """Read SB or SC."""
        if a == 0xFF01:
            return self.data
        if a == 0xFF02:
            return self.control | 0b01111110
        raise ValueError(f"Serial does not handle address {a:04X} (read)")

    def set_callback(self, cb: SerialCallback) -> None:
        """Use ``cb`` for subsequent transfers."""
        self._callback = cb

    def unset_callback(self) -> None:
        """Drop the callback so transfers get no reply."""
        self._callback = None