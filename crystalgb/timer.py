"""The divider and programmable timer registers (0xFF04-0xFF07)."""

from __future__ import annotations

_STEP_BY_SELECT = {1: 16, 2: 64, 3: 256, 0: 1024}
_SELECT_BY_STEP = {16: 1, 64: 2, 256: 3}


class Timer:
    """DIV, TIMA, TMA and TAC, raising the timer interrupt on overflow."""

    def __init__(self) -> None:
        self.divider = 0
        self.counter = 0
        self.modulo = 0
        self.enabled = False
        self.step = 256
        self._internalcnt = 0
        self._internaldiv = 0
        self.interrupt = 0

    def rb(self, a: int) -> int:
        """Read a timer register."""
        if a == 0xFF04:
            return self.divider
        if a == 0xFF05:
            return self.counter
        if a == 0xFF06:
            return self.modulo
        if a == 0xFF07:
            return 0xF8 | (0x4 if self.enabled else 0) | _SELECT_BY_STEP.get(self.step, 0)
        raise ValueError(f"Timer does not handle read {a:04X}")

    def wb(self, a: int, v: int) -> None:
        """Write a timer register; any write to DIV resets it."""
        if a == 0xFF04:
            self.divider = 0
        elif a == 0xFF05:
            self.counter = v & 0xFF
        elif a == 0xFF06:
            self.modulo = v & 0xFF
        elif a == 0xFF07:
            self.enabled = v & 0x4 != 0
            self.step = _STEP_BY_SELECT[v & 0x3]
        else:
            raise ValueError(f"Timer does not handle write {a:04X}")

    def do_cycle(self, ticks: int) -> None:
        """Advance the timer by ``ticks`` clock cycles."""
        self._internaldiv += ticks
        while self._internaldiv >= 256:
            self.divider = (self.divider + 1) & 0xFF
            self._internaldiv -= 256

        if not self.enabled:
            return
        self._internalcnt += ticks
        while self._internalcnt >= self.step:
            self.counter = (self.counter + 1) & 0xFF
            if self.counter == 0:
                self.counter = self.modulo
                self.interrupt |= 0x04
            self._internalcnt -= self.step