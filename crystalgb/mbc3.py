"""MBC3 cartridge controller: ROM and RAM banking plus the real-time clock."""

from __future__ import annotations

import os
import time
from pathlib import Path
from typing import Callable, Optional, Union

from .save_state import SaveState

PathLike = Union[str, "os.PathLike[str]"]

_RTC_MASKS = {0: 0x3F, 1: 0x3F, 2: 0x1F, 4: 0xC1}
_SECONDS_PER_DAY = 3600 * 24


class MBC3:
    """Maps cartridge ROM and battery RAM into the address space."""

    def __init__(self, rom: bytes = b"", clock: Callable[[], float] = time.time) -> None:
        self.rom = bytes(rom)
        self.ram = SaveState()
        self.rombank = 1
        self.rambank = 0
        self.selectrtc = False
        self.ram_on = False
        self.savepath: Optional[Path] = None
        self._clock = clock
        self._rtc_ram = [0] * 5
        self._rtc_ram_latch = [0] * 5

    def _now(self) -> int:
        now = int(self._clock())
        if now < 0:
            raise RuntimeError("System clock is set to a time before the unix epoch (1970-01-01)")
        return now

    def _latch_rtc_reg(self) -> None:
        self._calc_rtc_reg()
        self._rtc_ram_latch = list(self._rtc_ram)

    def _calc_rtc_reg(self) -> None:
        if self._rtc_ram[4] & 0x40 == 0x40:
            return  # halted
        tzero = self.ram.rtc_zero
        if self._compute_difftime() == tzero:
            return  # no time has passed

        difftime = max(self._now() - tzero, 0)
        regs = self._rtc_ram
        regs[0] = difftime % 60
        regs[1] = (difftime // 60) % 60
        regs[2] = (difftime // 3600) % 24
        days = difftime // _SECONDS_PER_DAY
        regs[3] = days & 0xFF
        regs[4] = (regs[4] & 0xFE) | ((days >> 8) & 0x01)
        if days >= 512:
            regs[4] |= 0x80
            self._calc_rtc_zero()

    def _compute_difftime(self) -> int:
        regs = self._rtc_ram
        days = ((regs[4] & 0x1) << 8) | regs[3]
        return self._now() - regs[0] - regs[1] * 60 - regs[2] * 3600 - days * _SECONDS_PER_DAY

    def _calc_rtc_zero(self) -> None:
        self.ram.rtc_zero = self._compute_difftime()

    def replace_ram(self, ram: SaveState, path: PathLike) -> None:
        """Use ``ram`` as cartridge RAM, saved back to ``path``."""
        self.ram = ram
        self.savepath = Path(path)

    def set_save_path(self, path: PathLike) -> None:
        self.savepath = Path(path)

    def save_to_disk(self) -> None:
        """Write cartridge RAM to the save path, if one is set."""
        if self.savepath is not None:
            self.ram.write_to_file(self.savepath)

    def readrom(self, a: int) -> int:
        idx = a if a < 0x4000 else (self.rombank * 0x4000) | (a & 0x3FFF)
        return self.rom[idx] if idx < len(self.rom) else 0xFF

    def readram(self, a: int) -> int:
        if not self.ram_on:
            return 0xFF
        if not self.selectrtc and self.rambank < 4:
            return self.ram[(self.rambank * 0x2000) | (a & 0x1FFF)]
        if self.selectrtc and self.rambank < 5:
            return self._rtc_ram_latch[self.rambank]
        return 0xFF

    def writerom(self, a: int, v: int) -> None:
        """Handle a control write to the ROM area."""
        if 0x0000 <= a <= 0x1FFF:
            self.ram_on = (v & 0x0F) == 0x0A
        elif 0x2000 <= a <= 0x3FFF:
            self.rombank = (v & 0x7F) or 1
        elif 0x4000 <= a <= 0x5FFF:
            self.selectrtc = v & 0x8 == 0x8
            self.rambank = v & 0x7
        elif 0x6000 <= a <= 0x7FFF:
            self._latch_rtc_reg()
        else:
            raise ValueError(f"Could not write to {a:04X} (MBC3)")

    def writeram(self, a: int, v: int) -> None:
        if not self.ram_on:
            return
        if not self.selectrtc and self.rambank < 4:
            self.ram[(self.rambank * 0x2000) | (a & 0x1FFF)] = v
        elif self.selectrtc and self.rambank < 5:
            self._calc_rtc_reg()
            self._rtc_ram[self.rambank] = v & _RTC_MASKS.get(self.rambank, 0xFF)
            self._calc_rtc_zero()