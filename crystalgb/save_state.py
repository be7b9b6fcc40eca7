"""Battery-backed cartridge RAM together with the real-time-clock origin."""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Union

RAM_SIZE = 0x8000
_RTC_BYTES = 8

PathLike = Union[str, "os.PathLike[str]"]


@dataclass
class SaveState:
    """32 KiB of cartridge RAM plus the Unix time at which the RTC read zero."""

    data: bytearray = field(default_factory=lambda: bytearray(RAM_SIZE))
    rtc_zero: int = 0

    def __post_init__(self) -> None:
        self.data = bytearray(self.data)
        if len(self.data) != RAM_SIZE:
            raise ValueError(f"save RAM must be {RAM_SIZE} bytes, got {len(self.data)}")

    @classmethod
    def from_file(cls, path: PathLike) -> "SaveState":
        """Load a save file: an 8-byte big-endian RTC origin followed by the RAM."""
        with open(path, "rb") as fh:
            rtc_bytes = fh.read(_RTC_BYTES)
            data = fh.read(RAM_SIZE)
        if len(rtc_bytes) != _RTC_BYTES or len(data) != RAM_SIZE:
            raise EOFError(f"{os.fspath(path)}: save file is truncated")
        return cls(bytearray(data), int.from_bytes(rtc_bytes, "big"))

    def write_to_file(self, path: PathLike) -> None:
        """Write the save state in the format read by :meth:`from_file`."""
        with open(path, "wb") as fh:
            fh.write(self.rtc_zero.to_bytes(_RTC_BYTES, "big"))
            fh.write(self.data)

    @staticmethod
    def _check(addr: int) -> None:
        if not 0 <= addr < RAM_SIZE:
            raise IndexError(f"save RAM address {addr:#x} out of range")

    def __getitem__(self, addr: int) -> int:
        self._check(addr)
        return self.data[addr]

    def __setitem__(self, addr: int, value: int) -> None:
        self._check(addr)
        self.data[addr] = value