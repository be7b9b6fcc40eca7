import pytest

from crystalgb.mbc3 import MBC3
from crystalgb.save_state import SaveState


class FakeClock:
    def __init__(self, now):
        self.now = now

    def __call__(self):
        return self.now


def banked_rom(banks):
    return b"".join(bytes([n]) * 0x4000 for n in range(banks))


def enabled(mbc):
    mbc.writerom(0x0000, 0x0A)
    return mbc


def test_bank_zero_is_fixed():
    mbc = MBC3(banked_rom(4))
    mbc.writerom(0x2000, 3)
    assert mbc.readrom(0x0000) == 0
    assert mbc.readrom(0x3FFF) == 0


def test_rom_bank_switching():
    mbc = MBC3(banked_rom(4))
    assert mbc.readrom(0x4000) == 1
    mbc.writerom(0x2000, 2)
    assert mbc.rombank == 2
    assert mbc.readrom(0x7FFF) == 2


def test_rom_bank_zero_maps_to_one():
    mbc = MBC3(banked_rom(4))
    mbc.writerom(0x2000, 0)
    assert mbc.rombank == 1


def test_read_past_rom_end():
    mbc = MBC3(banked_rom(2))
    mbc.writerom(0x2000, 3)
    assert mbc.readrom(0x4000) == 0xFF


def test_ram_disabled():
    mbc = MBC3()
    mbc.writeram(0xA000, 0x55)
    assert mbc.readram(0xA000) == 0xFF
    enabled(mbc)
    assert mbc.readram(0xA000) == 0


def test_ram_banks_are_separate():
    mbc = enabled(MBC3())
    mbc.writerom(0x4000, 0)
    mbc.writeram(0xA010, 0x11)
    mbc.writerom(0x4000, 1)
    mbc.writeram(0xA010, 0x22)
    assert mbc.readram(0xA010) == 0x22
    mbc.writerom(0x4000, 0)
    assert mbc.readram(0xA010) == 0x11


def test_ram_disable_again():
    mbc = enabled(MBC3())
    mbc.writeram(0xA000, 0x33)
    mbc.writerom(0x0000, 0x00)
    assert mbc.readram(0xA000) == 0xFF


def test_rtc_seconds_written_latched_and_advancing():
    clock = FakeClock(1_000_000)
    mbc = enabled(MBC3(clock=clock))
    mbc.writerom(0x4000, 0x08)  # RTC seconds
    mbc.writeram(0xA000, 30)
    mbc.writerom(0x6000, 0)
    assert mbc.readram(0xA000) == 30

    clock.now += 10
    assert mbc.readram(0xA000) == 30  # still latched
    mbc.writerom(0x6000, 0)
    assert mbc.readram(0xA000) == 30 + 10


def test_rtc_halt_freezes_registers():
    clock = FakeClock(1_000_000)
    mbc = enabled(MBC3(clock=clock))
    mbc.writerom(0x4000, 0x08)
    mbc.writeram(0xA000, 5)
    mbc.writerom(0x4000, 0x0C)  # RTC control
    mbc.writeram(0xA000, 0x40)
    mbc.writerom(0x6000, 0)
    mbc.writerom(0x4000, 0x08)
    before = mbc.readram(0xA000)

    clock.now += 100
    mbc.writerom(0x6000, 0)
    assert mbc.readram(0xA000) == before


def test_save_to_disk_round_trip(tmp_path):
    path = tmp_path / "cart.sav"
    mbc = enabled(MBC3())
    mbc.replace_ram(SaveState(), path)
    mbc.writeram(0xA123, 0x7E)
    mbc.save_to_disk()
    assert SaveState.from_file(path)[0x0123] == 0x7E


def test_set_save_path(tmp_path):
    path = tmp_path / "other.sav"
    mbc = MBC3()
    mbc.set_save_path(path)
    mbc.save_to_disk()
    assert path.is_file()


def test_save_without_path_writes_nothing(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    mbc = enabled(MBC3())
    mbc.writeram(0xA000, 0x44)
    mbc.save_to_disk()
    assert list(tmp_path.iterdir()) == []
    assert mbc.readram(0xA000) == 0x44


def test_write_outside_rom_area_raises():
    with pytest.raises(ValueError):
        MBC3().writerom(0x8000, 0)