import pytest

from crystalgb.timer import Timer


@pytest.mark.parametrize("tac", range(8))
def test_tac_round_trip(tac):
    timer = Timer()
    timer.wb(0xFF07, tac)
    value = timer.rb(0xFF07)
    assert value & 0x07 == tac
    assert value & 0xF8 == 0xF8


def test_divider_advances_every_256_ticks():
    timer = Timer()
    timer.do_cycle(256 * 3 + 100)
    assert timer.rb(0xFF04) == 3


def test_divider_reset_on_write():
    timer = Timer()
    timer.do_cycle(256 * 5)
    timer.wb(0xFF04, 0x77)
    assert timer.rb(0xFF04) == 0


def test_divider_wraps():
    timer = Timer()
    timer.do_cycle(256 * 256)
    assert timer.rb(0xFF04) == 0


def test_counter_counts_when_enabled():
    timer = Timer()
    timer.wb(0xFF07, 0x05)  # enabled, 16 ticks per step
    timer.do_cycle(16 * 7)
    assert timer.rb(0xFF05) == 7
    assert timer.interrupt == 0


def test_counter_stays_when_disabled():
    timer = Timer()
    timer.wb(0xFF05, 9)
    timer.wb(0xFF07, 0x01)
    timer.do_cycle(10_000)
    assert timer.rb(0xFF05) == 9


def test_overflow_reloads_modulo_and_interrupts():
    timer = Timer()
    timer.wb(0xFF06, 0x42)
    timer.wb(0xFF05, 0xFF)
    timer.wb(0xFF07, 0x05)
    timer.do_cycle(16)
    assert timer.rb(0xFF05) == 0x42
    assert timer.interrupt & 0x04 == 0x04


def test_modulo_round_trip():
    timer = Timer()
    timer.wb(0xFF06, 0x99)
    assert timer.rb(0xFF06) == 0x99


def test_bad_addresses_raise():
    timer = Timer()
    with pytest.raises(ValueError):
        timer.rb(0xFF08)
    with pytest.raises(ValueError):
        timer.wb(0xFF03, 0)