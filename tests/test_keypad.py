import queue

import pytest

from crystalgb.keypad import Keypad, KeypadEvent, KeypadKey

DIRECTIONS = [
    (KeypadKey.RIGHT, 1 << 0),
    (KeypadKey.LEFT, 1 << 1),
    (KeypadKey.UP, 1 << 2),
    (KeypadKey.DOWN, 1 << 3),
]
BUTTONS = [
    (KeypadKey.A, 1 << 0),
    (KeypadKey.B, 1 << 1),
    (KeypadKey.SELECT, 1 << 2),
    (KeypadKey.START, 1 << 3),
]


def test_nothing_pressed_reads_all_ones():
    keypad = Keypad()
    assert keypad.rb() & 0x0F == 0x0F


def test_row_select_round_trip():
    keypad = Keypad()
    keypad.wb(0x10)
    assert keypad.rb() & 0x30 == 0x10
    keypad.wb(0x20)
    assert keypad.rb() & 0x30 == 0x20


@pytest.mark.parametrize("key,mask", DIRECTIONS)
def test_direction_press_clears_bit(key, mask):
    keypad = Keypad()
    keypad.wb(0x20)  # direction row selected
    keypad.events.put(KeypadEvent.down(key))
    assert keypad.rb() & 0x0F == 0x0F & ~mask
    keypad.events.put(KeypadEvent.up(key))
    assert keypad.rb() & 0x0F == 0x0F


@pytest.mark.parametrize("key,mask", BUTTONS)
def test_button_press_clears_bit(key, mask):
    keypad = Keypad()
    keypad.wb(0x10)  # button row selected
    keypad.events.put(KeypadEvent.down(key))
    assert keypad.rb() & 0x0F == 0x0F & ~mask


def test_unselected_row_is_hidden():
    keypad = Keypad()
    keypad.wb(0x20)
    keypad.events.put(KeypadEvent.down(KeypadKey.A))
    assert keypad.rb() & 0x0F == 0x0F
    keypad.wb(0x10)
    assert keypad.rb() & 0x0F == 0x0F & ~(1 << 0)


def test_both_rows_selected_combine():
    keypad = Keypad()
    keypad.wb(0x00)
    keypad.events.put(KeypadEvent.down(KeypadKey.UP))
    keypad.events.put(KeypadEvent.down(KeypadKey.START))
    assert keypad.rb() & 0x0F == 0x0F & ~((1 << 2) | (1 << 3))


def test_external_queue_is_used():
    events = queue.Queue()
    keypad = Keypad(events)
    keypad.wb(0x10)
    events.put(KeypadEvent.down(KeypadKey.B))
    assert keypad.rb() & (1 << 1) == 0
    assert events.empty()


def test_event_constructors():
    assert KeypadEvent.down(KeypadKey.A) == KeypadEvent(KeypadKey.A, True)
    assert KeypadEvent.up(KeypadKey.A) == KeypadEvent(KeypadKey.A, False)