import pytest

from crystalgb.save_state import RAM_SIZE, SaveState


def test_new_state_is_zeroed():
    state = SaveState()
    assert len(state.data) == RAM_SIZE
    assert all(b == 0 for b in state.data)
    assert state.rtc_zero == 0


def test_set_and_get_byte():
    state = SaveState()
    state[0x1234] = 0xAB
    assert state[0x1234] == 0xAB
    assert state[0x1235] == 0


def test_round_trip_through_file(tmp_path):
    path = tmp_path / "game.sav"
    state = SaveState()
    state[0] = 1
    state[RAM_SIZE - 1] = 200
    state.rtc_zero = 1_600_000_000
    state.write_to_file(path)

    loaded = SaveState.from_file(path)
    assert loaded.data == state.data
    assert loaded.rtc_zero == 1_600_000_000


def test_file_layout_is_big_endian_header_then_ram(tmp_path):
    path = tmp_path / "layout.sav"
    state = SaveState()
    state.rtc_zero = 0x0102030405060708
    state[0] = 0x5A
    state.write_to_file(path)

    raw = path.read_bytes()
    assert len(raw) == 8 + RAM_SIZE
    assert raw[:8] == (0x0102030405060708).to_bytes(8, "big")
    assert raw[8] == 0x5A


def test_truncated_file_raises(tmp_path):
    path = tmp_path / "short.sav"
    path.write_bytes(bytes(8 + 100))
    with pytest.raises(EOFError):
        SaveState.from_file(path)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        SaveState.from_file(tmp_path / "absent.sav")


def test_out_of_range_address_raises():
    state = SaveState()
    with pytest.raises(IndexError):
        state[RAM_SIZE]
    with pytest.raises(IndexError):
        state[-1] = 3
    assert state[RAM_SIZE - 1] == 0
    assert bytes(state.data) == bytes(RAM_SIZE)


def test_byte_value_must_fit():
    state = SaveState()
    with pytest.raises(ValueError):
        state[0] = 256
    assert state[0] == 0


def test_wrong_size_data_rejected():
    with pytest.raises(ValueError):
        SaveState(bytearray(10))