# crystalgb

Hardware components of a Game Boy Color, written in plain Python with no
third-party dependencies. Each component exposes its memory-mapped registers
through `rb(address)` / `wb(address, value)` and is advanced with
`do_cycle(ticks)` where it keeps time.

## Components

- `crystalgb.timer.Timer`: the DIV, TIMA, TMA and TAC registers
  (`0xFF04`–`0xFF07`). On TIMA overflow it reloads from TMA and sets bit
  `0x04` in `timer.interrupt`.
- `crystalgb.serial.Serial`: the serial data and control registers
  (`0xFF01`–`0xFF02`). Writing a control value with bits `0x81` set passes the
  data byte to the callback. If the callback returns a byte, that byte
  replaces the data and `0x08` is set in `serial.interrupt`. Use
  `set_callback(cb)` and `unset_callback()` to change the callback.
- `crystalgb.keypad.Keypad`: the joypad register (`0xFF00`). It drains a queue
  (`keypad.events`, a `queue.SimpleQueue` by default) of `KeypadEvent.down(key)`
  and `KeypadEvent.up(key)` events each time the register is read. The keys
  are the `KeypadKey` members `RIGHT`, `LEFT`, `UP`, `DOWN`, `A`, `B`,
  `SELECT` and `START`.
- `crystalgb.mbc3.MBC3(rom=b"", clock=time.time)`: the MBC3 cartridge controller.
  - `readrom`, `readram`, `writerom` and `writeram` handle ROM banking, the
    four 8 KiB RAM banks and the real-time clock registers.
  - The clock is latched by any write to `0x6000`–`0x7FFF`.
  - `replace_ram(ram, path)`, `set_save_path(path)` and `save_to_disk()` handle
    the battery RAM.
- `crystalgb.save_state.SaveState`: 32 KiB of cartridge RAM (indexable with
  `[]`) and `rtc_zero`, the Unix time at which the clock read zero.
  - `SaveState.from_file(path)` and `write_to_file(path)` use an 8-byte
    big-endian `rtc_zero` followed by the RAM.
  - A truncated file raises `EOFError`.
- `crystalgb.saves`: save files with a `.sav` extension in a per-user directory.
  - The directory is under `$HOME` on Linux and macOS and under `%APPDATA%` on
    Windows.
  - The functions are `get_save_dir`, `create_save_dir`, `get_save_path(name)`,
    `save_is_free(name)` and `list_save_files()`.
  - `list_save_files()` returns `SaveFile(path, name)` entries, most recently
    modified first.
- `crystalgb.gpu.Gpu(update_screen=None)`: the colour LCD controller.
  - It handles VRAM (two banks), OAM, the LCD registers and the CGB background
    and sprite palettes.
  - It renders one scanline at a time. Each finished frame is passed as
    160×144 RGB `bytes` to the `update_screen` callback.
  - VBlank sets bit `0x01` in `gpu.interrupt` and STAT interrupts set bit
    `0x02`. `may_hdma()` reports whether an HBlank DMA block may run.
- `crystalgb.blip.BlipBuf(size)`: a band-limited buffer.
  - Amplitude changes are added with `add_delta(time, delta)` at clock times.
  - Each frame is closed with `end_frame(time)`.
  - `read_samples(count)` reads the result back as 16-bit samples.
  - Call `set_rates(clock_rate, sample_rate)` before use.
- `crystalgb.channels`: `SquareChannel` (with an optional frequency sweep),
  `WaveChannel`, `NoiseChannel`, `LengthCounter` and `VolumeEnvelope`.
- `crystalgb.sound.Sound`: the sound controller for registers `0xFF10`–`0xFF3F`.
  - Create it with `Sound.new_cgb(player)` or `Sound.new_dmg(player)`.
  - It runs the frame sequencer and mixes the four channels into stereo
    float samples for an `AudioPlayer`.
  - An `AudioPlayer` implements `play(left, right)`, `samples_rate()` and
    `underflowed()`.
  - `sync()` discards output until the player reports an underflow.

## Installation

```
pip install .
```

To run the tests:

```
pip install .[test]
pytest
```

## Examples

Timer overflow:

```python
from crystalgb.timer import Timer

timer = Timer()
timer.wb(0xFF07, 0x05)   # enable, step of 16 cycles
timer.do_cycle(16 * 256)
assert timer.interrupt & 0x04
```

Joypad:

```python
from crystalgb.keypad import Keypad, KeypadEvent, KeypadKey

keypad = Keypad()
keypad.wb(0x10)                               # select the A/B/Select/Start row
keypad.events.put(KeypadEvent.down(KeypadKey.A))
assert keypad.rb() & 0x01 == 0                # pressed keys read as 0
```

Collecting audio:

```python
from crystalgb.sound import AudioPlayer, Sound

class Collector(AudioPlayer):
    def __init__(self):
        self.left, self.right = [], []
    def play(self, left_channel, right_channel):
        self.left.extend(left_channel)
        self.right.extend(right_channel)
    def samples_rate(self):
        return 44100
    def underflowed(self):
        return True

sound = Sound.new_cgb(Collector())
sound.wb(0xFF26, 0x80)   # power on
```

## What this package does not do

The package has no CPU and no memory unit that connects the components into
one address space. It also leaves out OAM DMA and HDMA transfers, and it
includes no cartridge ROM. It does not open a window, read the keyboard or
play sound through an audio device. Frames go to the `Gpu` callback and
samples go to an `AudioPlayer` you provide. There is no command to run.