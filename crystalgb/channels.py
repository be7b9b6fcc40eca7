"""The four sound channels: two square waves, the wave-RAM channel and noise."""

from __future__ import annotations

from typing import Any

WAVE_PATTERN = (
    (-1, -1, -1, -1, 1, -1, -1, -1),
    (-1, -1, -1, -1, 1, 1, -1, -1),
    (-1, -1, 1, 1, 1, 1, -1, -1),
    (1, 1, 1, 1, -1, -1, 1, 1),
)
SWEEP_DELAY_ZERO_PERIOD = 8

# Extra delay when the wave channel is triggered. Four rather than six because the
# channel runs its sample after the delay reaches zero, not at zero.
WAVE_INITIAL_DELAY = 4

_ENVELOPE_REGS = (0xFF12, 0xFF17, 0xFF21)
_TRIGGER_REGS = (0xFF14, 0xFF19, 0xFF23)
_WAVE_VOLUME_SHIFT = {0: 4 + 2, 1: 0, 2: 1, 3: 2}


class VolumeEnvelope:
    """Periodically raises or lowers a channel's 4-bit volume."""

    def __init__(self) -> None:
        self.period = 0
        self.goes_up = False
        self.delay = 0
        self.initial_volume = 0
        self.volume = 0

    def rb(self, a: int) -> int:
        if a in _ENVELOPE_REGS:
            return (
                ((self.initial_volume & 0xF) << 4)
                | (0x08 if self.goes_up else 0)
                | (self.period & 0x7)
            )
        raise ValueError(f"volume envelope has no register {a:04X}")

    def wb(self, a: int, v: int) -> None:
        if a in _ENVELOPE_REGS:
            self.period = v & 0x7
            self.goes_up = v & 0x8 == 0x8
            self.initial_volume = (v >> 4) & 0xF
            self.volume = self.initial_volume
        elif a in _TRIGGER_REGS and v & 0x80 == 0x80:
            self.delay = self.period
            self.volume = self.initial_volume

    def step(self) -> None:
        """Advance one envelope clock."""
        if self.delay == 0:
            return
        if self.delay > 1:
            self.delay -= 1
            return
        self.delay = self.period
        if self.goes_up and self.volume < 15:
            self.volume += 1
        elif not self.goes_up and self.volume > 0:
            self.volume -= 1


class LengthCounter:
    """Counts down while enabled and silences the channel when it reaches zero."""

    def __init__(self, max_value: int) -> None:
        self.enabled = False
        self.value = 0
        self.max = max_value

    def is_active(self) -> bool:
        return self.value > 0

    @staticmethod
    def _extra_step(frame_step: int) -> bool:
        # True when the previous frame-sequencer step clocked the length counter,
        # i.e. the next step is odd and will not.
        return frame_step % 2 == 1

    def enable(self, enable: bool, frame_step: int) -> None:
        was_enabled = self.enabled
        self.enabled = enable
        if not was_enabled and self._extra_step(frame_step):
            self.step()

    def set(self, minus_value: int) -> None:
        self.value = self.max - minus_value

    def trigger(self, frame_step: int) -> None:
        if self.value == 0:
            self.value = self.max
            if self._extra_step(frame_step):
                self.step()

    def step(self) -> None:
        if self.enabled and self.value > 0:
            self.value -= 1


class SquareChannel:
    """Square wave channel with duty cycle, envelope and optional frequency sweep."""

    def __init__(self, blip: Any, with_sweep: bool = False) -> None:
        self.blip = blip
        self.active = False
        self.dac_enabled = False
        self.duty = 1
        self.phase = 1
        self.length = LengthCounter(64)
        self.frequency = 0
        self.period = 2048
        self.last_amp = 0
        self.delay = 0
        self.has_sweep = with_sweep
        self.sweep_enabled = False
        self.sweep_frequency = 0
        self.sweep_delay = 0
        self.sweep_period = 0
        self.sweep_shift = 0
        self.sweep_negate = False
        self.sweep_did_negate = False
        self.volume_envelope = VolumeEnvelope()

    def on(self) -> bool:
        return self.active

    def rb(self, a: int) -> int:
        if a == 0xFF10:
            return (
                0x80
                | ((self.sweep_period & 0x7) << 4)
                | (0x8 if self.sweep_negate else 0)
                | (self.sweep_shift & 0x7)
            )
        if a in (0xFF11, 0xFF16):
            return ((self.duty & 3) << 6) | 0x3F
        if a in (0xFF12, 0xFF17):
            return self.volume_envelope.rb(a)
        if a in (0xFF13, 0xFF18):
            return 0xFF
        if a in (0xFF14, 0xFF19):
            return 0x80 | (0x40 if self.length.enabled else 0) | 0x3F
        raise ValueError(f"square channel has no register {a:04X}")

    def wb(self, a: int, v: int, frame_step: int) -> None:
        if a == 0xFF10:
            self.sweep_period = (v >> 4) & 0x7
            self.sweep_shift = v & 0x7
            old_negate = self.sweep_negate
            self.sweep_negate = v & 0x8 == 0x8
            if old_negate and not self.sweep_negate and self.sweep_did_negate:
                self.active = False
            self.sweep_did_negate = False
        elif a in (0xFF11, 0xFF16):
            self.duty = (v >> 6) & 0x3
            self.length.set(v & 0x3F)
        elif a in (0xFF12, 0xFF17):
            self.dac_enabled = v & 0xF8 != 0
            self.active = self.active and self.dac_enabled
        elif a in (0xFF13, 0xFF18):
            self.frequency = (self.frequency & 0x0700) | (v & 0xFF)
            self._calculate_period()
        elif a in (0xFF14, 0xFF19):
            self.frequency = (self.frequency & 0x00FF) | ((v & 0x07) << 8)
            self._calculate_period()

            self.length.enable(v & 0x40 == 0x40, frame_step)
            self.active = self.active and self.length.is_active()

            if v & 0x80 == 0x80:
                self._trigger(frame_step)
        self.volume_envelope.wb(a, v)

    def _trigger(self, frame_step: int) -> None:
        if self.dac_enabled:
            self.active = True
        self.length.trigger(frame_step)
        if not self.has_sweep:
            return
        self.sweep_frequency = self.frequency
        self.sweep_delay = self.sweep_period or SWEEP_DELAY_ZERO_PERIOD
        self.sweep_enabled = self.sweep_period > 0 or self.sweep_shift > 0
        if self.sweep_shift > 0:
            self._sweep_calculate_frequency()

    def _calculate_period(self) -> None:
        self.period = 0 if self.frequency > 2047 else (2048 - self.frequency) * 4

    def run(self, start_time: int, end_time: int) -> None:
        """Emit amplitude changes between two clock times, assuming fixed volume."""
        if not self.active or self.period == 0:
            if self.last_amp != 0:
                self.blip.add_delta(start_time, -self.last_amp)
                self.last_amp = 0
                self.delay = 0
            return

        time = start_time + self.delay
        pattern = WAVE_PATTERN[self.duty]
        vol = self.volume_envelope.volume
        while time < end_time:
            amp = vol * pattern[self.phase]
            if amp != self.last_amp:
                self.blip.add_delta(time, amp - self.last_amp)
                self.last_amp = amp
            time += self.period
            self.phase = (self.phase + 1) % 8
        self.delay = time - end_time

    def step_length(self) -> None:
        self.length.step()
        self.active = self.active and self.length.is_active()

    def _sweep_calculate_frequency(self) -> int:
        offset = self.sweep_frequency >> self.sweep_shift
        if self.sweep_negate:
            self.sweep_did_negate = True
            newfreq = (self.sweep_frequency - offset) & 0xFFFF
        else:
            newfreq = (self.sweep_frequency + offset) & 0xFFFF
        if newfreq > 2047:
            self.active = False
        return newfreq

    def step_sweep(self) -> None:
        """Advance one sweep clock; only valid for the channel that has a sweep unit."""
        if not self.has_sweep:
            raise RuntimeError("this square channel has no sweep unit")
        if self.sweep_delay > 1:
            self.sweep_delay -= 1
        elif self.sweep_period == 0:
            self.sweep_delay = SWEEP_DELAY_ZERO_PERIOD
        else:
            self.sweep_delay = self.sweep_period
            if self.sweep_enabled:
                newfreq = self._sweep_calculate_frequency()
                if newfreq <= 2047:
                    if self.sweep_shift != 0:
                        self.sweep_frequency = newfreq
                        self.frequency = newfreq
                        self._calculate_period()
                    self._sweep_calculate_frequency()


class WaveChannel:
    """Plays 32 four-bit samples from wave RAM at one of four volumes."""

    def __init__(self, blip: Any, dmg_mode: bool = False) -> None:
        self.blip = blip
        self.active = False
        self.dac_enabled = False
        self.length = LengthCounter(256)
        self.frequency = 0
        self.period = 2048
        self.last_amp = 0
        self.delay = 0
        self.volume_shift = 0
        self.waveram = bytearray(16)
        self.current_wave = 0
        self.dmg_mode = dmg_mode
        self.sample_recently_accessed = False

    def on(self) -> bool:
        return self.active

    def _waveram_accessible(self) -> bool:
        return not self.dmg_mode or self.sample_recently_accessed

    def rb(self, a: int) -> int:
        if a == 0xFF1A:
            return (0x80 if self.dac_enabled else 0) | 0x7F
        if a in (0xFF1B, 0xFF1D):
            return 0xFF
        if a == 0xFF1C:
            return 0x80 | ((self.volume_shift & 0b11) << 5) | 0x1F
        if a == 0xFF1E:
            return 0x80 | (0x40 if self.length.enabled else 0) | 0x3F
        if 0xFF30 <= a <= 0xFF3F:
            if not self.active:
                return self.waveram[a - 0xFF30]
            if self._waveram_accessible():
                return self.waveram[self.current_wave >> 1]
            return 0xFF
        raise ValueError(f"wave channel has no register {a:04X}")

    def wb(self, a: int, v: int, frame_step: int) -> None:
        if a == 0xFF1A:
            self.dac_enabled = v & 0x80 == 0x80
            self.active = self.active and self.dac_enabled
        elif a == 0xFF1B:
            self.length.set(v & 0xFF)
        elif a == 0xFF1C:
            self.volume_shift = (v >> 5) & 0b11
        elif a == 0xFF1D:
            self.frequency = (self.frequency & 0x0700) | (v & 0xFF)
            self._calculate_period()
        elif a == 0xFF1E:
            self.frequency = (self.frequency & 0x00FF) | ((v & 0b111) << 8)
            self._calculate_period()

            self.length.enable(v & 0x40 == 0x40, frame_step)
            self.active = self.active and self.length.is_active()

            if v & 0x80 == 0x80:
                self._dmg_maybe_corrupt_waveram()
                self.length.trigger(frame_step)
                self.current_wave = 0
                self.delay = self.period + WAVE_INITIAL_DELAY
                if self.dac_enabled:
                    self.active = True
        elif 0xFF30 <= a <= 0xFF3F:
            if not self.active:
                self.waveram[a - 0xFF30] = v & 0xFF
            elif self._waveram_accessible():
                self.waveram[self.current_wave >> 1] = v & 0xFF

    def _calculate_period(self) -> None:
        self.period = 0 if self.frequency > 2048 else (2048 - self.frequency) * 2

    def run(self, start_time: int, end_time: int) -> None:
        """Emit amplitude changes between two clock times.

        Amplitudes are four times the nominal sample value so that the 25% volume
        setting keeps its precision; the mixer scales them back down.
        """
        self.sample_recently_accessed = False
        if not self.active or self.period == 0:
            if self.last_amp != 0:
                self.blip.add_delta(start_time, -self.last_amp)
                self.last_amp = 0
                self.delay = 0
            return

        time = start_time + self.delay
        volshift = _WAVE_VOLUME_SHIFT[self.volume_shift]
        while time < end_time:
            wavebyte = self.waveram[self.current_wave >> 1]
            sample = wavebyte >> 4 if self.current_wave % 2 == 0 else wavebyte & 0xF
            amp = (sample << 2) >> volshift
            if amp != self.last_amp:
                self.blip.add_delta(time, amp - self.last_amp)
                self.last_amp = amp
            if end_time >= 2 and time >= end_time - 2:
                # On the DMG a wave sample can only be accessed at this moment.
                self.sample_recently_accessed = True
            time += self.period
            self.current_wave = (self.current_wave + 1) % 32
        self.delay = time - end_time

    def step_length(self) -> None:
        self.length.step()
        self.active = self.active and self.length.is_active()

    def _dmg_maybe_corrupt_waveram(self) -> None:
        # Retriggering on the DMG while the next sample is about to play corrupts the
        # first bytes of wave RAM; the sample about to play is current_wave + 1.
        if not self.dmg_mode or not self.active or self.delay != 0:
            return
        byteindex = ((self.current_wave + 1) % 32) >> 1
        if byteindex < 4:
            self.waveram[0] = self.waveram[byteindex]
        else:
            blockstart = byteindex & 0b1100
            self.waveram[0:4] = self.waveram[blockstart:blockstart + 4]


class NoiseChannel:
    """Pseudo-random noise from a linear-feedback shift register."""

    def __init__(self, blip: Any) -> None:
        self.blip = blip
        self.active = False
        self.dac_enabled = False
        self.reg_ff22 = 0
        self.length = LengthCounter(64)
        self.volume_envelope = VolumeEnvelope()
        self.period = 2048
        self.shift_width = 14
        self.state = 1
        self.delay = 0
        self.last_amp = 0

    def on(self) -> bool:
        return self.active

    def rb(self, a: int) -> int:
        if a == 0xFF20:
            return 0xFF
        if a == 0xFF21:
            return self.volume_envelope.rb(a)
        if a == 0xFF22:
            return self.reg_ff22
        if a == 0xFF23:
            return 0x80 | (0x40 if self.length.enabled else 0) | 0x3F
        raise ValueError(f"noise channel has no register {a:04X}")

    def wb(self, a: int, v: int, frame_step: int) -> None:
        if a == 0xFF20:
            self.length.set(v & 0x3F)
        elif a == 0xFF21:
            self.dac_enabled = v & 0xF8 != 0
            self.active = self.active and self.dac_enabled
        elif a == 0xFF22:
            self.reg_ff22 = v & 0xFF
            self.shift_width = 6 if v & 8 == 8 else 14
            selector = v & 7
            freq_div = 8 if selector == 0 else (selector + 1) * 16
            self.period = freq_div << ((v & 0xFF) >> 4)
        elif a == 0xFF23:
            self.length.enable(v & 0x40 == 0x40, frame_step)
            self.active = self.active and self.length.is_active()
            if v & 0x80 == 0x80:
                self.length.trigger(frame_step)
                self.state = 0xFF
                self.delay = 0
                if self.dac_enabled:
                    self.active = True
        self.volume_envelope.wb(a, v)

    def run(self, start_time: int, end_time: int) -> None:
        """Emit amplitude changes between two clock times."""
        if not self.active:
            if self.last_amp != 0:
                self.blip.add_delta(start_time, -self.last_amp)
                self.last_amp = 0
                self.delay = 0
            return

        time = start_time + self.delay
        width = self.shift_width
        volume = self.volume_envelope.volume
        while time < end_time:
            oldstate = self.state
            self.state = (self.state << 1) & 0xFFFF
            bit = ((oldstate >> width) ^ (self.state >> width)) & 1
            self.state |= bit

            amp = volume if (oldstate >> width) & 1 else -volume
            if self.last_amp != amp:
                self.blip.add_delta(time, amp - self.last_amp)
                self.last_amp = amp
            time += self.period
        self.delay = time - end_time

    def step_length(self) -> None:
        self.length.step()
        self.active = self.active and self.length.is_active()