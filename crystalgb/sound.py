"""The audio processing unit: register interface, frame sequencer and stereo mixer."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Sequence

from .blip import BlipBuf
from .channels import NoiseChannel, SquareChannel, WaveChannel

CLOCKS_PER_SECOND = 1 << 22
CLOCKS_PER_FRAME = CLOCKS_PER_SECOND // 512
OUTPUT_SAMPLE_COUNT = 2000
_READ_CHUNK = OUTPUT_SAMPLE_COUNT + 10


class AudioPlayer(ABC):
    """Destination for mixed stereo audio."""

    @abstractmethod
    def play(self, left_channel: Sequence[float], right_channel: Sequence[float]) -> None:
        """Queue a block of left and right samples of equal length."""

    @abstractmethod
    def samples_rate(self) -> int:
        """Output sample rate in Hz."""

    @abstractmethod
    def underflowed(self) -> bool:
        """Whether the player has run out of queued samples."""


def _create_blipbuf(samples_rate: int) -> BlipBuf:
    blip = BlipBuf(samples_rate)
    blip.set_rates(float(CLOCKS_PER_SECOND), float(samples_rate))
    return blip


class Sound:
    """Sound registers 0xFF10-0xFF3F, producing audio for an :class:`AudioPlayer`."""

    def __init__(self, player: AudioPlayer, dmg_mode: bool = False) -> None:
        rate = player.samples_rate()
        self.player = player
        self.dmg_mode = dmg_mode
        self.on = False
        self.time = 0
        self.prev_time = 0
        self.next_time = CLOCKS_PER_FRAME
        self.frame_step = 0
        self.output_period = (OUTPUT_SAMPLE_COUNT * CLOCKS_PER_SECOND) // rate
        self.channel1 = SquareChannel(_create_blipbuf(rate), True)
        self.channel2 = SquareChannel(_create_blipbuf(rate), False)
        self.channel3 = WaveChannel(_create_blipbuf(rate), dmg_mode)
        self.channel4 = NoiseChannel(_create_blipbuf(rate))
        self.volume_left = 7
        self.volume_right = 7
        self.reg_vin_to_so = 0x00
        self.reg_ff25 = 0x00
        self.need_sync = False

    @classmethod
    def new_dmg(cls, player: AudioPlayer) -> "Sound":
        """Sound unit behaving like the original monochrome hardware."""
        return cls(player, dmg_mode=True)

    @classmethod
    def new_cgb(cls, player: AudioPlayer) -> "Sound":
        """Sound unit behaving like the colour hardware."""
        return cls(player, dmg_mode=False)

    @property
    def _channels(self):
        return (self.channel1, self.channel2, self.channel3, self.channel4)

    def rb(self, a: int) -> int:
        """Read a sound register."""
        self._run()
        if 0xFF10 <= a <= 0xFF14:
            return self.channel1.rb(a)
        if 0xFF16 <= a <= 0xFF19:
            return self.channel2.rb(a)
        if 0xFF1A <= a <= 0xFF1E:
            return self.channel3.rb(a)
        if 0xFF20 <= a <= 0xFF23:
            return self.channel4.rb(a)
        if a == 0xFF24:
            return ((self.volume_right & 7) << 4) | (self.volume_left & 7) | self.reg_vin_to_so
        if a == 0xFF25:
            return self.reg_ff25
        if a == 0xFF26:
            return (
                (0x80 if self.on else 0x00)
                | 0x70
                | (0x8 if self.channel4.on() else 0)
                | (0x4 if self.channel3.on() else 0)
                | (0x2 if self.channel2.on() else 0)
                | (0x1 if self.channel1.on() else 0)
            )
        if 0xFF30 <= a <= 0xFF3F:
            return self.channel3.rb(a)
        return 0xFF

    def wb(self, a: int, v: int) -> None:
        """Write a sound register; while powered off only NR52 (and DMG lengths) respond."""
        v &= 0xFF
        if not self.on:
            if self.dmg_mode:
                if a == 0xFF11:
                    self.channel1.wb(a, v & 0x3F, self.frame_step)
                elif a == 0xFF16:
                    self.channel2.wb(a, v & 0x3F, self.frame_step)
                elif a == 0xFF1B:
                    self.channel3.wb(a, v, self.frame_step)
                elif a == 0xFF20:
                    self.channel4.wb(a, v & 0x3F, self.frame_step)
            if a != 0xFF26:
                return

        self._run()
        if 0xFF10 <= a <= 0xFF14:
            self.channel1.wb(a, v, self.frame_step)
        elif 0xFF16 <= a <= 0xFF19:
            self.channel2.wb(a, v, self.frame_step)
        elif 0xFF1A <= a <= 0xFF1E:
            self.channel3.wb(a, v, self.frame_step)
        elif 0xFF20 <= a <= 0xFF23:
            self.channel4.wb(a, v, self.frame_step)
        elif a == 0xFF24:
            self.volume_left = v & 0x7
            self.volume_right = (v >> 4) & 0x7
            self.reg_vin_to_so = v & 0x88
        elif a == 0xFF25:
            self.reg_ff25 = v
        elif a == 0xFF26:
            turn_on = v & 0x80 == 0x80
            if self.on and not turn_on:
                for reg in range(0xFF10, 0xFF26):
                    self.wb(reg, 0)
            if not self.on and turn_on:
                self.frame_step = 0
            self.on = turn_on
        elif 0xFF30 <= a <= 0xFF3F:
            self.channel3.wb(a, v, self.frame_step)

    def do_cycle(self, cycles: int) -> None:
        """Advance by ``cycles`` clocks, delivering audio once enough has accumulated."""
        if not self.on:
            return
        self.time += cycles
        if self.time >= self.output_period:
            self._do_output()

    def sync(self) -> None:
        """Discard output until the player reports an underflow."""
        self.need_sync = True

    def _do_output(self) -> None:
        self._run()
        for channel in self._channels:
            channel.blip.end_frame(self.time)
        self.next_time -= self.time
        self.time = 0
        self.prev_time = 0

        if not self.need_sync or self.player.underflowed():
            self.need_sync = False
            self._mix_buffers()
        else:
            self._clear_buffers()

    def _run_channels(self, start: int, end: int) -> None:
        for channel in self._channels:
            channel.run(start, end)

    def _run(self) -> None:
        while self.next_time <= self.time:
            self._run_channels(self.prev_time, self.next_time)

            if self.frame_step % 2 == 0:
                for channel in self._channels:
                    channel.step_length()
            if self.frame_step % 4 == 2:
                self.channel1.step_sweep()
            if self.frame_step == 7:
                self.channel1.volume_envelope.step()
                self.channel2.volume_envelope.step()
                self.channel4.volume_envelope.step()

            self.frame_step = (self.frame_step + 1) % 8
            self.prev_time = self.next_time
            self.next_time += CLOCKS_PER_FRAME

        if self.prev_time != self.time:
            self._run_channels(self.prev_time, self.time)
            self.prev_time = self.time

    def _mix_buffers(self) -> None:
        sample_count = self.channel1.blip.samples_avail()
        left_vol = (self.volume_left / 7.0) * (1.0 / 15.0) * 0.25
        right_vol = (self.volume_right / 7.0) * (1.0 / 15.0) * 0.25
        # (channel, left enable bit, right enable bit, amplitude divisor);
        # the wave channel outputs four times the nominal amplitude.
        routing = (
            (self.channel1, 0x01, 0x10, 1.0),
            (self.channel2, 0x02, 0x20, 1.0),
            (self.channel3, 0x04, 0x40, 4.0),
            (self.channel4, 0x08, 0x80, 1.0),
        )

        outputted = 0
        while outputted < sample_count:
            left: List[float] = []
            right: List[float] = []
            count = None
            for channel, left_bit, right_bit, divisor in routing:
                samples = channel.blip.read_samples(_READ_CHUNK)
                if count is None:
                    count = len(samples)
                    left = [0.0] * count
                    right = [0.0] * count
                for i, value in enumerate(samples[:count]):
                    scaled = value / divisor
                    if self.reg_ff25 & left_bit:
                        left[i] += scaled * left_vol
                    if self.reg_ff25 & right_bit:
                        right[i] += scaled * right_vol
            if not count:
                break
            self.player.play(left, right)
            outputted += count

    def _clear_buffers(self) -> None:
        for channel in self._channels:
            channel.blip.clear()