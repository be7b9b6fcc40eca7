"""Band-limited sample buffer: turns amplitude changes at clock times into audio samples."""

from __future__ import annotations

from math import cos, pi, sin
from typing import List, Tuple

_PRE_SHIFT = 32
_TIME_BITS = _PRE_SHIFT + 20
_TIME_UNIT = 1 << _TIME_BITS
_BASS_SHIFT = 9
_END_FRAME_EXTRA = 2
_HALF_WIDTH = 8
_BUF_EXTRA = _HALF_WIDTH * 2 + _END_FRAME_EXTRA
_PHASE_BITS = 5
_PHASE_COUNT = 1 << _PHASE_BITS
_DELTA_BITS = 15
_DELTA_UNIT = 1 << _DELTA_BITS
_FRAC_BITS = _TIME_BITS - _PRE_SHIFT
_MAX_RATIO = 1 << 20

_SAMPLE_MAX = 32767
_SAMPLE_MIN = -32768

_CUTOFF = 0.9
_WINDOW_HALF = 9.0


def _kernel(x: float) -> float:
    """Blackman-windowed sinc impulse, band-limited just below Nyquist."""
    if abs(x) >= _WINDOW_HALF:
        return 0.0
    window = (
        0.42
        + 0.5 * cos(pi * x / _WINDOW_HALF)
        + 0.08 * cos(2 * pi * x / _WINDOW_HALF)
    )
    value = _CUTOFF if x == 0 else sin(pi * _CUTOFF * x) / (pi * x)
    return value * window


def _build_step_table() -> Tuple[Tuple[int, ...], ...]:
    # Row p holds the first half of the 16-tap impulse for a sub-sample offset of
    # p/32; the kernel is symmetric, so the second half is row (32 - p) reversed.
    rows = []
    for phase in range(_PHASE_COUNT + 1):
        taps = [_kernel(j - 7 - phase / _PHASE_COUNT) for j in range(_HALF_WIDTH * 2)]
        scale = _DELTA_UNIT / sum(taps)
        rows.append(tuple(round(t * scale) for t in taps[:_HALF_WIDTH]))
    return tuple(rows)


_STEP = _build_step_table()


class BlipBuf:
    """Collects amplitude deltas at clock times and resamples them to an output rate."""

    def __init__(self, size: int) -> None:
        if size < 0:
            raise ValueError("buffer size must not be negative")
        self.size = size
        self._factor = _TIME_UNIT // _MAX_RATIO
        self._offset = 0
        self._avail = 0
        self._integrator = 0
        self._buf: List[int] = []
        self.clear()

    def set_rates(self, clock_rate: float, sample_rate: float) -> None:
        """Set the input clock rate and the output sample rate."""
        if clock_rate <= 0 or sample_rate <= 0:
            raise ValueError("clock and sample rates must be positive")
        factor = _TIME_UNIT * sample_rate / clock_rate
        fixed = int(factor)
        if fixed < factor:
            fixed += 1
        self._factor = fixed

    def clear(self) -> None:
        """Drop all buffered samples and pending deltas."""
        self._offset = self._factor // 2
        self._avail = 0
        self._integrator = 0
        self._buf = [0] * (self.size + _BUF_EXTRA)

    def add_delta(self, time: int, delta: int) -> None:
        """Add an amplitude change of ``delta`` at clock ``time`` within the current frame."""
        fixed = (int(time) * self._factor + self._offset) >> _PRE_SHIFT
        pos = self._avail + (fixed >> _FRAC_BITS)
        if pos < 0 or pos + _HALF_WIDTH * 2 > len(self._buf):
            raise OverflowError("time is beyond the end of the buffer")

        phase_shift = _FRAC_BITS - _PHASE_BITS
        phase = (fixed >> phase_shift) & (_PHASE_COUNT - 1)
        interp = (fixed >> (phase_shift - _DELTA_BITS)) & (_DELTA_UNIT - 1)
        delta2 = (delta * interp) >> _DELTA_BITS
        delta -= delta2

        first = _STEP[phase]
        first_next = _STEP[phase + 1]
        rev = _STEP[_PHASE_COUNT - phase]
        rev_prev = _STEP[_PHASE_COUNT - phase - 1]
        buf = self._buf
        for i in range(_HALF_WIDTH):
            buf[pos + i] += first[i] * delta + first_next[i] * delta2
        for k in range(_HALF_WIDTH):
            j = _HALF_WIDTH - 1 - k
            buf[pos + _HALF_WIDTH + k] += rev[j] * delta + rev_prev[j] * delta2

    def end_frame(self, time: int) -> None:
        """Finish a frame of ``time`` clocks, making its samples available."""
        off = int(time) * self._factor + self._offset
        avail = self._avail + (off >> _TIME_BITS)
        if avail > self.size:
            raise OverflowError("buffer would hold more samples than its size")
        self._avail = avail
        self._offset = off & (_TIME_UNIT - 1)

    def samples_avail(self) -> int:
        """Number of samples ready to be read."""
        return self._avail

    def read_samples(self, count: int) -> List[int]:
        """Read and remove up to ``count`` 16-bit samples."""
        count = max(0, min(count, self._avail))
        if count == 0:
            return []
        out: List[int] = []
        total = self._integrator
        for value in self._buf[:count]:
            s = total >> _DELTA_BITS
            total += value
            s = max(_SAMPLE_MIN, min(_SAMPLE_MAX, s))
            out.append(s)
            total -= s << (_DELTA_BITS - _BASS_SHIFT)
        self._integrator = total
        self._remove_samples(count)
        return out

    def _remove_samples(self, count: int) -> None:
        self._avail -= count
        del self._buf[:count]
        self._buf.extend([0] * count)