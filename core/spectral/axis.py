"""
core/spectral/axis.py — Map output pixels onto spectrogram coordinates.

Frequency axis
--------------
`map_axis` blends a logarithmic and a linear interpolation of [lo, hi]:

    log(t) = 2^(log2(lo) + t·(log2(hi) - log2(lo)))
    lin(t) = lo + t·(hi - lo)
    map_axis(t) = lin(t)·t + log(t)·(1 - t)

At t = 0 it is purely logarithmic, at t = 1 purely linear. Low
frequencies get the room a log scale gives them, while the top of the
spectrum (where lossy encoders cut off) is not squashed into a few rows.

Time axis
---------
A pixel column covers a sample interval [t_min, t_max). Spectrum i was
computed from samples [i·hop, i·hop + L). Each spectrum overlapping the
column contributes with weight equal to the window's integral over the
part of its window inside the column, so overlapping windows are neither
double counted nor leave gaps.

Intensity
---------
The weighted mean power is divided by L/2 and log-compressed:
`clamp(offset + ln(value)·scale, 0, 1)`.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import numpy as np

from core.spectral.window import WindowFunction


@dataclass(frozen=True)
class Tick:
    """An axis tick label."""

    position: float
    """0.0 is bottom/left, 1.0 is top/right."""

    label: str


# ---------------------------------------------------------------------------
# Frequency axis
# ---------------------------------------------------------------------------


def map_axis(t: float, lo: float, hi: float) -> float:
    """Map t ∈ [0, 1] onto [lo, hi], logarithmic near lo and linear near hi.

    Raises:
        ValueError: If t is outside [0, 1] or lo/hi are not positive.
    """
    if not 0.0 <= t <= 1.0:
        raise ValueError(f"t must be in [0, 1], got {t}")
    if lo <= 0.0 or hi <= 0.0:
        raise ValueError(f"Axis bounds must be positive, got [{lo}, {hi}]")
    log_lo = math.log2(lo)
    log_hi = math.log2(hi)
    y_log = 2.0 ** (log_lo + t * (log_hi - log_lo))
    y_lin = lo + t * (hi - lo)
    return y_lin * t + y_log * (1.0 - t)


def format_frequency(hz: float) -> str:
    if hz > 10_000.0:
        return f"{hz / 1000.0:.1f} kHz"
    if hz > 1000.0:
        return f"{hz / 1000.0:.2f} kHz"
    return f"{hz:.0f} Hz"


def frequency_ticks(sample_rate: int, window_length: int, count: int = 10) -> tuple[Tick, ...]:
    """Evenly spaced tick positions labelled with their mapped frequency.

    The lowest frequency shown is one period per window (sample_rate / L),
    the highest is Nyquist (sample_rate / 2).
    """
    if sample_rate <= 0:
        raise ValueError(f"sample_rate must be positive, got {sample_rate}")
    if count < 2:
        raise ValueError(f"count must be at least 2, got {count}")
    hz_min = sample_rate / window_length
    hz_max = sample_rate / 2.0
    ticks = []
    for i in range(count):
        t = i / (count - 1)
        ticks.append(Tick(position=t, label=format_frequency(map_axis(t, hz_min, hz_max))))
    return tuple(ticks)


def row_to_bin(row: int, height: int, spectrum_len: int) -> tuple[int, int, float]:
    """Fractional spectrum bin shown at a pixel row (row 0 is the top).

    Returns:
        (lower_bin, upper_bin, fraction) for linear interpolation:
        value = s[lower]·(1 - fraction) + s[upper]·fraction.
    """
    _check_pixel("row", row, height)
    last = spectrum_len - 1
    t = 1.0 - row / (height - 1) if height > 1 else 0.0
    position = map_axis(t, 1.0, float(last)) if last >= 1 else 0.0
    lower = min(int(position), last)
    upper = min(lower + 1, last)
    return lower, upper, position - lower


# ---------------------------------------------------------------------------
# Time axis
# ---------------------------------------------------------------------------


def time_span(spectrum_count: int, window_length: int, hop: int) -> int:
    """Samples covered by `spectrum_count` analyzed windows."""
    if spectrum_count <= 0:
        return 0
    return (spectrum_count - 1) * hop + window_length


def column_interval(column: int, width: int, span: float) -> tuple[float, float]:
    """Sample interval [t_min, t_max) shown by a pixel column."""
    _check_pixel("column", column, width)
    return column * span / width, (column + 1) * span / width


def overlapping_spectra(
    t_min: float,
    t_max: float,
    *,
    spectrum_count: int,
    window_length: int,
    hop: int,
    window: WindowFunction,
) -> list[tuple[int, float]]:
    """Spectra whose window overlaps [t_min, t_max), with their weights.

    Returns:
        (index, weight) pairs in index order. The weight is the window's
        integral over the overlapping fraction of that spectrum's window.
        If every overlapping weight is zero (a sliver at a window edge),
        each overlapping spectrum gets weight 1.0 instead.
    """
    if spectrum_count <= 0 or t_max <= t_min:
        return []

    first = max(0, math.floor((t_min - window_length) / hop) + 1)
    last = min(spectrum_count - 1, math.ceil(t_max / hop) - 1)

    pairs: list[tuple[int, float]] = []
    for i in range(first, last + 1):
        start = i * hop
        lo = max(t_min, start)
        hi = min(t_max, start + window_length)
        if hi <= lo:
            continue
        a = (lo - start) / window_length
        b = (hi - start) / window_length
        pairs.append((i, window.integral(a, b)))

    if pairs and all(w <= 0.0 for _, w in pairs):
        return [(i, 1.0) for i, _ in pairs]
    return [(i, w) for i, w in pairs if w > 0.0]


# ---------------------------------------------------------------------------
# Intensity
# ---------------------------------------------------------------------------


def to_intensity(value: float, offset: float = 0.5, scale: float = 0.05) -> float:
    """Log-compress a normalized power value into a display intensity in [0, 1]."""
    if not value > 0.0:
        return 0.0
    return min(1.0, max(0.0, offset + math.log(value) * scale))


def to_intensities(values: np.ndarray, offset: float = 0.5, scale: float = 0.05) -> np.ndarray:
    """Vectorized `to_intensity`."""
    out = np.zeros(values.shape, dtype=np.float64)
    positive = values > 0.0
    out[positive] = offset + np.log(values[positive]) * scale
    return np.clip(out, 0.0, 1.0)


def _check_pixel(name: str, index: int, size: int) -> None:
    if size <= 0:
        raise ValueError(f"Output size must be positive, got {size}")
    if not 0 <= index < size:
        raise ValueError(f"{name} {index} outside [0, {size})")
