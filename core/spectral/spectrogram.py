"""
core/spectral/spectrogram.py — Append-only store of spectra and its display queries.

One writer (the decoding producer) appends spectra; any number of readers
query them. A lock guards appends and snapshots only. Every stored
spectrum is made read-only before it is published, and nothing is ever
removed or replaced, so a snapshot taken at any moment stays valid.

Display queries are pure functions of (pixel, output size, current
contents): rendering at a new size never mutates the store.
"""

from __future__ import annotations

import threading
from collections.abc import Iterable

import numpy as np

from core.spectral.axis import (
    column_interval,
    overlapping_spectra,
    row_to_bin,
    time_span,
    to_intensities,
)
from core.spectral.config import DEFAULT_CONFIG, AnalysisConfig
from core.spectral.spectrum import spectrum_length
from core.spectral.window import HANN, WindowFunction


class Spectrogram:
    """Time-ordered spectra for one audio source.

    Args:
        config: Analysis parameters (window length, hop, intensity mapping).
        window: Window the spectra were computed with; its integral weights
            overlapping spectra when resampling for display.

    Example:
        spectrogram = Spectrogram(config)
        spectrogram.extend(windower.push(chunk))
        image = spectrogram.render(800, 400)
    """

    def __init__(
        self,
        config: AnalysisConfig = DEFAULT_CONFIG,
        window: WindowFunction = HANN,
    ) -> None:
        self.config = config
        self.window = window
        self._spectra: list[np.ndarray] = []
        self._lock = threading.Lock()

    @property
    def spectrum_length(self) -> int:
        return spectrum_length(self.config.window_length)

    # ------------------------------------------------------------------
    # Writer side
    # ------------------------------------------------------------------

    def append(self, spectrum: np.ndarray) -> None:
        """Publish one spectrum. It is copied and frozen first.

        Raises:
            ValueError: If the spectrum length does not match the config.
        """
        frozen = np.array(spectrum, dtype=np.float32)
        if frozen.shape != (self.spectrum_length,):
            raise ValueError(
                f"Spectrum must have {self.spectrum_length} bins, got shape {frozen.shape}"
            )
        frozen.setflags(write=False)
        with self._lock:
            self._spectra.append(frozen)

    def extend(self, spectra: Iterable[np.ndarray]) -> int:
        """Publish spectra in order. Returns how many were appended."""
        count = 0
        for spectrum in spectra:
            self.append(spectrum)
            count += 1
        return count

    # ------------------------------------------------------------------
    # Reader side
    # ------------------------------------------------------------------

    def spectrum_count(self) -> int:
        with self._lock:
            return len(self._spectra)

    def __len__(self) -> int:
        return self.spectrum_count()

    def get_spectrum(self, index: int) -> np.ndarray:
        """Return spectrum `index` (read-only float32 array).

        Raises:
            IndexError: If index is negative or >= spectrum_count().
        """
        with self._lock:
            count = len(self._spectra)
            if not 0 <= index < count:
                raise IndexError(f"Spectrum index {index} out of range [0, {count})")
            return self._spectra[index]

    def snapshot(self) -> tuple[np.ndarray, ...]:
        """All spectra published so far."""
        with self._lock:
            return tuple(self._spectra)

    def span_samples(self, spectra: tuple[np.ndarray, ...] | None = None) -> int:
        """Samples covered by the analyzed windows."""
        count = len(spectra) if spectra is not None else self.spectrum_count()
        return time_span(count, self.config.window_length, self.config.hop)

    # ------------------------------------------------------------------
    # Display queries
    # ------------------------------------------------------------------

    def sample_intensity(
        self,
        x: int,
        y: int,
        width: int,
        height: int,
        *,
        total_samples: int | None = None,
    ) -> float:
        """Display intensity in [0, 1] for pixel (x, y) of a width×height image.

        Args:
            x: Column, 0 is the start of the audio.
            y: Row, 0 is the top (Nyquist), height-1 the bottom.
            width, height: Output resolution.
            total_samples: Length of the time axis in samples. Defaults to
                the span of the spectra computed so far; pass the decoder's
                total to keep the axis fixed while decoding is in progress.

        Raises:
            ValueError: If the pixel lies outside the output grid.
        """
        spectra = self.snapshot()
        rows = _row_table([y], height, self.spectrum_length)
        span = total_samples if total_samples is not None else self.span_samples(spectra)
        values = self._column_values(spectra, x, width, span, rows)
        intensities = to_intensities(
            values, self.config.intensity_offset, self.config.intensity_scale
        )
        return float(intensities[0])

    def render(self, width: int, height: int, *, total_samples: int | None = None) -> np.ndarray:
        """Intensity image of shape (height, width), float32 in [0, 1].

        Equivalent to calling `sample_intensity` for every pixel, computed
        one column at a time.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Output size must be positive, got {width}x{height}")
        spectra = self.snapshot()
        rows = _row_table(range(height), height, self.spectrum_length)
        span = total_samples if total_samples is not None else self.span_samples(spectra)

        values = np.empty((height, width), dtype=np.float64)
        for x in range(width):
            values[:, x] = self._column_values(spectra, x, width, span, rows)
        image = to_intensities(values, self.config.intensity_offset, self.config.intensity_scale)
        return image.astype(np.float32)

    def _column_values(
        self,
        spectra: tuple[np.ndarray, ...],
        x: int,
        width: int,
        span: float,
        rows: tuple[np.ndarray, np.ndarray, np.ndarray],
    ) -> np.ndarray:
        """Normalized weighted-mean power for the given rows of column x."""
        lower, upper, fraction = rows
        t_min, t_max = column_interval(x, width, span)
        weighted = overlapping_spectra(
            t_min,
            t_max,
            spectrum_count=len(spectra),
            window_length=self.config.window_length,
            hop=self.config.hop,
            window=self.window,
        )
        total = np.zeros(len(lower), dtype=np.float64)
        weight_sum = 0.0
        for index, weight in weighted:
            s = spectra[index]
            interpolated = s[lower] * (1.0 - fraction) + s[upper] * fraction
            total += weight * interpolated
            weight_sum += weight
        if weight_sum <= 0.0:
            return total
        return total / weight_sum / (self.config.window_length / 2)


def _row_table(
    rows: Iterable[int], height: int, spectrum_len: int
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    lower, upper, fraction = [], [], []
    for row in rows:
        lo, hi, frac = row_to_bin(row, height, spectrum_len)
        lower.append(lo)
        upper.append(hi)
        fraction.append(frac)
    return (
        np.array(lower, dtype=np.intp),
        np.array(upper, dtype=np.intp),
        np.array(fraction, dtype=np.float64),
    )
