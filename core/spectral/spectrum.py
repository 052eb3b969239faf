"""
core/spectral/spectrum.py — Window, transform and reduce a block to a spectrum.

A spectrum is the squared norm of each transform coefficient for bins
0 .. N/2 inclusive (DC through Nyquist), N/2 + 1 values in total. The
transform of real input is conjugate-symmetric, X[N-k] = conj(X[k]), so
the upper half carries no additional information and is not returned.

Values are float32: a spectrogram holds thousands of spectra and the
display path does not need more precision than that.
"""

from __future__ import annotations

import numpy as np

from core.spectral.complex import Complex
from core.spectral.fft import cooley_tukey, is_power_of_two
from core.spectral.window import HANN, WindowFunction, window_weights


def spectrum_length(window_length: int) -> int:
    """Number of bins in the spectrum of a `window_length`-sample block."""
    return window_length // 2 + 1


class SpectrumExtractor:
    """Reusable spectrum computation for one fixed window length.

    The complex buffer, the transform scratch buffer and the window weights
    are allocated once in the constructor and reused by every call.

    Not safe to call concurrently from several threads (the buffers are
    shared); create one extractor per producer.

    Example:
        extract = SpectrumExtractor(4096)
        power = extract(samples[:4096])   # shape (2049,), float32
    """

    def __init__(self, window_length: int, window: WindowFunction = HANN) -> None:
        if window_length < 2 or not is_power_of_two(window_length):
            raise ValueError(f"window_length must be a power of two >= 2, got {window_length}")
        self.window_length = window_length
        self.window = window
        self._weights = window_weights(window, window_length)
        self._buffer = Complex.zeros(window_length)
        self._scratch = Complex.zeros(window_length // 2)

    @property
    def spectrum_length(self) -> int:
        return spectrum_length(self.window_length)

    def __call__(self, samples: np.ndarray) -> np.ndarray:
        """Compute the spectrum of one block.

        Args:
            samples: Real samples, exactly `window_length` of them.

        Returns:
            New float32 array of `window_length // 2 + 1` squared magnitudes.

        Raises:
            ValueError: If the block has the wrong length.
        """
        block = np.asarray(samples)
        if block.shape != (self.window_length,):
            raise ValueError(
                f"Expected a block of {self.window_length} samples, got shape {block.shape}"
            )
        np.multiply(block, self._weights, out=self._buffer.real)
        self._buffer.imag.fill(0.0)

        cooley_tukey(self._buffer, self._scratch)

        return self._buffer[: self.spectrum_length].norm_sqr().astype(np.float32)

    def transform(self, samples: np.ndarray) -> np.ndarray:
        """Full windowed transform of one block as a complex128 array.

        Same windowing and transform as `__call__`, but returns all N
        coefficients (used to inspect the discarded upper half).
        """
        block = np.asarray(samples, dtype=np.float64)
        if block.shape != (self.window_length,):
            raise ValueError(
                f"Expected a block of {self.window_length} samples, got shape {block.shape}"
            )
        buffer = Complex.from_real(block * self._weights)
        cooley_tukey(buffer, self._scratch)
        return buffer.to_numpy()


def compute_spectrum(samples: np.ndarray, window: WindowFunction = HANN) -> np.ndarray:
    """One-shot spectrum of a power-of-two length block.

    Allocates a fresh extractor; use `SpectrumExtractor` when processing
    many blocks of the same length.
    """
    block = np.asarray(samples)
    return SpectrumExtractor(len(block), window=window)(block)
