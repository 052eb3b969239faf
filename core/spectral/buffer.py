"""
core/spectral/buffer.py — Push-driven windowing of a sample stream.

`SampleWindower` accumulates decoded samples and turns them into spectra as
soon as a full window is available. Windows overlap: after each window the
first `hop` samples are dropped, not the whole window.

State machine::

    ACCUMULATING ──(buffered >= window_length)──→ READY
         ↑                                          │ emit, drop `hop`
         └──────────(buffered < window_length)──────┘

    any state ──finish()──→ FINISHED ──reset()──→ ACCUMULATING

The caller drives it: each `push()` returns the zero or more spectra that
became computable. At end of stream, `finish()` pads the samples that no
window has covered yet with silence and emits one last window, so trailing
audio shorter than a window is still analyzed.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from enum import Enum

import numpy as np

from core.spectral.fft import is_power_of_two
from core.spectral.spectrum import SpectrumExtractor

logger = logging.getLogger(__name__)


class WindowState(Enum):
    """Windowing state machine states."""

    ACCUMULATING = "accumulating"
    READY = "ready"
    FINISHED = "finished"


class SampleWindower:
    """Slice an incoming sample stream into overlapping analysis windows.

    Args:
        window_length: Samples per window. Power of two >= 2.
        hop: Samples between consecutive window starts. 0 < hop < window_length.
        extractor: Callable mapping one window (float32 array of
            `window_length` samples) to its spectrum. Defaults to a Hann
            `SpectrumExtractor`.

    Invariants:
        - Window i starts at sample offset i * hop of the stream.
        - No window is emitted twice.
    """

    def __init__(
        self,
        window_length: int,
        hop: int,
        extractor: Callable[[np.ndarray], np.ndarray] | None = None,
    ) -> None:
        if window_length < 2 or not is_power_of_two(window_length):
            raise ValueError(f"window_length must be a power of two >= 2, got {window_length}")
        if not 0 < hop < window_length:
            raise ValueError(f"hop must satisfy 0 < hop < window_length, got {hop}")
        self.window_length = window_length
        self.hop = hop
        self._extract = extractor if extractor is not None else SpectrumExtractor(window_length)
        self.reset()

    def reset(self) -> None:
        """Discard buffered samples and counters; start a new stream."""
        self._pending = np.zeros(0, dtype=np.float32)
        self._finished = False
        self.samples_received = 0
        self.windows_emitted = 0

    @property
    def state(self) -> WindowState:
        if self._finished:
            return WindowState.FINISHED
        if len(self._pending) >= self.window_length:
            return WindowState.READY
        return WindowState.ACCUMULATING

    @property
    def buffered(self) -> int:
        """Samples currently held (including overlap with the last window)."""
        return len(self._pending)

    @property
    def next_window_offset(self) -> int:
        """Stream offset, in samples, where the next window will start."""
        return self.windows_emitted * self.hop

    def push(self, samples: np.ndarray) -> list[np.ndarray]:
        """Append samples and return the spectra of every completed window.

        Args:
            samples: 1-D chunk of any length (may be empty).

        Returns:
            Spectra in stream order. Empty while accumulating.

        Raises:
            RuntimeError: If called after finish() without reset().
            ValueError: If samples is not one-dimensional.
        """
        if self._finished:
            raise RuntimeError("Stream already finished; call reset() before pushing more samples")
        chunk = np.asarray(samples, dtype=np.float32)
        if chunk.ndim != 1:
            raise ValueError(f"Expected a 1-D sample chunk, got shape {chunk.shape}")

        self.samples_received += len(chunk)
        if len(chunk):
            self._pending = np.concatenate((self._pending, chunk))
        return self._drain()

    def finish(self) -> list[np.ndarray]:
        """Mark end of stream and flush the partial window, zero-padded.

        Only samples that no emitted window has covered trigger a final
        window; a stream that ended exactly on a window boundary emits
        nothing more. Calling finish() twice returns [] the second time.
        """
        if self._finished:
            return []
        self._finished = True

        covered = self.window_length - self.hop if self.windows_emitted else 0
        if len(self._pending) <= covered:
            self._pending = np.zeros(0, dtype=np.float32)
            return []

        padded = np.zeros(self.window_length, dtype=np.float32)
        padded[: len(self._pending)] = self._pending
        logger.debug(
            "Padding final window at offset %d with %d samples of silence",
            self.next_window_offset,
            self.window_length - len(self._pending),
        )
        self._pending = np.zeros(0, dtype=np.float32)
        self.windows_emitted += 1
        return [self._extract(padded)]

    def _drain(self) -> list[np.ndarray]:
        spectra: list[np.ndarray] = []
        start = 0
        while len(self._pending) - start >= self.window_length:
            spectra.append(self._extract(self._pending[start : start + self.window_length]))
            self.windows_emitted += 1
            start += self.hop
        if start:
            self._pending = self._pending[start:].copy()
        return spectra
