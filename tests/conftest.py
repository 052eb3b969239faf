"""
Shared fixtures for the test suite.

Centralizes the reference signals, the direct DFT used as ground truth for
the fast transform, and the mock librosa module used by the ingestion tests.
"""

from collections.abc import Callable, Iterable
from unittest.mock import MagicMock

import numpy as np
import pytest

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

KNOWN_PEAKS_LENGTH: int = 4096
"""Length of the known-peaks test block."""

KNOWN_PEAKS: dict[int, float] = {5: 1.0, 31: 2.0, 53: 5.0, 541: 7.0}
"""Bin → amplitude of the sinusoids summed into the known-peaks block."""

PEAK_TOLERANCE: float = 2e-4
"""Absolute tolerance on normalized amplitudes."""


# ---------------------------------------------------------------------------
# Reference signals
# ---------------------------------------------------------------------------


def make_known_peaks(n: int = KNOWN_PEAKS_LENGTH) -> np.ndarray:
    """1·sin(5) + 2·cos(31) + 5·sin(53) + 7·sin(541), in cycles per block."""
    t = np.arange(n, dtype=np.float64) / n
    return (
        1.0 * np.sin(2 * np.pi * 5 * t)
        + 2.0 * np.cos(2 * np.pi * 31 * t)
        + 5.0 * np.sin(2 * np.pi * 53 * t)
        + 7.0 * np.sin(2 * np.pi * 541 * t)
    )


def reference_power(samples: np.ndarray, weights: np.ndarray | None = None) -> np.ndarray:
    """Direct O(N²) DFT, squared norms of bins 0..N/2, in float64.

    The phase index k·j is reduced mod N before scaling so the angles stay
    small and exact for large k.
    """
    x = np.asarray(samples, dtype=np.float64)
    if weights is not None:
        x = x * weights
    n = len(x)
    j = np.arange(n)
    power = np.empty(n // 2 + 1, dtype=np.float64)
    for k in range(n // 2 + 1):
        angle = 2.0 * np.pi * ((k * j) % n) / n
        re = np.dot(x, np.cos(angle))
        im = -np.dot(x, np.sin(angle))
        power[k] = re * re + im * im
    return power


@pytest.fixture
def known_peaks() -> np.ndarray:
    return make_known_peaks()


@pytest.fixture
def rng() -> np.random.Generator:
    return np.random.default_rng(1234)


# ---------------------------------------------------------------------------
# Fake extractor
# ---------------------------------------------------------------------------


class RecordingExtractor:
    """Stand-in for SpectrumExtractor that records every window it is given.

    Windows arrive as views into the windower's buffer, so they are copied.
    Returns the window's first sample as a one-bin "spectrum".
    """

    def __init__(self) -> None:
        self.windows: list[np.ndarray] = []

    def __call__(self, window: np.ndarray) -> np.ndarray:
        self.windows.append(np.array(window, copy=True))
        return np.array([window[0]], dtype=np.float32)


@pytest.fixture
def recording_extractor() -> RecordingExtractor:
    return RecordingExtractor()


# ---------------------------------------------------------------------------
# Mock librosa
# ---------------------------------------------------------------------------


def make_mock_librosa(
    blocks: Iterable[np.ndarray] | Callable[..., Iterable[np.ndarray]] = (),
    *,
    sr: int = 44100,
    duration: float | None = None,
) -> MagicMock:
    """Return a mock librosa module with get_samplerate/get_duration/stream.

    Args:
        blocks: Chunks yielded by ``stream()``, or a callable producing them
            (use a generator function to simulate a mid-stream failure).
        sr: Sample rate reported by ``get_samplerate()``.
        duration: Seconds reported by ``get_duration()``. None makes
            ``get_duration()`` raise, as for containers without a length.
    """
    mock = MagicMock()
    mock.get_samplerate.return_value = sr
    if duration is None:
        mock.get_duration.side_effect = Exception("duration unavailable")
    else:
        mock.get_duration.return_value = duration

    if callable(blocks):
        mock.stream.side_effect = lambda *args, **kwargs: iter(blocks())
    else:
        chunks = list(blocks)
        mock.stream.side_effect = lambda *args, **kwargs: iter(chunks)
    return mock


@pytest.fixture
def audio_file(tmp_path):
    """An existing file with a supported extension (contents are never read)."""
    path = tmp_path / "track.wav"
    path.write_bytes(b"RIFF fake audio")
    return path
