"""
ingestion/spectrogram_engine.py — Orchestrates decoding, windowing and rendering.

SpectrogramEngine wires the pipeline together:

    audio file
        │
        ├─ probe_audio() / stream_audio()   [ingestion/audio_loader.py — I/O boundary]
        │       ↓ mono float32 chunks
        ├─ SampleWindower.push()            [core/spectral/buffer.py — windowing]
        │       ↓ spectra
        ├─ Spectrogram.extend()             [core/spectral/spectrogram.py — append-only store]
        │       ↓
        └─ Spectrogram.render()             [core/spectral/axis.py — pixel mapping]

Decoding runs in bounded steps (`blocks_per_step` decoder chunks each), so
a caller can render intermediate results between steps, or run the steps
on a background thread with `start()` while another thread renders.
There is exactly one producer per engine; readers only touch the
spectrogram, which is safe to read while it grows.

Samples can also be pushed directly with `begin()` / `feed()` / `finish()`
when audio comes from somewhere other than a file.

Usage:
    engine = SpectrogramEngine()
    engine.open("/path/to/track.flac")
    engine.decode_all()
    image = engine.render(1200, 600)
    ticks = engine.frequency_ticks()
"""

from __future__ import annotations

import dataclasses
import logging
import threading
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

from core.spectral.axis import Tick, frequency_ticks
from core.spectral.buffer import SampleWindower
from core.spectral.config import DEFAULT_CONFIG, AnalysisConfig
from core.spectral.spectrogram import Spectrogram
from core.spectral.spectrum import SpectrumExtractor
from core.spectral.window import HANN, WindowFunction
from infrastructure.metrics import (
    LatencyTimer,
    record_decode_error,
    record_decode_step,
    record_render,
    record_samples,
    record_source_opened,
    record_spectra,
)
from ingestion.audio_loader import AudioInfo, probe_audio, stream_audio

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DecodeProgress:
    """Snapshot of the producer's progress. Replaced, never mutated.

    Attributes:
        samples_decoded: Samples received from the decoder so far.
        spectra: Spectra published so far.
        total_samples: Expected stream length, if the source reported one.
        finished: End of stream reached (normally or after a decode error).
        error: Decoder error message if decoding stopped early.
    """

    samples_decoded: int = 0
    spectra: int = 0
    total_samples: int | None = None
    finished: bool = False
    error: str | None = None

    @property
    def fraction(self) -> float | None:
        """Decoded fraction in [0, 1], or None if the length is unknown."""
        if self.finished:
            return 1.0
        if not self.total_samples:
            return None
        return min(1.0, self.samples_decoded / self.total_samples)


class SpectrogramEngine:
    """Single-producer driver from decoded audio to a renderable spectrogram.

    Args:
        config: Analysis parameters shared by windowing and rendering.
        window: Window function for analysis and overlap weighting.
        librosa: Injected librosa module. Pass a MagicMock in tests to avoid
            loading the audio stack. None = import lazily on first use.
    """

    def __init__(
        self,
        config: AnalysisConfig = DEFAULT_CONFIG,
        *,
        window: WindowFunction = HANN,
        librosa: Any = None,
    ) -> None:
        self.config = config
        self.window = window
        self._librosa = librosa
        self._windower = SampleWindower(
            config.window_length,
            config.hop,
            extractor=SpectrumExtractor(config.window_length, window=window),
        )
        self._spectrogram: Spectrogram | None = None
        self._info: AudioInfo | None = None
        self._sample_rate: int | None = None
        self._blocks: Iterator[np.ndarray] | None = None
        self._progress = DecodeProgress()
        self._thread: threading.Thread | None = None
        self._stop = threading.Event()

    def _get_librosa(self) -> Any:
        """Return librosa, importing it lazily if not already injected."""
        if self._librosa is None:
            import librosa as _lib  # deferred to allow testing without audio backend

            self._librosa = _lib
        return self._librosa

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def spectrogram(self) -> Spectrogram:
        """The spectrogram of the current source.

        Raises:
            RuntimeError: If no source has been opened.
        """
        if self._spectrogram is None:
            raise RuntimeError("No audio source open; call open() or begin() first")
        return self._spectrogram

    @property
    def info(self) -> AudioInfo | None:
        """File properties when the source is a file opened with open()."""
        return self._info

    @property
    def sample_rate(self) -> int:
        if self._sample_rate is None:
            raise RuntimeError("No audio source open; call open() or begin() first")
        return self._sample_rate

    @property
    def progress(self) -> DecodeProgress:
        return self._progress

    # ------------------------------------------------------------------
    # Sources
    # ------------------------------------------------------------------

    def open(self, path: str | Path) -> AudioInfo:
        """Start analyzing an audio file. Discards any previous source.

        Raises:
            FileNotFoundError, ValueError, RuntimeError: From the decoder
                boundary when the file cannot be opened. The previous
                source is left untouched in that case.
        """
        lib = self._get_librosa()
        info = probe_audio(path, librosa=lib)
        blocks = stream_audio(info.path, block_length=self.config.decode_block_length, librosa=lib)

        self.close()
        self._reset(info.sample_rate, info.total_samples)
        self._info = info
        self._blocks = blocks
        record_source_opened()
        logger.info(
            "Opened %s: %d Hz, %s samples, window=%d hop=%d",
            info.path.name,
            info.sample_rate,
            info.total_samples if info.total_samples is not None else "unknown",
            self.config.window_length,
            self.config.hop,
        )
        return info

    def begin(self, sample_rate: int, total_samples: int | None = None) -> None:
        """Start a source whose samples will be pushed with feed()."""
        if sample_rate <= 0:
            raise ValueError(f"sample_rate must be positive, got {sample_rate}")
        self.close()
        self._reset(sample_rate, total_samples)
        record_source_opened()

    def _reset(self, sample_rate: int, total_samples: int | None) -> None:
        self._windower.reset()
        self._spectrogram = Spectrogram(self.config, window=self.window)
        self._sample_rate = sample_rate
        self._info = None
        self._blocks = None
        self._progress = DecodeProgress(total_samples=total_samples)

    def close(self) -> None:
        """Stop any background decoding and release the decoder."""
        self.stop()
        self._blocks = None

    # ------------------------------------------------------------------
    # Producer side
    # ------------------------------------------------------------------

    def feed(self, samples: np.ndarray) -> int:
        """Push decoded samples. Returns the number of spectra published.

        Raises:
            RuntimeError: If no source is open, or the stream has already
                been finished.
        """
        spectrogram = self.spectrogram
        chunk = np.asarray(samples, dtype=np.float32)
        published = spectrogram.extend(self._windower.push(chunk))
        record_samples(len(chunk))
        record_spectra(published)
        self._progress = dataclasses.replace(
            self._progress,
            samples_decoded=self._progress.samples_decoded + len(chunk),
            spectra=spectrogram.spectrum_count(),
        )
        return published

    def finish(self, error: str | None = None) -> int:
        """End the stream: flush the zero-padded final window.

        Returns:
            Spectra published by the flush (0 or 1). Repeated calls are no-ops.
        """
        spectrogram = self.spectrogram
        if self._progress.finished:
            return 0
        published = spectrogram.extend(self._windower.finish())
        record_spectra(published)
        self._blocks = None
        self._progress = dataclasses.replace(
            self._progress,
            spectra=spectrogram.spectrum_count(),
            finished=True,
            error=error,
        )
        logger.info(
            "Finished stream: %d samples, %d spectra%s",
            self._progress.samples_decoded,
            self._progress.spectra,
            f" (stopped early: {error})" if error else "",
        )
        return published

    def decode_step(self, max_blocks: int | None = None) -> bool:
        """Decode and analyze up to `max_blocks` decoder chunks.

        A decoder failure is logged and treated as end of stream: whatever
        was decoded before it stays in the spectrogram, padded and flushed.

        Returns:
            True if more audio remains, False once the stream is finished.

        Raises:
            RuntimeError: If no file source is open.
        """
        if self._progress.finished:
            return False
        if self._blocks is None:
            raise RuntimeError("No file source to decode; call open() first")

        limit = max_blocks if max_blocks is not None else self.config.blocks_per_step
        with LatencyTimer() as timer:
            try:
                for _ in range(limit):
                    chunk = next(self._blocks, None)
                    if chunk is None:
                        self.finish()
                        break
                    self.feed(chunk)
            except RuntimeError as exc:
                logger.error("Decoding stopped early: %s", exc)
                record_decode_error()
                self.finish(error=str(exc))
        record_decode_step(latency_seconds=timer.elapsed)
        logger.debug(
            "Decode step: %d samples, %d spectra",
            self._progress.samples_decoded,
            self._progress.spectra,
        )
        return not self._progress.finished

    def decode_all(self) -> DecodeProgress:
        """Decode the whole file on the calling thread."""
        while self.decode_step():
            pass
        return self._progress

    def start(self) -> None:
        """Decode on a background thread until done or stop() is called."""
        if self._blocks is None:
            raise RuntimeError("No file source to decode; call open() first")
        if self._thread is not None and self._thread.is_alive():
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="spectrogram-decoder", daemon=True)
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.is_set() and self.decode_step():
            pass

    def stop(self, timeout: float | None = None) -> None:
        """Ask the background decoder to stop after its current step."""
        self._stop.set()
        self.join(timeout)

    def join(self, timeout: float | None = None) -> None:
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout)
        if thread is not None and not thread.is_alive():
            self._thread = None

    # ------------------------------------------------------------------
    # Consumer side
    # ------------------------------------------------------------------

    def render(self, width: int, height: int) -> np.ndarray:
        """Intensity image (height, width) of everything analyzed so far.

        When the source length is known the time axis spans the whole
        source, so a partially decoded file fills in from the left.
        """
        spectrogram = self.spectrogram
        total = self._progress.total_samples
        if self._progress.finished:
            total = None
        elif total is not None:
            # Containers can under-report their length.
            total = max(total, spectrogram.span_samples())
        with LatencyTimer() as timer:
            image = spectrogram.render(width, height, total_samples=total)
        record_render(latency_seconds=timer.elapsed)
        return image

    def frequency_ticks(self, count: int = 10) -> tuple[Tick, ...]:
        return frequency_ticks(self.sample_rate, self.config.window_length, count)
