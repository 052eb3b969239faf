"""
ingestion/audio_loader.py — File I/O boundary for decoding audio.

This is the ONLY module in the spectrogram pipeline that reads files from
disk. Everything downstream (core/spectral/*) takes sample arrays, never
file paths.

Decoding is incremental: `stream_audio()` yields mono float32 chunks as the
decoder produces them, so the engine can publish spectra while the rest of
the file is still being read.

Usage:
    from ingestion.audio_loader import probe_audio, stream_audio
    info = probe_audio("/path/to/track.flac")
    for chunk in stream_audio(info.path, block_length=4096):
        ...
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numpy as np

# Supported audio file extensions (must be decodable by librosa / soundfile)
AUDIO_EXTENSIONS: frozenset[str] = frozenset(
    {".mp3", ".wav", ".flac", ".aiff", ".aif", ".ogg", ".m4a", ".opus"}
)

DEFAULT_BLOCK_LENGTH: int = 4096


@dataclass(frozen=True)
class AudioInfo:
    """Stream properties known before decoding starts."""

    path: Path
    sample_rate: int
    """Native sample rate in Hz. Chunks are never resampled."""

    total_samples: int | None
    """Length of the mono stream in samples, or None if the container
    does not report a duration."""

    @property
    def duration_sec(self) -> float | None:
        if self.total_samples is None:
            return None
        return self.total_samples / self.sample_rate


def _import_librosa() -> Any:
    import librosa  # deferred to allow testing without audio backend

    return librosa


def _check_path(path: str | Path) -> Path:
    file_path = Path(path)

    if not file_path.exists():
        raise FileNotFoundError(f"Audio file not found: {file_path}")

    if file_path.suffix.lower() not in AUDIO_EXTENSIONS:
        raise ValueError(
            f"Unsupported audio format {file_path.suffix!r}. "
            f"Supported: {sorted(AUDIO_EXTENSIONS)}"
        )
    return file_path


def probe_audio(path: str | Path, *, librosa: Any = None) -> AudioInfo:
    """Read the sample rate and length of an audio file without decoding it.

    Args:
        path: Path to an audio file (mp3, wav, flac, aiff, ogg, m4a, opus).
        librosa: Injected librosa module. None = import lazily.

    Returns:
        AudioInfo for the file.

    Raises:
        FileNotFoundError: File does not exist at the given path.
        ValueError: File extension is not a supported audio format.
        RuntimeError: The container header could not be read.
    """
    file_path = _check_path(path)
    lib = librosa if librosa is not None else _import_librosa()

    try:
        sample_rate = int(lib.get_samplerate(file_path))
    except Exception as exc:
        raise RuntimeError(f"Failed to read audio header of {file_path.name!r}: {exc}") from exc

    try:
        duration = float(lib.get_duration(path=file_path))
    except Exception:
        # Some containers only reveal their length by decoding to the end.
        total_samples = None
    else:
        total_samples = int(round(duration * sample_rate))

    return AudioInfo(path=file_path, sample_rate=sample_rate, total_samples=total_samples)


def stream_audio(
    path: str | Path,
    *,
    block_length: int = DEFAULT_BLOCK_LENGTH,
    librosa: Any = None,
) -> Iterator[np.ndarray]:
    """Decode an audio file incrementally as mono float32 chunks.

    Multi-channel files are mixed down to mono by the decoder. Chunks hold
    `block_length` samples except possibly the last one.

    Args:
        path: Path to an audio file.
        block_length: Samples per yielded chunk.
        librosa: Injected librosa module. None = import lazily.

    Yields:
        1-D float32 arrays of samples in [-1, 1].

    Raises:
        FileNotFoundError, ValueError: As for probe_audio().
        RuntimeError: The decoder failed, either opening the file or
            part-way through it. Chunks already yielded remain valid.
    """
    if block_length <= 0:
        raise ValueError(f"block_length must be positive, got {block_length}")
    file_path = _check_path(path)
    lib = librosa if librosa is not None else _import_librosa()
    return _decode_blocks(file_path, block_length, lib)


def _decode_blocks(file_path: Path, block_length: int, lib: Any) -> Iterator[np.ndarray]:
    try:
        # frame_length = hop_length = 1: one "frame" per sample, so each
        # block is exactly block_length samples.
        blocks = lib.stream(
            file_path,
            block_length=block_length,
            frame_length=1,
            hop_length=1,
            mono=True,
            dtype=np.float32,
        )
        for block in blocks:
            yield np.asarray(block, dtype=np.float32).reshape(-1)
    except Exception as exc:
        raise RuntimeError(f"Failed to decode audio file {file_path.name!r}: {exc}") from exc
