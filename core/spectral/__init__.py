"""
core/spectral — Pure spectral analysis: samples in, spectrogram intensities out.

No file I/O here; decoding lives in ingestion/audio_loader.py and the
orchestration in ingestion/spectrogram_engine.py.

Public API:
    Config:       AnalysisConfig, DEFAULT_CONFIG, FAST_CONFIG, HIGH_RESOLUTION_CONFIG
    Primitives:   Complex, cooley_tukey
    Windows:      WindowFunction, HANN, RECTANGULAR, hann, hann_integral
    Spectra:      SpectrumExtractor, compute_spectrum
    Streaming:    SampleWindower, WindowState
    Store:        Spectrogram
    Axes:         map_axis, frequency_ticks, Tick
    Colour:       colormap_magma, to_rgb
"""

from core.spectral.axis import Tick, frequency_ticks, map_axis
from core.spectral.buffer import SampleWindower, WindowState
from core.spectral.colormap import colormap_magma, to_rgb
from core.spectral.complex import Complex
from core.spectral.config import (
    DEFAULT_CONFIG,
    FAST_CONFIG,
    HIGH_RESOLUTION_CONFIG,
    AnalysisConfig,
)
from core.spectral.fft import cooley_tukey
from core.spectral.spectrogram import Spectrogram
from core.spectral.spectrum import SpectrumExtractor, compute_spectrum
from core.spectral.window import HANN, RECTANGULAR, WindowFunction, hann, hann_integral

__all__ = [
    "AnalysisConfig",
    "DEFAULT_CONFIG",
    "FAST_CONFIG",
    "HIGH_RESOLUTION_CONFIG",
    "Complex",
    "cooley_tukey",
    "WindowFunction",
    "HANN",
    "RECTANGULAR",
    "hann",
    "hann_integral",
    "SpectrumExtractor",
    "compute_spectrum",
    "SampleWindower",
    "WindowState",
    "Spectrogram",
    "map_axis",
    "frequency_ticks",
    "Tick",
    "colormap_magma",
    "to_rgb",
]
