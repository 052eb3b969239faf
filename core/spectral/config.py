"""
Configuration dataclasses for spectral analysis.

These immutable config objects carry every tunable of the pipeline so the
windower, spectrogram and engine agree on one set of parameters.
"""

from dataclasses import dataclass

from core.spectral.fft import is_power_of_two


@dataclass(frozen=True)
class AnalysisConfig:
    """
    Configuration for spectrogram analysis and display mapping.

    Attributes:
        window_length: Samples per analysis window. Must be a power of two.
            Defaults to 8192 (≈ 5.4 Hz bins at 44.1 kHz).
        hop: Samples between consecutive window starts. Must be smaller
            than window_length so windows overlap. Defaults to 4096 (2×).
        intensity_offset: Intensity of a normalized power of 1.0.
        intensity_scale: Intensity change per natural-log unit of power.
        decode_block_length: Samples the decoder delivers per chunk.
        blocks_per_step: Decoder chunks processed per engine step before
            publishing progress.

    Example:
        >>> config = AnalysisConfig(window_length=4096, hop=1024)
        >>> config.overlap
        3072
    """

    window_length: int = 8192
    hop: int = 4096
    intensity_offset: float = 0.5
    intensity_scale: float = 0.05
    decode_block_length: int = 4096
    blocks_per_step: int = 100

    def __post_init__(self) -> None:
        """Validate configuration parameters."""
        if self.window_length < 2 or not is_power_of_two(self.window_length):
            raise ValueError(
                f"window_length must be a power of two >= 2, got {self.window_length}"
            )
        if self.hop <= 0:
            raise ValueError(f"hop must be positive, got {self.hop}")
        if self.hop >= self.window_length:
            raise ValueError(
                f"hop ({self.hop}) must be less than window_length ({self.window_length})"
            )
        if self.intensity_scale <= 0:
            raise ValueError(f"intensity_scale must be positive, got {self.intensity_scale}")
        if self.decode_block_length <= 0:
            raise ValueError(
                f"decode_block_length must be positive, got {self.decode_block_length}"
            )
        if self.blocks_per_step <= 0:
            raise ValueError(f"blocks_per_step must be positive, got {self.blocks_per_step}")

    @property
    def overlap(self) -> int:
        """Samples shared by consecutive windows."""
        return self.window_length - self.hop

    @property
    def spectrum_length(self) -> int:
        """Bins per spectrum, DC through Nyquist."""
        return self.window_length // 2 + 1


# Pre-defined configurations for common use cases

DEFAULT_CONFIG = AnalysisConfig()
"""Default configuration: 8192-sample windows, 4096 hop."""

FAST_CONFIG = AnalysisConfig(window_length=2048, hop=1024)
"""Short windows: better time resolution, coarser frequency bins."""

HIGH_RESOLUTION_CONFIG = AnalysisConfig(window_length=16384, hop=4096)
"""Long windows with 4× overlap for fine frequency detail."""
