"""
core/spectral/colormap.py — Intensity → RGB for rasterizing a spectrogram.

Polynomial fit (degree 6, Horner form) of matplotlib's "magma" colormap.
"""

from __future__ import annotations

import numpy as np

_MAGMA: np.ndarray = np.array(
    [
        [18.65570506591883, -11.48977351997711, -5.601961508734096],
        [-50.76852536473588, 29.04658282127291, 4.23415299384598],
        [52.17613981234068, -27.94360607168351, 12.94416944238394],
        [-27.66873308576866, 14.26473078096533, -13.64921318813922],
        [8.353717279216625, -3.577719514958484, 0.3144679030132573],
        [0.2516605407371642, 0.6775232436837668, 2.494026599312351],
        [-0.002136485053939582, -0.000749655052795221, -0.005386127855323933],
    ],
    dtype=np.float64,
)


def colormap_magma(t: np.ndarray | float) -> np.ndarray:
    """Map intensities t ∈ [0, 1] to RGB in [0, 1].

    Returns:
        Array of shape t.shape + (3,), clipped to [0, 1].
    """
    t = np.asarray(t, dtype=np.float64)[..., np.newaxis]
    result = np.broadcast_to(_MAGMA[0], t.shape[:-1] + (3,)).copy()
    for coefficients in _MAGMA[1:]:
        result = result * t + coefficients
    return np.clip(result, 0.0, 1.0)


def to_rgb(intensities: np.ndarray) -> np.ndarray:
    """Rasterize an (H, W) intensity image into an (H, W, 3) uint8 image."""
    return (colormap_magma(intensities) * 255.0).astype(np.uint8)
