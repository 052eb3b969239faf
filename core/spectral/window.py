"""
core/spectral/window.py — Window functions applied before the transform.

A window is a strategy: a per-sample `weight(i, n)` and the closed-form
`integral(a, b)` of the same curve over a sub-interval of the unit window.
The transform only uses the weights; the display resampler in axis.py uses
the integral to weight spectra whose windows partially overlap a pixel
column.

Hann normalization:
    w(i) = 2·sin²(π·i / (n-1))

    The mean of sin² over a period is 1/2, so the factor 2 makes the mean
    weight 1. In the continuous parameterization x = i/(n-1) ∈ [0, 1]:

        ∫_a^b 2·sin²(πx) dx = (b - a) - (sin 2πb - sin 2πa) / (2π)

    which is exactly 1 over [0, 1].
"""

from __future__ import annotations

import math
from collections.abc import Callable
from dataclasses import dataclass

import numpy as np

_TWO_PI = 2.0 * math.pi


def hann(i: int, n: int) -> float:
    """Normalized Hann weight of sample `i` in a window of `n` samples.

    Raises:
        ValueError: If n < 2 (the n-1 normalization is undefined).
    """
    if n < 2:
        raise ValueError(f"Window length must be at least 2, got {n}")
    s = math.sin(math.pi * i / (n - 1))
    return 2.0 * s * s


def hann_integral(a: float, b: float) -> float:
    """Definite integral of the normalized Hann curve over [a, b] ⊆ [0, 1].

    Raises:
        ValueError: If the bounds are reversed or outside [0, 1].
    """
    _check_bounds(a, b)
    value = (b - a) - (math.sin(_TWO_PI * b) - math.sin(_TWO_PI * a)) / _TWO_PI
    # Cancellation on very short intervals near the window edges can
    # round a tiny positive area below zero.
    return max(value, 0.0)


def rectangular(i: int, n: int) -> float:
    """Unit weight for every sample (no tapering)."""
    if n < 1:
        raise ValueError(f"Window length must be positive, got {n}")
    return 1.0


def rectangular_integral(a: float, b: float) -> float:
    _check_bounds(a, b)
    return b - a


def _check_bounds(a: float, b: float) -> None:
    if not (0.0 <= a <= b <= 1.0):
        raise ValueError(f"Integration bounds must satisfy 0 <= a <= b <= 1, got [{a}, {b}]")


@dataclass(frozen=True)
class WindowFunction:
    """A window weight paired with its closed-form integral.

    Attributes:
        name: Short identifier used in logs and CLI flags.
        weight: `weight(i, n)` for sample i of an n-sample window.
        integral: `integral(a, b)` over the unit-normalized window position.
    """

    name: str
    weight: Callable[[int, int], float]
    integral: Callable[[float, float], float]


HANN = WindowFunction(name="hann", weight=hann, integral=hann_integral)
RECTANGULAR = WindowFunction(name="rectangular", weight=rectangular, integral=rectangular_integral)

WINDOWS: dict[str, WindowFunction] = {w.name: w for w in (HANN, RECTANGULAR)}


def window_weights(window: WindowFunction, n: int) -> np.ndarray:
    """Tabulate the window's weights for an n-sample block as float64."""
    return np.array([window.weight(i, n) for i in range(n)], dtype=np.float64)
