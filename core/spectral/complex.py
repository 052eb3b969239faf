"""
core/spectral/complex.py — Two-component complex value used by the transform.

`Complex` keeps the real and imaginary parts as independent components.
The components may be plain floats or numpy arrays of equal shape: all
arithmetic is component-wise, so the same type describes one value and a
whole vector of values. Array-backed instances also support slicing (which
returns views) and slice assignment, which is how the in-place transform
reads and writes caller-owned buffers.

`multiply_add` is evaluated in fused-multiply-add grouping,
`a*b + (c*d + e)` per component, so the accumulation order is the same
whether the components are scalars or arrays.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

import numpy as np


@dataclass(frozen=True)
class Complex:
    """A complex number (or vector of complex numbers) as (real, imag)."""

    real: Any
    """Real component. float or np.ndarray."""

    imag: Any
    """Imaginary component. Same type and shape as `real`."""

    @classmethod
    def zeros(cls, length: int) -> Complex:
        """Allocate a zero-filled float64 buffer of `length` values."""
        if length < 0:
            raise ValueError(f"length must be non-negative, got {length}")
        return cls(np.zeros(length, dtype=np.float64), np.zeros(length, dtype=np.float64))

    @classmethod
    def from_real(cls, values: np.ndarray) -> Complex:
        """Wrap real samples as a complex buffer with zero imaginary part."""
        real = np.array(values, dtype=np.float64)
        return cls(real, np.zeros_like(real))

    def __add__(self, other: Complex) -> Complex:
        return Complex(self.real + other.real, self.imag + other.imag)

    def __sub__(self, other: Complex) -> Complex:
        return Complex(self.real - other.real, self.imag - other.imag)

    def __neg__(self) -> Complex:
        return Complex(-self.real, -self.imag)

    def multiply_add(self, factor: Complex, term: Complex) -> Complex:
        """Return `self * factor + term`.

        Per component:
            real = self.real * factor.real + (-self.imag * factor.imag + term.real)
            imag = self.real * factor.imag + ( self.imag * factor.real + term.imag)
        """
        real = self.real * factor.real + ((-self.imag) * factor.imag + term.real)
        imag = self.real * factor.imag + (self.imag * factor.real + term.imag)
        return Complex(real, imag)

    def conjugate(self) -> Complex:
        return Complex(self.real, -self.imag)

    def norm_sqr(self) -> Any:
        """Squared magnitude, `real² + imag²`."""
        return self.real * self.real + self.imag * self.imag

    # ------------------------------------------------------------------
    # Buffer access (array-backed instances only)
    # ------------------------------------------------------------------

    def __len__(self) -> int:
        return len(self.real)

    def __getitem__(self, key: Any) -> Complex:
        return Complex(self.real[key], self.imag[key])

    def __setitem__(self, key: Any, value: Complex) -> None:
        self.real[key] = value.real
        self.imag[key] = value.imag

    def to_numpy(self) -> np.ndarray:
        """Copy into a numpy complex128 array."""
        return np.asarray(self.real, dtype=np.float64) + 1j * np.asarray(
            self.imag, dtype=np.float64
        )
