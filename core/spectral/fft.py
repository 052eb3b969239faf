"""
core/spectral/fft.py — In-place radix-2 Cooley–Tukey transform.

Decimation in time over a power-of-two length buffer, with one scratch
buffer of at least half that length shared by every stage.

The textbook recursion (split into evens then odds, transform each half,
combine with twiddles) is executed level by level: all sub-problems of the
same size are independent, so each level is a single vectorized pass over
a (blocks, size) view of the buffer. Per element, the arithmetic is the
same as the depth-first recursion.

    decimate:  size N, N/2, ..., 4    odds → scratch, evens → front, scratch → back
    combine:   size 2, 4, ..., N      x[k]       = w_k · odd_k  + even_k
                                      x[k + m/2] = w_k · -odd_k + even_k
                                      w_k = e^{-2πi·k/m}
"""

from __future__ import annotations

import math

import numpy as np

from core.spectral.complex import Complex


def is_power_of_two(n: int) -> bool:
    return n >= 1 and (n & (n - 1)) == 0


def twiddles(size: int) -> Complex:
    """Forward twiddle factors e^{-2πi·k/size} for k in [0, size/2)."""
    arg = np.arange(size // 2, dtype=np.float64) * (2.0 * math.pi / size)
    return Complex(np.cos(arg), -np.sin(arg))


def _blocks(buffer: Complex, size: int) -> Complex:
    """View a contiguous 1-D buffer as (len // size, size) without copying."""
    shape = (len(buffer) // size, size)
    # Buffers are checked contiguous, so reshape always returns a view.
    return Complex(buffer.real.reshape(shape), buffer.imag.reshape(shape))


def _check_buffer(name: str, buffer: Complex) -> None:
    for part in (buffer.real, buffer.imag):
        if not isinstance(part, np.ndarray) or part.ndim != 1:
            raise ValueError(f"{name} must be backed by 1-D numpy arrays")
        if not part.flags.c_contiguous:
            raise ValueError(f"{name} must be contiguous")


def cooley_tukey(xs: Complex, scratch: Complex) -> None:
    """Replace `xs` with its discrete Fourier transform, in place.

    Args:
        xs: Complex buffer of power-of-two length. Overwritten with the
            result, bin k at index k.
        scratch: Complex buffer of length >= len(xs) // 2. Contents are
            clobbered; it is never resized.

    Raises:
        ValueError: If the length is not a power of two, the scratch buffer
            is too short, or either buffer is not contiguous 1-D storage.
            These indicate a caller bug; no partial result is produced.
    """
    n = len(xs)
    if n < 2:
        return
    if not is_power_of_two(n):
        raise ValueError(f"Transform length must be a power of two, got {n}")
    half = n // 2
    if len(scratch) < half:
        raise ValueError(f"Scratch buffer must hold at least {half} values, got {len(scratch)}")
    _check_buffer("xs", xs)
    _check_buffer("scratch", scratch)

    tmp = scratch[:half]

    size = n
    while size >= 4:
        h = size // 2
        block = _blocks(xs, size)
        odd = _blocks(tmp, h)
        odd[...] = block[:, 1::2]
        block[:, :h] = block[:, 0::2]
        block[:, h:] = odd
        size = h

    size = 2
    while size <= n:
        h = size // 2
        block = _blocks(xs, size)
        odd = _blocks(tmp, h)
        w = twiddles(size)
        odd[...] = block[:, h:]
        even = block[:, :h]
        block[:, h:] = w.multiply_add(-odd, even)
        block[:, :h] = w.multiply_add(odd, even)
        size *= 2
