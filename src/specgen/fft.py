"""Iterative radix-2 Cooley-Tukey FFT.

The transform runs on a batch of real frames at once: rows are frames, the
last axis holds ``N`` samples. ``N`` must be a power of two; anything else is
rejected before any work is done.
"""

from __future__ import annotations

import numpy as np

from specgen.models import ConfigurationError


def is_power_of_two(value: int) -> bool:
    return value >= 1 and (value & (value - 1)) == 0


def validate_fft_size(size: int) -> None:
    if not isinstance(size, (int, np.integer)) or isinstance(size, bool):
        raise ConfigurationError(f"FFT size must be an integer, got {size!r}")
    if size < 2 or not is_power_of_two(int(size)):
        raise ConfigurationError(f"FFT size must be a power of two >= 2, got {size}")


def bit_reversal_indices(size: int) -> np.ndarray:
    bits = int(size).bit_length() - 1
    indices = np.arange(size, dtype=np.int64)
    reversed_indices = np.zeros(size, dtype=np.int64)
    for _ in range(bits):
        reversed_indices = (reversed_indices << 1) | (indices & 1)
        indices = indices >> 1
    return reversed_indices


def fft_radix2(frames: np.ndarray) -> np.ndarray:
    """Return the complex spectrum of each row of ``frames``.

    Accepts a single frame (1-D) or a batch (2-D). The output has the same
    shape with ``complex128`` values.
    """
    data = np.asarray(frames, dtype=np.float64)
    single = data.ndim == 1
    if single:
        data = data[None, :]
    if data.ndim != 2:
        raise ConfigurationError(f"expected 1-D or 2-D frames, got {data.ndim}-D")
    size = int(data.shape[1])
    validate_fft_size(size)

    spectrum = data[:, bit_reversal_indices(size)].astype(np.complex128)
    batch = spectrum.shape[0]
    block = 2
    while block <= size:
        half = block // 2
        twiddle = np.exp(-2j * np.pi * np.arange(half, dtype=np.float64) / float(block))
        blocks = spectrum.reshape(batch, size // block, block)
        even = blocks[:, :, :half]
        odd = blocks[:, :, half:] * twiddle
        spectrum = np.concatenate((even + odd, even - odd), axis=2).reshape(batch, size)
        block *= 2

    return spectrum[0] if single else spectrum
