from __future__ import annotations

import numpy as np

from specgen.models import WINDOW_KINDS, ConfigurationError, WindowKind, validate_choice

HANNING_COEFFICIENT = 0.5
HAMMING_COEFFICIENT_A = 0.54
HAMMING_COEFFICIENT_B = 0.46
BLACKMAN_COEFFICIENT_A = 0.42
BLACKMAN_COEFFICIENT_B = 0.5
BLACKMAN_COEFFICIENT_C = 0.08


def window_coefficients(size: int, kind: WindowKind) -> np.ndarray:
    """Return the symmetric window of ``size`` samples for ``kind``.

    All non-rectangular windows use ``N - 1`` in the phase denominator, so
    ``size`` must be at least 2.
    """
    validate_choice(kind, WINDOW_KINDS, "window type")
    if size < 2:
        raise ConfigurationError(f"window length must be >= 2, got {size}")

    if kind == "rectangular":
        return np.ones(size, dtype=np.float64)

    phase = (2.0 * np.pi * np.arange(size, dtype=np.float64)) / float(size - 1)
    if kind == "hanning":
        return HANNING_COEFFICIENT * (1.0 - np.cos(phase))
    if kind == "hamming":
        return HAMMING_COEFFICIENT_A - HAMMING_COEFFICIENT_B * np.cos(phase)
    return (
        BLACKMAN_COEFFICIENT_A - BLACKMAN_COEFFICIENT_B * np.cos(phase) + BLACKMAN_COEFFICIENT_C * np.cos(2.0 * phase)
    )


def apply_window(frames: np.ndarray, kind: WindowKind) -> np.ndarray:
    """Weight the last axis of ``frames`` in place and return it."""
    if kind == "rectangular":
        validate_choice(kind, WINDOW_KINDS, "window type")
        return frames
    frames *= window_coefficients(frames.shape[-1], kind).astype(frames.dtype, copy=False)
    return frames
