from __future__ import annotations

import logging
from collections.abc import Callable

import numpy as np

from specgen.models import (
    DOWNSAMPLE_STRATEGIES,
    UPSAMPLE_STRATEGIES,
    ConfigurationError,
    DownsampleStrategy,
    UpsampleStrategy,
    validate_choice,
)

logger = logging.getLogger(__name__)


def resample_frames(
    source: np.ndarray,
    target_width: int,
    downsample: DownsampleStrategy = "peak",
    upsample: UpsampleStrategy = "bilinear",
) -> np.ndarray:
    """Stretch or compress a ``(frames, bins)`` matrix to ``target_width`` rows.

    Returns ``source`` itself when the frame count already matches.
    """
    validate_choice(downsample, DOWNSAMPLE_STRATEGIES, "downsample strategy")
    validate_choice(upsample, UPSAMPLE_STRATEGIES, "upsample strategy")
    if target_width < 1:
        raise ConfigurationError(f"target width must be >= 1, got {target_width}")
    num_frames = int(source.shape[0])
    if num_frames == 0:
        return source
    if num_frames == target_width:
        return source

    if num_frames < target_width:
        resampled = _UPSAMPLERS[upsample](source, target_width)
        algorithm = f"{upsample} upsampling"
    else:
        resampled = _DOWNSAMPLERS[downsample](source, target_width)
        algorithm = f"{downsample} downsampling"
    logger.debug("resampled %d frames to %d frames using %s", num_frames, resampled.shape[0], algorithm)
    return resampled


def average_downsample(source: np.ndarray, target_width: int) -> np.ndarray:
    return _window_reduce(source, target_width, np.mean)


def peak_downsample(source: np.ndarray, target_width: int) -> np.ndarray:
    return _window_reduce(source, target_width, np.max)


def linear_upsample(source: np.ndarray, target_width: int) -> np.ndarray:
    lower, upper, frac = _interpolation_positions(source.shape[0], target_width)
    low_rows = source[lower].astype(np.float64)
    high_rows = source[upper].astype(np.float64)
    out = low_rows + frac[:, None] * (high_rows - low_rows)
    return out.astype(np.float32)


def bilinear_upsample(source: np.ndarray, target_width: int) -> np.ndarray:
    lower, upper, frac = _interpolation_positions(source.shape[0], target_width)
    num_bins = source.shape[1]
    bin_index = np.arange(num_bins, dtype=np.float64)
    next_bin = np.minimum(bin_index.astype(np.int64) + 1, max(num_bins - 1, 0))
    # Bin j leans toward bin j + 1 by j / (n - 1); the top bin wraps to 0 and stays put.
    freq_factor = (bin_index / max(num_bins - 1, 1)) % 1.0
    v00 = source[lower].astype(np.float64)
    v10 = source[upper].astype(np.float64)
    v01 = v00[:, next_bin]
    v11 = v10[:, next_bin]
    t = frac[:, None]
    c0 = v00 * (1.0 - t) + v10 * t
    c1 = v01 * (1.0 - t) + v11 * t
    out = c0 * (1.0 - freq_factor) + c1 * freq_factor
    return out.astype(np.float32)


def _window_reduce(source: np.ndarray, target_width: int, reducer: Callable[..., np.ndarray]) -> np.ndarray:
    num_frames = source.shape[0]
    step = num_frames / float(target_width)
    out = np.empty((target_width, source.shape[1]), dtype=np.float32)
    for i in range(target_width):
        start = int(np.floor(i * step))
        end = min(int(np.floor((i + 1) * step)), num_frames)
        if end <= start:
            # Nearest neighbour for empty windows.
            out[i] = source[min(start, num_frames - 1)]
            continue
        out[i] = reducer(source[start:end], axis=0)
    return out


def _interpolation_positions(num_frames: int, target_width: int) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    if target_width == 1:
        positions = np.zeros(1, dtype=np.float64)
    else:
        positions = np.arange(target_width, dtype=np.float64) / float(target_width - 1) * float(num_frames - 1)
    lower = np.floor(positions).astype(np.int64)
    upper = np.minimum(lower + 1, num_frames - 1)
    return lower, upper, positions - lower


_DOWNSAMPLERS = {
    "average": average_downsample,
    "peak": peak_downsample,
}

_UPSAMPLERS = {
    "linear": linear_upsample,
    "bilinear": bilinear_upsample,
}
