from __future__ import annotations

import numpy as np

from specgen.models import FREQUENCY_SCALES, FrequencyScale, validate_choice

BARK_MAX_HZ = 20000.0
_BARK_TABLE_HZ = np.linspace(0.0, BARK_MAX_HZ, 40001, dtype=np.float64)


def hz_to_mel(hz: np.ndarray | float) -> np.ndarray:
    return np.asarray(2595.0 * np.log10(1.0 + np.asarray(hz, dtype=np.float64) / 700.0))


def mel_to_hz(mel: np.ndarray | float) -> np.ndarray:
    return np.asarray(700.0 * (10.0 ** (np.asarray(mel, dtype=np.float64) / 2595.0) - 1.0))


def hz_to_bark(hz: np.ndarray | float) -> np.ndarray:
    f = np.asarray(hz, dtype=np.float64)
    return np.asarray(13.0 * np.arctan(0.00076 * f) + 3.5 * np.arctan((f / 7500.0) ** 2))


_BARK_TABLE = hz_to_bark(_BARK_TABLE_HZ)


def bark_to_hz(bark: np.ndarray | float) -> np.ndarray:
    """Invert :func:`hz_to_bark` by interpolating its monotone table.

    Results are clamped to ``[0, 20000]`` Hz.
    """
    values = np.asarray(bark, dtype=np.float64)
    return np.asarray(np.interp(values, _BARK_TABLE, _BARK_TABLE_HZ, left=0.0, right=BARK_MAX_HZ))


def hz_to_erb(hz: np.ndarray | float) -> np.ndarray:
    return np.asarray(21.4 * np.log10(1.0 + np.asarray(hz, dtype=np.float64) / 229.0))


def erb_to_hz(erb: np.ndarray | float) -> np.ndarray:
    return np.asarray(229.0 * (10.0 ** (np.asarray(erb, dtype=np.float64) / 21.4) - 1.0))


_PERCEPTUAL_SCALES = {
    "mel": (hz_to_mel, mel_to_hz),
    "bark": (hz_to_bark, bark_to_hz),
    "erb": (hz_to_erb, erb_to_hz),
}


def frequency_ratios(
    normalized_y: np.ndarray,
    scale: FrequencyScale,
    sample_rate: float,
    min_frequency: float | None = None,
    max_frequency: float | None = None,
) -> np.ndarray:
    """Map normalized heights (0 = bottom) to a fraction of Nyquist in [0, 1]."""
    validate_choice(scale, FREQUENCY_SCALES, "frequency scale")
    nyquist = float(sample_rate) / 2.0
    y = np.asarray(normalized_y, dtype=np.float64)

    if min_frequency is not None or max_frequency is not None:
        low = float(min_frequency) if min_frequency is not None else 0.0
        high = float(max_frequency) if max_frequency is not None else nyquist
        ratio = (low + y * (high - low)) / nyquist
    elif scale == "linear":
        ratio = y
    elif scale == "log":
        ratio = 10.0 ** (y * np.log10(0.5))
    else:
        forward, inverse = _PERCEPTUAL_SCALES[scale]
        low_unit = float(forward(0.0))
        high_unit = float(forward(nyquist))
        ratio = inverse(low_unit + y * (high_unit - low_unit)) / nyquist

    return np.asarray(np.clip(ratio, 0.0, 1.0))


def frequency_bin_indices(
    height: int,
    num_bins: int,
    scale: FrequencyScale,
    sample_rate: float,
    min_frequency: float | None = None,
    max_frequency: float | None = None,
) -> np.ndarray:
    """Source bin index for every image row, top row first."""
    rows = np.arange(height, dtype=np.float64)
    if height > 1:
        normalized_y = (height - 1 - rows) / float(height - 1)
    else:
        normalized_y = np.zeros(height, dtype=np.float64)
    ratio = frequency_ratios(normalized_y, scale, sample_rate, min_frequency, max_frequency)
    return np.floor(ratio * max(num_bins - 1, 0)).astype(np.int64)


def frequency_bin_index(
    y: int,
    height: int,
    num_bins: int,
    scale: FrequencyScale,
    sample_rate: float,
    min_frequency: float | None = None,
    max_frequency: float | None = None,
) -> int:
    normalized_y = (height - 1 - y) / float(height - 1) if height > 1 else 0.0
    ratio = frequency_ratios(np.array([normalized_y]), scale, sample_rate, min_frequency, max_frequency)
    return int(np.floor(ratio[0] * max(num_bins - 1, 0)))
