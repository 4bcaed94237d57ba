from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

import numpy as np

from specgen.fft import fft_radix2, validate_fft_size
from specgen.models import (
    DEFAULT_CONFIG,
    WINDOW_KINDS,
    AudioSamples,
    ConfigurationError,
    GlobalDbRange,
    SpectrogramConfig,
    SpectrogramMatrix,
    validate_choice,
)
from specgen.windows import apply_window

logger = logging.getLogger(__name__)


def power_spectrum(spectrum: np.ndarray) -> np.ndarray:
    """Magnitude squared of the non-redundant half of ``spectrum``."""
    half = spectrum.shape[-1] // 2
    kept = spectrum[..., :half]
    return np.asarray(kept.real * kept.real + kept.imag * kept.imag, dtype=np.float64)


def power_to_db(power: np.ndarray, fft_size: int, config: SpectrogramConfig = DEFAULT_CONFIG) -> np.ndarray:
    """Convert raw FFT power to dB.

    Power is normalized by ``fft_size ** 2`` first. Anything at or below the
    minimum power value is reported as the display floor instead of -inf.
    """
    normalized = np.asarray(power, dtype=np.float64) / float(fft_size * fft_size)
    db = np.full(normalized.shape, config.min_db_display, dtype=np.float64)
    audible = normalized > config.min_power_value
    db[audible] = 10.0 * np.log10(normalized[audible] / config.reference_level)
    return db


def frames_to_db(frames: np.ndarray, config: SpectrogramConfig = DEFAULT_CONFIG) -> np.ndarray:
    """Run window -> FFT -> power -> dB on a ``(frames, fft_size)`` batch."""
    windowed = apply_window(np.array(frames, dtype=np.float64), config.window)
    spectrum = fft_radix2(windowed)
    return power_to_db(power_spectrum(spectrum), windowed.shape[-1], config)


def validate_analysis_params(fft_size: int, hop_size: int, config: SpectrogramConfig) -> None:
    validate_fft_size(fft_size)
    if int(hop_size) < 1:
        raise ConfigurationError(f"hop size must be >= 1, got {hop_size}")
    validate_choice(config.window, WINDOW_KINDS, "window type")
    if config.frame_chunk_size < 1:
        raise ConfigurationError(f"frame_chunk_size must be >= 1, got {config.frame_chunk_size}")


def compute_spectrogram(
    audio: AudioSamples,
    start_time: float,
    duration: float,
    fft_size: int,
    hop_size: int,
    config: SpectrogramConfig = DEFAULT_CONFIG,
) -> SpectrogramMatrix:
    """Build the dB matrix for ``[start_time, start_time + duration)``.

    The range is clamped to the audio length. A range shorter than one frame
    produces an empty matrix rather than an error.
    """
    validate_analysis_params(fft_size, hop_size, config)
    sample_rate = int(audio.sample_rate)
    start_time = max(0.0, float(start_time))
    actual_duration = min(float(duration), audio.duration_sec - start_time)
    if sample_rate <= 0 or actual_duration <= 0.0:
        return _empty_matrix(audio, fft_size, hop_size)

    start_sample = int(np.floor(start_time * sample_rate))
    end_sample = int(np.floor((start_time + actual_duration) * sample_rate))
    num_frames = (end_sample - start_sample - fft_size) // hop_size + 1
    if num_frames <= 0:
        logger.debug(
            "range %.3fs-%.3fs shorter than one frame (fft_size=%d)",
            start_time,
            start_time + actual_duration,
            fft_size,
        )
        return _empty_matrix(audio, fft_size, hop_size, actual_duration)

    offsets = np.arange(num_frames, dtype=np.int64) * int(hop_size)
    chunk_size = config.frame_chunk_size
    chunks = [offsets[index : index + chunk_size] for index in range(0, num_frames, chunk_size)]
    samples = audio.samples

    def _chunk_db(chunk_offsets: np.ndarray) -> np.ndarray:
        frames = _slice_frames(samples, start_sample + chunk_offsets, fft_size)
        return frames_to_db(frames, config).astype(np.float32)

    if config.max_workers > 1 and len(chunks) > 1:
        # executor.map keeps chunk order, so frames stay in time order.
        with ThreadPoolExecutor(max_workers=config.max_workers) as executor:
            parts = list(executor.map(_chunk_db, chunks))
    else:
        parts = [_chunk_db(chunk) for chunk in chunks]

    values = np.concatenate(parts, axis=0)
    time_positions = start_time + offsets.astype(np.float64) / float(sample_rate)
    return SpectrogramMatrix(
        values=values,
        time_positions=time_positions,
        sample_rate=sample_rate,
        fft_size=fft_size,
        hop_size=hop_size,
        duration_sec=actual_duration,
    )


def compute_global_range(
    audio: AudioSamples,
    fft_size: int,
    hop_size: int,
    config: SpectrogramConfig = DEFAULT_CONFIG,
) -> GlobalDbRange:
    """Observed dB range over the whole recording, ignoring floor-level bins."""
    matrix = compute_spectrogram(audio, 0.0, audio.duration_sec, fft_size, hop_size, config)
    db_range = db_range_of(matrix, config)
    logger.info(
        "global dB range: %.1fdB to %.1fdB (dynamic range: %.1fdB)",
        db_range.min_db,
        db_range.max_db,
        db_range.dynamic_range,
    )
    return db_range


def db_range_of(matrix: SpectrogramMatrix, config: SpectrogramConfig = DEFAULT_CONFIG) -> GlobalDbRange:
    audible = matrix.values[matrix.values > config.min_db_display]
    if audible.size == 0:
        min_db = float(config.min_db_display)
        max_db = float(config.max_db_theoretical)
    else:
        min_db = float(np.min(audible))
        max_db = float(np.max(audible))
    return GlobalDbRange(min_db=min_db, max_db=max_db, dynamic_range=max_db - min_db)


def _slice_frames(samples: np.ndarray, starts: np.ndarray, fft_size: int) -> np.ndarray:
    indices = starts[:, None] + np.arange(fft_size, dtype=np.int64)[None, :]
    length = samples.shape[0]
    if length == 0:
        return np.zeros(indices.shape, dtype=np.float64)
    gathered = samples[np.minimum(indices, length - 1)].astype(np.float64)
    # Zero-pad the tail when the decoded buffer is shorter than the declared duration.
    return np.where(indices < length, gathered, 0.0)


def _empty_matrix(
    audio: AudioSamples,
    fft_size: int,
    hop_size: int,
    duration: float = 0.0,
) -> SpectrogramMatrix:
    return SpectrogramMatrix(
        values=np.zeros((0, fft_size // 2), dtype=np.float32),
        time_positions=np.zeros(0, dtype=np.float64),
        sample_rate=max(int(audio.sample_rate), 1),
        fft_size=fft_size,
        hop_size=hop_size,
        duration_sec=max(0.0, duration),
    )
