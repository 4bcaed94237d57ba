from __future__ import annotations

import logging

import numpy as np

from specgen.analysis import compute_spectrogram, validate_analysis_params
from specgen.colormap import apply_mapping, apply_palette, normalize_db
from specgen.frequency_scale import frequency_bin_indices
from specgen.models import (
    COLOR_PRESETS,
    DEFAULT_CONFIG,
    DEFAULTS,
    DOWNSAMPLE_STRATEGIES,
    FREQUENCY_SCALES,
    MAPPING_KINDS,
    UPSAMPLE_STRATEGIES,
    AudioSamples,
    ColorPreset,
    ConfigurationError,
    FrequencyScale,
    MappingKind,
    RasterImage,
    SpectrogramConfig,
    SpectrogramMatrix,
    validate_choice,
)
from specgen.resampling import resample_frames

logger = logging.getLogger(__name__)


def validate_canvas(width: int, height: int, config: SpectrogramConfig = DEFAULT_CONFIG) -> None:
    if width < 1 or height < 1:
        raise ConfigurationError(f"Canvas size must be positive: {width}x{height}")
    limit = config.max_canvas_size
    if width > limit or height > limit:
        raise ConfigurationError(f"Canvas size too large: {width}x{height}. Maximum allowed: {limit}x{limit}")


def render_spectrogram(
    audio: AudioSamples,
    width: int,
    height: int,
    start_time: float = 0.0,
    duration: float | None = None,
    color_preset: ColorPreset = DEFAULTS.color_preset,
    frequency_scale: FrequencyScale = DEFAULTS.frequency_scale,
    mapping: MappingKind = DEFAULTS.mapping,
    min_frequency: float | None = None,
    max_frequency: float | None = None,
    min_db: float | None = None,
    max_db: float | None = None,
    fft_size: int = DEFAULTS.fft_size,
    hop_size: int = DEFAULTS.hop_size,
    config: SpectrogramConfig = DEFAULT_CONFIG,
) -> RasterImage:
    """Render ``[start_time, start_time + duration)`` of ``audio`` to an RGB raster.

    ``min_db``/``max_db`` default to the configured floor and ceiling, not to a
    shared range; pass a :class:`GlobalDbRange` explicitly for multi-part
    renders that must share one color calibration.
    """
    # Every structural check runs before any frame is computed.
    validate_canvas(width, height, config)
    validate_analysis_params(fft_size, hop_size, config)
    validate_choice(color_preset, COLOR_PRESETS, "color preset")
    validate_choice(frequency_scale, FREQUENCY_SCALES, "frequency scale")
    validate_choice(mapping, MAPPING_KINDS, "mapping type")
    validate_choice(config.downsample_strategy, DOWNSAMPLE_STRATEGIES, "downsample strategy")
    validate_choice(config.upsample_strategy, UPSAMPLE_STRATEGIES, "upsample strategy")

    window = audio.duration_sec if duration is None else float(duration)
    matrix = compute_spectrogram(audio, start_time, window, fft_size, hop_size, config)
    logger.info(
        "rendering %.2fs-%.2fs: %d frames -> %dx%d",
        max(0.0, start_time),
        max(0.0, start_time) + matrix.duration_sec,
        matrix.num_frames,
        width,
        height,
    )
    return rasterize(
        matrix,
        width=width,
        height=height,
        color_preset=color_preset,
        frequency_scale=frequency_scale,
        mapping=mapping,
        min_frequency=min_frequency,
        max_frequency=max_frequency,
        min_db=min_db,
        max_db=max_db,
        config=config,
        start_time=max(0.0, start_time),
    )


def rasterize(
    matrix: SpectrogramMatrix,
    width: int,
    height: int,
    color_preset: ColorPreset,
    frequency_scale: FrequencyScale,
    mapping: MappingKind,
    min_frequency: float | None = None,
    max_frequency: float | None = None,
    min_db: float | None = None,
    max_db: float | None = None,
    config: SpectrogramConfig = DEFAULT_CONFIG,
    start_time: float = 0.0,
) -> RasterImage:
    validate_canvas(width, height, config)
    floor_db = config.min_db_display if min_db is None else float(min_db)
    ceiling_db = config.max_db_theoretical if max_db is None else float(max_db)

    resampled = resample_frames(
        matrix.values,
        width,
        downsample=config.downsample_strategy,
        upsample=config.upsample_strategy,
    )
    db_grid = _gather_pixels(
        resampled,
        width=width,
        height=height,
        frequency_scale=frequency_scale,
        sample_rate=matrix.sample_rate,
        min_frequency=min_frequency,
        max_frequency=max_frequency,
        fill_db=floor_db,
    )
    intensity = apply_mapping(normalize_db(db_grid, floor_db, ceiling_db), mapping)
    pixels = apply_palette(intensity, color_preset)

    time_start = float(matrix.time_positions[0]) if matrix.num_frames else max(0.0, float(start_time))
    return RasterImage(
        width=width,
        height=height,
        pixels=pixels,
        time_start=time_start,
        time_end=time_start + matrix.duration_sec,
        min_db=floor_db,
        max_db=ceiling_db,
        params={
            "fft_size": matrix.fft_size,
            "hop_size": matrix.hop_size,
            "window": config.window,
            "color_preset": color_preset,
            "frequency_scale": frequency_scale,
            "mapping": mapping,
            "min_frequency": min_frequency,
            "max_frequency": max_frequency,
        },
    )


def _gather_pixels(
    resampled: np.ndarray,
    width: int,
    height: int,
    frequency_scale: FrequencyScale,
    sample_rate: int,
    min_frequency: float | None,
    max_frequency: float | None,
    fill_db: float,
) -> np.ndarray:
    """Look up the dB value behind every pixel as a ``(height, width)`` grid."""
    num_columns = int(resampled.shape[0])
    num_bins = int(resampled.shape[1]) if resampled.ndim == 2 else 0
    if num_columns == 0 or num_bins == 0:
        return np.full((height, width), fill_db, dtype=np.float64)

    columns = np.minimum((np.arange(width, dtype=np.int64) * num_columns) // width, num_columns - 1)
    bins = frequency_bin_indices(height, num_bins, frequency_scale, sample_rate, min_frequency, max_frequency)
    in_range = (bins >= 0) & (bins < num_bins)
    safe_bins = np.clip(bins, 0, num_bins - 1)
    grid = resampled[columns][:, safe_bins].T.astype(np.float64)
    grid[~in_range, :] = fill_db
    return grid
