from __future__ import annotations

import numpy as np
import pytest

from specgen.models import ConfigurationError
from specgen.resampling import average_downsample, bilinear_upsample, peak_downsample, resample_frames


def _ramp(frames: int, bins: int = 2) -> np.ndarray:
    return np.arange(frames * bins, dtype=np.float32).reshape(frames, bins)


def test_matching_width_returns_source() -> None:
    source = _ramp(6)
    assert resample_frames(source, 6) is source


def test_empty_source_is_returned_unchanged() -> None:
    source = np.zeros((0, 4), dtype=np.float32)
    assert resample_frames(source, 10) is source


def test_peak_downsample_keeps_window_maximum() -> None:
    out = peak_downsample(_ramp(8), 4)
    np.testing.assert_array_equal(out, [[2, 3], [6, 7], [10, 11], [14, 15]])


def test_average_downsample_takes_window_mean() -> None:
    out = average_downsample(_ramp(8), 4)
    np.testing.assert_array_equal(out, [[1, 2], [5, 6], [9, 10], [13, 14]])


def test_peak_downsample_of_noise_never_exceeds_source() -> None:
    rng = np.random.default_rng(11)
    source = rng.normal(-60.0, 10.0, size=(97, 16)).astype(np.float32)
    out = resample_frames(source, 10, downsample="peak")
    assert out.shape == (10, 16)
    assert float(out.max()) == float(source.max())
    assert np.all(out.max(axis=0) <= source.max(axis=0))


def test_linear_upsample_hits_both_endpoints() -> None:
    source = np.array([[0.0, 0.0], [2.0, 4.0]], dtype=np.float32)
    out = resample_frames(source, 3, upsample="linear")
    np.testing.assert_allclose(out, [[0.0, 0.0], [1.0, 2.0], [2.0, 4.0]])


def test_bilinear_upsample_leans_each_bin_toward_the_next_by_its_position() -> None:
    source = np.array([[0.0, 10.0, 20.0], [0.0, 10.0, 20.0]], dtype=np.float32)
    out = bilinear_upsample(source, 3)
    assert out.shape == (3, 3)
    # factors 0, 0.5 and 0 (top bin is not blended)
    np.testing.assert_allclose(out, [[0.0, 15.0, 20.0]] * 3)

    wide = np.tile(np.array([0.0, 10.0, 20.0, 30.0, 40.0], dtype=np.float32), (2, 1))
    np.testing.assert_allclose(bilinear_upsample(wide, 4)[0], [0.0, 12.5, 25.0, 37.5, 40.0])


def test_bilinear_upsample_interpolates_time_before_frequency() -> None:
    source = np.array([[0.0, 0.0], [8.0, 8.0]], dtype=np.float32)
    out = bilinear_upsample(source, 3)
    np.testing.assert_allclose(out, [[0.0, 0.0], [4.0, 4.0], [8.0, 8.0]])


def test_upsample_to_single_column() -> None:
    out = resample_frames(_ramp(1), 1)
    assert out.shape == (1, 2)


def test_invalid_target_or_strategy_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        resample_frames(_ramp(4), 0)
    with pytest.raises(ConfigurationError, match="downsample strategy"):
        resample_frames(_ramp(4), 2, downsample="median")  # type: ignore[arg-type]
