from __future__ import annotations

import numpy as np
import pytest

from specgen.models import ConfigurationError
from specgen.windows import apply_window, window_coefficients


def test_hanning_is_zero_at_both_ends() -> None:
    window = window_coefficients(16, "hanning")
    assert window[0] == pytest.approx(0.0, abs=1e-12)
    assert window[-1] == pytest.approx(0.0, abs=1e-12)
    assert float(np.max(window)) <= 1.0


@pytest.mark.parametrize(
    ("kind", "scipy_name"),
    [("hanning", "hann"), ("hamming", "hamming"), ("blackman", "blackman")],
)
def test_windows_match_symmetric_scipy_windows(kind: str, scipy_name: str) -> None:
    signal = pytest.importorskip("scipy.signal")
    expected = signal.get_window(scipy_name, 64, fftbins=False)
    np.testing.assert_allclose(window_coefficients(64, kind), expected, atol=1e-12)  # type: ignore[arg-type]


def test_rectangular_window_leaves_frames_untouched() -> None:
    frames = np.arange(12, dtype=np.float64).reshape(3, 4)
    result = apply_window(frames, "rectangular")
    assert result is frames
    np.testing.assert_array_equal(result, np.arange(12, dtype=np.float64).reshape(3, 4))


def test_apply_window_weights_every_row() -> None:
    frames = np.ones((2, 8), dtype=np.float64)
    weighted = apply_window(frames, "hamming")
    np.testing.assert_allclose(weighted[0], window_coefficients(8, "hamming"))
    np.testing.assert_allclose(weighted[1], window_coefficients(8, "hamming"))


def test_window_shorter_than_two_samples_is_rejected() -> None:
    with pytest.raises(ConfigurationError):
        window_coefficients(1, "hanning")


def test_unknown_window_kind_is_rejected() -> None:
    with pytest.raises(ConfigurationError, match="Invalid window type"):
        window_coefficients(16, "kaiser")  # type: ignore[arg-type]
