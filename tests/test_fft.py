from __future__ import annotations

import numpy as np
import pytest

from specgen.fft import bit_reversal_indices, fft_radix2, is_power_of_two, validate_fft_size
from specgen.models import ConfigurationError


def test_bit_reversal_of_eight() -> None:
    assert bit_reversal_indices(8).tolist() == [0, 4, 2, 6, 1, 5, 3, 7]


def test_batched_fft_matches_numpy() -> None:
    rng = np.random.default_rng(7)
    frames = rng.uniform(-1.0, 1.0, size=(5, 256))
    np.testing.assert_allclose(fft_radix2(frames), np.fft.fft(frames, axis=1), atol=1e-9)


def test_single_frame_keeps_its_shape() -> None:
    frame = np.sin(2.0 * np.pi * 4.0 * np.arange(32) / 32.0)
    spectrum = fft_radix2(frame)
    assert spectrum.shape == (32,)
    assert spectrum.dtype == np.complex128
    assert int(np.argmax(np.abs(spectrum[:16]))) == 4


@pytest.mark.parametrize("size", [0, 1, 3, 12, 1000, 2047])
def test_non_power_of_two_sizes_are_rejected(size: int) -> None:
    with pytest.raises(ConfigurationError):
        validate_fft_size(size)


def test_fft_rejects_non_power_of_two_frames() -> None:
    with pytest.raises(ConfigurationError):
        fft_radix2(np.zeros((2, 12)))


def test_is_power_of_two() -> None:
    assert [n for n in range(1, 70) if is_power_of_two(n)] == [1, 2, 4, 8, 16, 32, 64]
