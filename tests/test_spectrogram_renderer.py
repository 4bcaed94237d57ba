from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

import numpy as np
import pytest

from specgen import spectrogram_renderer
from specgen.analysis import compute_global_range
from specgen.frequency_scale import frequency_bin_indices
from specgen.models import AudioSamples, ConfigurationError, SpectrogramConfig
from specgen.spectrogram_renderer import render_spectrogram


def _tone(freq: float, sample_rate: int, duration_sec: float) -> AudioSamples:
    t = np.arange(int(sample_rate * duration_sec), dtype=np.float64) / float(sample_rate)
    return AudioSamples.from_array((0.5 * np.sin(2.0 * np.pi * freq * t)).astype(np.float32), sample_rate)


def _sweep(sample_rate: int, duration_sec: float) -> AudioSamples:
    t = np.arange(int(sample_rate * duration_sec), dtype=np.float64) / float(sample_rate)
    f0, f1 = 100.0, 8000.0
    phase = 2.0 * np.pi * (f0 * t + 0.5 * (f1 - f0) / duration_sec * t * t)
    return AudioSamples.from_array((0.5 * np.sin(phase)).astype(np.float32), sample_rate)


def test_one_second_sweep_renders_expected_raster() -> None:
    raster = render_spectrogram(_sweep(44100, 1.0), width=96, height=768, fft_size=2048, hop_size=512)
    assert raster.pixels.shape == (768, 96, 3)
    assert raster.pixels.dtype == np.uint8
    assert raster.time_start == 0.0
    assert raster.time_end == pytest.approx(1.0)
    assert raster.min_db == -120.0
    assert raster.max_db == 0.0
    assert raster.params["frequency_scale"] == "bark"
    assert raster.params["color_preset"] == "inferno"
    assert len(raster.tobytes()) == 768 * 96 * 3
    assert int(raster.pixels.max()) > 0


def test_tone_lights_up_its_row() -> None:
    raster = render_spectrogram(
        _tone(1024.0, 8192, 1.0),
        width=16,
        height=1024,
        color_preset="invgray",
        frequency_scale="linear",
        mapping="linear",
        fft_size=1024,
        hop_size=256,
    )
    brightness = raster.pixels[:, :, 0].astype(np.float64).mean(axis=1)
    tone_rows = np.flatnonzero(frequency_bin_indices(1024, 512, "linear", 8192) == 128)
    assert tone_rows.size > 0
    assert int(np.argmax(brightness)) in tone_rows.tolist()


def test_oversized_canvas_is_rejected_before_analysis(monkeypatch: pytest.MonkeyPatch) -> None:
    def _fail(*args, **kwargs):  # type: ignore[no-untyped-def]
        raise AssertionError("analysis should not run")

    monkeypatch.setattr(spectrogram_renderer, "compute_spectrogram", _fail)
    audio = _tone(440.0, 8000, 0.5)
    with pytest.raises(ConfigurationError, match="Canvas size too large: 16385x10"):
        render_spectrogram(audio, width=16385, height=10)
    with pytest.raises(ConfigurationError):
        render_spectrogram(audio, width=10, height=10, fft_size=1000)
    with pytest.raises(ConfigurationError):
        render_spectrogram(audio, width=10, height=10, color_preset="rainbow")  # type: ignore[arg-type]
    with pytest.raises(ConfigurationError):
        render_spectrogram(audio, width=0, height=10)


def test_canvas_limit_comes_from_config() -> None:
    audio = _tone(440.0, 8000, 0.5)
    with pytest.raises(ConfigurationError):
        render_spectrogram(
            audio, width=65, height=10, fft_size=256, hop_size=128, config=SpectrogramConfig(max_canvas_size=64)
        )


def test_audio_shorter_than_one_frame_renders_floor_color() -> None:
    audio = AudioSamples.from_array(np.zeros(100, dtype=np.float32), 44100)
    black = render_spectrogram(audio, width=10, height=12, color_preset="inferno")
    white = render_spectrogram(audio, width=10, height=12, color_preset="gray")
    assert black.pixels.shape == (12, 10, 3)
    assert np.all(black.pixels == 0)
    assert np.all(white.pixels == 255)


def test_global_range_is_threaded_into_parts() -> None:
    audio = _sweep(16000, 2.0)
    db_range = compute_global_range(audio, 512, 128)
    first = render_spectrogram(
        audio, width=40, height=64, start_time=0.0, duration=1.0, min_db=db_range.min_db, max_db=db_range.max_db,
        fft_size=512, hop_size=128,
    )
    second = render_spectrogram(
        audio, width=40, height=64, start_time=1.0, duration=1.0, min_db=db_range.min_db, max_db=db_range.max_db,
        fft_size=512, hop_size=128,
    )
    assert first.min_db == second.min_db == db_range.min_db
    assert first.max_db == second.max_db == db_range.max_db
    assert first.time_start == 0.0
    assert second.time_start == pytest.approx(1.0)


def test_explicit_frequency_bounds_are_recorded() -> None:
    raster = render_spectrogram(
        _tone(440.0, 8000, 0.5), width=20, height=20, min_frequency=100.0, max_frequency=2000.0,
        fft_size=256, hop_size=64,
    )
    assert raster.params["min_frequency"] == 100.0
    assert raster.params["max_frequency"] == 2000.0
    assert raster.to_dict()["width"] == 20


def test_concurrent_renders_with_different_configs_do_not_interfere() -> None:
    audio = _tone(440.0, 8000, 1.0)
    configs = [SpectrogramConfig(window="hanning"), SpectrogramConfig(window="rectangular")]
    expected = [render_spectrogram(audio, 32, 32, fft_size=256, hop_size=64, config=c).pixels for c in configs]

    with ThreadPoolExecutor(max_workers=4) as executor:
        results = list(
            executor.map(
                lambda c: render_spectrogram(audio, 32, 32, fft_size=256, hop_size=64, config=c).pixels,
                configs * 4,
            )
        )
    for index, pixels in enumerate(results):
        np.testing.assert_array_equal(pixels, expected[index % 2])


def test_empty_range_keeps_requested_start_time() -> None:
    audio = _tone(440.0, 8000, 1.0)
    raster = render_spectrogram(audio, width=4, height=8, start_time=0.95, duration=0.05, fft_size=2048)
    assert raster.time_start == pytest.approx(0.95)
    assert raster.time_end >= raster.time_start
    clamped = render_spectrogram(
        AudioSamples.from_array(np.zeros(100, dtype=np.float32), 8000), width=4, height=8, start_time=-2.0
    )
    assert clamped.time_start == 0.0
