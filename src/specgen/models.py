from __future__ import annotations

from collections.abc import Iterator
from dataclasses import asdict, dataclass, field
from typing import Any, Literal

import numpy as np

WindowKind = Literal["rectangular", "hanning", "hamming", "blackman"]
ColorPreset = Literal["gray", "invgray", "heat", "inferno"]
FrequencyScale = Literal["linear", "log", "mel", "bark", "erb"]
MappingKind = Literal["linear", "log", "power", "sqrt", "sigmoid"]
DownsampleStrategy = Literal["average", "peak"]
UpsampleStrategy = Literal["linear", "bilinear"]

WINDOW_KINDS: tuple[str, ...] = ("rectangular", "hanning", "hamming", "blackman")
COLOR_PRESETS: tuple[str, ...] = ("gray", "invgray", "heat", "inferno")
FREQUENCY_SCALES: tuple[str, ...] = ("linear", "log", "mel", "bark", "erb")
MAPPING_KINDS: tuple[str, ...] = ("linear", "log", "power", "sqrt", "sigmoid")
DOWNSAMPLE_STRATEGIES: tuple[str, ...] = ("average", "peak")
UPSAMPLE_STRATEGIES: tuple[str, ...] = ("linear", "bilinear")


class ConfigurationError(ValueError):
    """Raised for structural violations (bad FFT size, oversized canvas, unknown kinds)."""


@dataclass(frozen=True)
class SpectrogramConfig:
    min_db_display: float = -120.0
    max_db_theoretical: float = 0.0
    reference_level: float = 1.0
    min_power_value: float = 1e-12
    max_canvas_size: int = 16384
    window: WindowKind = "hanning"
    downsample_strategy: DownsampleStrategy = "peak"
    upsample_strategy: UpsampleStrategy = "bilinear"
    max_workers: int = 1
    frame_chunk_size: int = 256

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RenderDefaults:
    output_dir: str = "output"
    height: int = 768
    max_width: int = 2048
    pixels_per_second: float = 96.0
    fft_size: int = 2048
    hop_size: int = 512
    window: WindowKind = "hanning"
    color_preset: ColorPreset = "inferno"
    frequency_scale: FrequencyScale = "bark"
    mapping: MappingKind = "power"


DEFAULT_CONFIG = SpectrogramConfig()
DEFAULTS = RenderDefaults()


@dataclass(frozen=True)
class AudioInfo:
    path: str
    name: str
    sample_rate: int
    duration_sec: float
    channels: int
    truncated: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class AudioSamples:
    """Mono float samples in [-1, 1] as produced by the decoder."""

    samples: np.ndarray
    sample_rate: int
    duration_sec: float
    channels: int = 1

    def __post_init__(self) -> None:
        data = np.asarray(self.samples, dtype=np.float32)
        if data.ndim != 1:
            raise ConfigurationError(f"expected mono samples, got shape {data.shape}")
        data.setflags(write=False)
        object.__setattr__(self, "samples", data)

    @classmethod
    def from_array(cls, samples: np.ndarray, sample_rate: int) -> AudioSamples:
        data = np.asarray(samples, dtype=np.float32)
        duration = data.shape[0] / float(sample_rate) if sample_rate > 0 else 0.0
        return cls(samples=data, sample_rate=int(sample_rate), duration_sec=duration)


@dataclass(frozen=True)
class SpectrogramFrame:
    frequency_bins: np.ndarray
    time_position: float
    frame_duration: float


@dataclass(frozen=True)
class SpectrogramMatrix:
    values: np.ndarray  # (frames, fft_size // 2) dB
    time_positions: np.ndarray
    sample_rate: int
    fft_size: int
    hop_size: int
    duration_sec: float

    def __post_init__(self) -> None:
        values = np.asarray(self.values, dtype=np.float32)
        if values.ndim != 2 or values.shape[1] != self.fft_size // 2:
            raise ConfigurationError(
                f"spectrogram values must have shape (frames, {self.fft_size // 2}), got {values.shape}"
            )
        times = np.asarray(self.time_positions, dtype=np.float64)
        if times.shape != (values.shape[0],):
            raise ConfigurationError("time_positions must hold one entry per frame")
        values.setflags(write=False)
        times.setflags(write=False)
        object.__setattr__(self, "values", values)
        object.__setattr__(self, "time_positions", times)

    @property
    def num_frames(self) -> int:
        return int(self.values.shape[0])

    @property
    def num_bins(self) -> int:
        return int(self.values.shape[1])

    @property
    def frequency_resolution(self) -> float:
        return self.sample_rate / float(self.fft_size)

    @property
    def time_resolution(self) -> float:
        return self.hop_size / float(self.sample_rate)

    @property
    def is_empty(self) -> bool:
        return self.num_frames == 0

    def frame(self, index: int) -> SpectrogramFrame:
        return SpectrogramFrame(
            frequency_bins=self.values[index],
            time_position=float(self.time_positions[index]),
            frame_duration=self.time_resolution,
        )

    def frames(self) -> Iterator[SpectrogramFrame]:
        for index in range(self.num_frames):
            yield self.frame(index)


@dataclass(frozen=True)
class GlobalDbRange:
    min_db: float
    max_db: float
    dynamic_range: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class RasterImage:
    width: int
    height: int
    pixels: np.ndarray  # (height, width, 3) uint8
    time_start: float = 0.0
    time_end: float = 0.0
    min_db: float = DEFAULT_CONFIG.min_db_display
    max_db: float = DEFAULT_CONFIG.max_db_theoretical
    params: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.pixels.shape != (self.height, self.width, 3):
            raise ConfigurationError(
                f"raster pixels must have shape ({self.height}, {self.width}, 3), got {self.pixels.shape}"
            )

    def tobytes(self) -> bytes:
        return np.ascontiguousarray(self.pixels, dtype=np.uint8).tobytes()

    def to_dict(self) -> dict[str, Any]:
        return {
            "width": self.width,
            "height": self.height,
            "time_start": self.time_start,
            "time_end": self.time_end,
            "min_db": self.min_db,
            "max_db": self.max_db,
            "params": dict(self.params),
        }


def validate_choice(value: str, options: tuple[str, ...], label: str) -> None:
    if value not in options:
        raise ConfigurationError(f"Invalid {label} '{value}'. Valid options: {', '.join(options)}")
