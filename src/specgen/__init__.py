from specgen.analysis import compute_global_range, compute_spectrogram
from specgen.models import (
    DEFAULT_CONFIG,
    DEFAULTS,
    AudioSamples,
    ConfigurationError,
    GlobalDbRange,
    RasterImage,
    SpectrogramConfig,
    SpectrogramMatrix,
)
from specgen.spectrogram_renderer import render_spectrogram

__all__ = [
    "DEFAULT_CONFIG",
    "DEFAULTS",
    "AudioSamples",
    "ConfigurationError",
    "GlobalDbRange",
    "RasterImage",
    "SpectrogramConfig",
    "SpectrogramMatrix",
    "compute_global_range",
    "compute_spectrogram",
    "render_spectrogram",
]
