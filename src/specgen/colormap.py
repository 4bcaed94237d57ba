from __future__ import annotations

from collections.abc import Callable

import numpy as np

from specgen.models import COLOR_PRESETS, MAPPING_KINDS, ColorPreset, MappingKind, validate_choice

POWER_EXPONENT = 2.1
SQRT_EXPONENT = 0.5
SIGMOID_STEEPNESS = 4.0

# (breakpoint, rgb at breakpoint) pairs; segments are interpolated linearly.
_HEAT_STOPS = (
    (0.0, (0.0, 0.0, 0.0)),
    (0.33, (255.0, 0.0, 0.0)),
    (0.67, (255.0, 255.0, 0.0)),
    (1.0, (255.0, 255.0, 255.0)),
)
_INFERNO_STOPS = (
    (0.0, (0.0, 0.0, 0.0)),
    (0.2, (50.0, 0.0, 100.0)),
    (0.4, (150.0, 0.0, 200.0)),
    (0.6, (255.0, 0.0, 0.0)),
    (0.8, (255.0, 128.0, 0.0)),
    (1.0, (255.0, 255.0, 255.0)),
)


def normalize_db(db: np.ndarray, min_db: float, max_db: float) -> np.ndarray:
    """Scale dB values into [0, 1]; anything at or below ``min_db`` maps to 0."""
    values = np.asarray(db, dtype=np.float64)
    above = values > min_db
    db_range = float(max_db) - float(min_db)
    if db_range <= 0.0:
        return np.where(above, 1.0, 0.0)
    normalized = np.where(above, (values - min_db) / db_range, 0.0)
    return np.asarray(np.clip(normalized, 0.0, 1.0))


def apply_mapping(values: np.ndarray, kind: MappingKind) -> np.ndarray:
    validate_choice(kind, MAPPING_KINDS, "mapping type")
    clamped = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    return np.asarray(_MAPPINGS[kind](clamped))


def apply_palette(values: np.ndarray, preset: ColorPreset) -> np.ndarray:
    """Return uint8 RGB with a trailing axis of 3 for every input value."""
    validate_choice(preset, COLOR_PRESETS, "color preset")
    t = np.clip(np.asarray(values, dtype=np.float64), 0.0, 1.0)
    rgb = _PALETTES[preset](t)
    return np.clip(np.rint(rgb), 0.0, 255.0).astype(np.uint8)


def color_for(value: float, preset: ColorPreset, kind: MappingKind = "linear") -> tuple[int, int, int]:
    rgb = apply_palette(apply_mapping(np.array([value]), kind), preset)[0]
    return int(rgb[0]), int(rgb[1]), int(rgb[2])


def _gray(t: np.ndarray) -> np.ndarray:
    level = 255.0 - 255.0 * t
    return np.stack((level, level, level), axis=-1)


def _inverted_gray(t: np.ndarray) -> np.ndarray:
    level = 255.0 * t
    return np.stack((level, level, level), axis=-1)


def _piecewise(stops: tuple[tuple[float, tuple[float, float, float]], ...]) -> Callable[[np.ndarray], np.ndarray]:
    breakpoints = np.array([stop[0] for stop in stops], dtype=np.float64)
    colors = np.array([stop[1] for stop in stops], dtype=np.float64)

    def _map(t: np.ndarray) -> np.ndarray:
        segment = np.searchsorted(breakpoints, t, side="right") - 1
        segment = np.clip(segment, 0, breakpoints.size - 2)
        start = breakpoints[segment]
        width = breakpoints[segment + 1] - start
        factor = np.clip((t - start) / width, 0.0, 1.0)[..., None]
        return colors[segment] + (colors[segment + 1] - colors[segment]) * factor

    return _map


_MAPPINGS: dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "linear": lambda x: x,
    "log": lambda x: np.log10(1.0 + 9.0 * x),
    "power": lambda x: np.power(x, POWER_EXPONENT),
    "sqrt": lambda x: np.power(x, SQRT_EXPONENT),
    "sigmoid": lambda x: 1.0 / (1.0 + np.exp(-SIGMOID_STEEPNESS * (x - 0.5))),
}

_PALETTES: dict[str, Callable[[np.ndarray], np.ndarray]] = {
    "gray": _gray,
    "invgray": _inverted_gray,
    "heat": _piecewise(_HEAT_STOPS),
    "inferno": _piecewise(_INFERNO_STOPS),
}
