from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from specgen.fft import is_power_of_two
from specgen.models import DEFAULTS, ColorPreset, FrequencyScale, MappingKind, WindowKind


class OptionsBase(BaseModel):
    model_config = ConfigDict(extra="forbid")


class AnalysisOptions(OptionsBase):
    fft_size: int = Field(default=DEFAULTS.fft_size, ge=2)
    hop_size: int = Field(default=DEFAULTS.hop_size, ge=1)
    window: WindowKind = DEFAULTS.window

    @field_validator("fft_size")
    @classmethod
    def validate_fft_size(cls, value: int) -> int:
        if not is_power_of_two(value):
            raise ValueError("fft_size must be a power of two")
        return value


class RenderOptions(AnalysisOptions):
    height: int = Field(default=DEFAULTS.height, ge=1)
    max_width: int = Field(default=DEFAULTS.max_width, ge=1)
    pixels_per_second: float = Field(default=DEFAULTS.pixels_per_second, gt=0.0)
    color_preset: ColorPreset = DEFAULTS.color_preset
    frequency_scale: FrequencyScale = DEFAULTS.frequency_scale
    mapping: MappingKind = DEFAULTS.mapping
    min_frequency: float | None = Field(default=None, ge=0.0)
    max_frequency: float | None = Field(default=None, gt=0.0)
    min_db: float | None = None
    max_db: float | None = None
    max_workers: int = Field(default=1, ge=1)

    @model_validator(mode="after")
    def validate_ranges(self) -> RenderOptions:
        if self.min_frequency is not None and self.max_frequency is not None:
            if self.min_frequency >= self.max_frequency:
                raise ValueError("min_frequency must be below max_frequency")
        if self.min_db is not None and self.max_db is not None and self.min_db >= self.max_db:
            raise ValueError("min_db must be below max_db")
        return self


def parse_options(model: type[OptionsBase], payload: Any) -> tuple[OptionsBase | None, str | None]:
    if not isinstance(payload, dict):
        return None, "Invalid options: expected object."
    try:
        return model.model_validate(payload), None
    except ValidationError as exc:
        return None, _format_validation_error(exc)


def _format_validation_error(exc: ValidationError) -> str:
    parts: list[str] = []
    for item in exc.errors():
        loc = ".".join(str(piece) for piece in item.get("loc", [])) or "options"
        msg = item.get("msg", "invalid value")
        parts.append(f"{loc}: {msg}")
    details = "; ".join(parts) if parts else "invalid options"
    return f"Invalid options: {details}"
