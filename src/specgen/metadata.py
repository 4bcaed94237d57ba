from __future__ import annotations

import hashlib
import json
import logging
from dataclasses import asdict, dataclass, field
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast

import soundfile as sf

logger = logging.getLogger(__name__)

SPECTROGRAM_INFO_KEY = "specgen:spectrogram"


@dataclass(frozen=True)
class AudioMetadata:
    file_name: str
    file_path: str
    file_size: int
    md5_hash: str
    format: str = ""
    format_info: str = ""
    subtype: str = ""
    sample_rate: int = 0
    channels: int = 0
    frames: int = 0
    duration_sec: float = 0.0
    modification_time: str = ""
    tags: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def compute_md5(path: Path) -> str:
    digest = hashlib.md5()
    with path.open("rb") as handle:
        for chunk in iter(lambda: handle.read(8192), b""):
            digest.update(chunk)
    return digest.hexdigest()


def extract_metadata(path: Path) -> AudioMetadata:
    """Collect descriptive metadata for ``path``.

    Stream details come from libsndfile when it can open the file; otherwise
    only file-level fields are filled in.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Audio file '{path}' does not exist.")
    stat = path.stat()
    base = {
        "file_name": path.name,
        "file_path": str(path),
        "file_size": int(stat.st_size),
        "md5_hash": compute_md5(path),
        "modification_time": datetime.fromtimestamp(stat.st_mtime, UTC).isoformat(),
    }
    try:
        info = sf.info(str(path))
    except RuntimeError:
        logger.debug("no stream metadata available for %s", path.name, exc_info=True)
        return AudioMetadata(**base)

    return AudioMetadata(
        **base,
        format=str(info.format),
        format_info=str(info.format_info),
        subtype=str(info.subtype),
        sample_rate=int(info.samplerate),
        channels=int(info.channels),
        frames=int(info.frames),
        duration_sec=float(info.duration),
        tags=_read_tags(path),
    )


def save_metadata(metadata: AudioMetadata, output_path: Path) -> None:
    output_path.parent.mkdir(parents=True, exist_ok=True)
    with output_path.open("w", encoding="utf-8") as handle:
        json.dump(metadata.to_dict(), handle, ensure_ascii=False, indent=2)


def load_metadata(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    return cast(dict[str, Any], data)


def build_spectrogram_info(
    metadata: AudioMetadata | None,
    time_start: float,
    time_end: float,
    width: int,
    height: int,
    pixels_per_second: float,
    params: dict[str, Any],
) -> dict[str, Any]:
    """Generation record embedded into each rendered image."""
    return {
        "source": metadata.to_dict() if metadata is not None else None,
        "generation_time": datetime.now(UTC).isoformat(),
        "time_range": {"start": float(time_start), "end": float(time_end)},
        "parameters": {
            "width": int(width),
            "height": int(height),
            "pixels_per_second": float(pixels_per_second),
            **params,
        },
    }


def _read_tags(path: Path) -> dict[str, str]:
    try:
        with sf.SoundFile(str(path)) as handle:
            raw = handle.copy_metadata()
    except RuntimeError:
        return {}
    return {str(key): str(value) for key, value in raw.items() if value}
