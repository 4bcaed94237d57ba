from __future__ import annotations

import json
import logging
from collections.abc import Sequence
from pathlib import Path
from typing import Any, cast

import numpy as np
from PIL import Image, PngImagePlugin

from specgen.metadata import SPECTROGRAM_INFO_KEY
from specgen.models import RasterImage

logger = logging.getLogger(__name__)


def export_png(raster: RasterImage, output_path: Path, info: dict[str, Any] | None = None) -> Path:
    """Write ``raster`` as a PNG, embedding ``info`` as a JSON text chunk."""
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    pixels = np.ascontiguousarray(raster.pixels, dtype=np.uint8)
    image = Image.fromarray(pixels)
    png_info = PngImagePlugin.PngInfo()
    if info is not None:
        png_info.add_text(SPECTROGRAM_INFO_KEY, json.dumps(info, ensure_ascii=False))
    image.save(output_path, format="PNG", pnginfo=png_info)
    logger.info("wrote %s (%dx%d)", output_path.name, raster.width, raster.height)
    return output_path


def read_png_info(path: Path) -> dict[str, Any] | None:
    with Image.open(path) as image:
        text = getattr(image, "text", {}).get(SPECTROGRAM_INFO_KEY)
    if text is None:
        return None
    return cast(dict[str, Any], json.loads(text))


def stitch_info(part_paths: Sequence[Path]) -> dict[str, Any]:
    sizes: list[tuple[int, int]] = []
    for path in part_paths:
        if not Path(path).exists():
            raise FileNotFoundError(f"Part image '{path}' does not exist.")
        with Image.open(path) as image:
            sizes.append((int(image.width), int(image.height)))
    return {
        "total_width": sum(width for width, _ in sizes),
        "height": sizes[0][1] if sizes else 0,
        "parts": [{"path": str(path), "width": w, "height": h} for path, (w, h) in zip(part_paths, sizes)],
    }


def stitch_parts(part_paths: Sequence[Path], output_path: Path) -> Path:
    """Place the part images left to right in one PNG.

    The output takes the height of the first part; taller parts are cropped and
    shorter ones leave black below them.
    """
    if not part_paths:
        raise ValueError("No part images to stitch.")
    layout = stitch_info(part_paths)
    canvas = Image.new("RGB", (layout["total_width"], layout["height"]), (0, 0, 0))
    offset = 0
    for path in part_paths:
        with Image.open(path) as part:
            canvas.paste(part.convert("RGB"), (offset, 0))
            offset += part.width
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    canvas.save(output_path, format="PNG")
    logger.info("stitched %d parts into %s (%dx%d)", len(part_paths), output_path.name, canvas.width, canvas.height)
    return output_path
