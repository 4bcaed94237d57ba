from __future__ import annotations

import argparse
import logging
import math
from collections.abc import Sequence
from dataclasses import replace
from pathlib import Path
from typing import cast

from specgen.analysis import compute_global_range
from specgen.audio_io import AudioDecodeError, load_audio
from specgen.exporter import export_png, stitch_parts
from specgen.logging_utils import configure_logging
from specgen.metadata import AudioMetadata, build_spectrogram_info, extract_metadata, save_metadata
from specgen.models import (
    COLOR_PRESETS,
    DEFAULT_CONFIG,
    DEFAULTS,
    FREQUENCY_SCALES,
    MAPPING_KINDS,
    WINDOW_KINDS,
    AudioSamples,
    ConfigurationError,
    RasterImage,
    SpectrogramConfig,
)
from specgen.options import RenderOptions, parse_options
from specgen.spectrogram_renderer import render_spectrogram

logger = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="specgen",
        description="Render a spectrogram PNG (and a metadata sidecar) from an audio file.",
    )
    parser.add_argument("audio_file", type=Path, help="Path to the audio file")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        default=None,
        help=f"Output PNG path (default: {DEFAULTS.output_dir}/<audio name>.png)",
    )
    parser.add_argument("-H", "--height", type=int, default=DEFAULTS.height, help="Image height in pixels")
    parser.add_argument(
        "-p",
        "--pixels-per-second",
        type=float,
        default=DEFAULTS.pixels_per_second,
        help="Horizontal pixels per second of audio",
    )
    parser.add_argument("-f", "--fft-size", type=int, default=DEFAULTS.fft_size, help="FFT size (power of two)")
    parser.add_argument("--hop-size", type=int, default=DEFAULTS.hop_size, help="Hop size in samples")
    parser.add_argument("--max-width", type=int, default=DEFAULTS.max_width, help="Widest image before splitting")
    parser.add_argument("--window", type=str.lower, choices=WINDOW_KINDS, default=DEFAULTS.window)
    parser.add_argument("--color", type=str.lower, choices=COLOR_PRESETS, default=DEFAULTS.color_preset)
    parser.add_argument("--scale", type=str.lower, choices=FREQUENCY_SCALES, default=DEFAULTS.frequency_scale)
    parser.add_argument("--mapping", type=str.lower, choices=MAPPING_KINDS, default=DEFAULTS.mapping)
    parser.add_argument("--min-freq", type=float, default=None, help="Lowest displayed frequency (Hz)")
    parser.add_argument("--max-freq", type=float, default=None, help="Highest displayed frequency (Hz)")
    parser.add_argument("--min-db", type=float, default=None, help="dB mapped to the bottom of the palette")
    parser.add_argument("--max-db", type=float, default=None, help="dB mapped to the top of the palette")
    parser.add_argument("--workers", type=int, default=1, help="Threads used for frame analysis")
    parser.add_argument("-v", "--verbose", action="store_true", help="Log debug output")
    parser.add_argument("--log-file", type=Path, default=None, help="Also write a rotating debug log here")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(verbose=args.verbose, log_file=args.log_file)
    try:
        generate(args)
    except (ConfigurationError, FileNotFoundError, AudioDecodeError) as exc:
        logger.error("error generating spectrogram: %s", exc)
        return 1
    except Exception:
        logger.exception("error generating spectrogram")
        return 1
    logger.info("done")
    return 0


def generate(args: argparse.Namespace) -> list[Path]:
    """Run the whole pipeline for parsed arguments and return the written images."""
    parsed, error = parse_options(
        RenderOptions,
        {
            "fft_size": args.fft_size,
            "hop_size": args.hop_size,
            "window": args.window,
            "height": args.height,
            "max_width": args.max_width,
            "pixels_per_second": args.pixels_per_second,
            "color_preset": args.color,
            "frequency_scale": args.scale,
            "mapping": args.mapping,
            "min_frequency": args.min_freq,
            "max_frequency": args.max_freq,
            "min_db": args.min_db,
            "max_db": args.max_db,
            "max_workers": args.workers,
        },
    )
    if parsed is None:
        raise ConfigurationError(error or "Invalid options")
    options = cast(RenderOptions, parsed)

    audio_path = Path(args.audio_file)
    if not audio_path.exists():
        raise FileNotFoundError(f"Audio file '{audio_path}' does not exist.")
    output_path = Path(args.output) if args.output else Path(DEFAULTS.output_dir) / f"{audio_path.stem}.png"
    output_path.parent.mkdir(parents=True, exist_ok=True)
    config = replace(DEFAULT_CONFIG, window=options.window, max_workers=options.max_workers)

    logger.info(
        "processing %s: height=%d pps=%.2f color=%s scale=%s mapping=%s",
        audio_path,
        options.height,
        options.pixels_per_second,
        options.color_preset,
        options.frequency_scale,
        options.mapping,
    )

    metadata = extract_metadata(audio_path)
    meta_path = output_path.with_suffix(".meta.json")
    save_metadata(metadata, meta_path)
    logger.info("metadata saved to %s", meta_path)

    _, audio = load_audio(audio_path)
    width = max(1, math.ceil(audio.duration_sec * options.pixels_per_second))
    if width <= options.max_width:
        logger.info("generating single spectrogram image (%dx%d)", width, options.height)
        raster = _render(audio, options, config, width, 0.0, None, options.min_db, options.max_db)
        return [_export(raster, output_path, metadata, options)]
    return _render_split(audio, options, config, width, output_path, metadata)


def _render_split(
    audio: AudioSamples,
    options: RenderOptions,
    config: SpectrogramConfig,
    width: int,
    output_path: Path,
    metadata: AudioMetadata,
) -> list[Path]:
    num_parts = math.ceil(width / options.max_width)
    base = output_path.with_suffix("")
    logger.info("audio is %dpx wide, splitting into %d parts of max %dpx", width, num_parts, options.max_width)

    global_range = compute_global_range(audio, options.fft_size, options.hop_size, config)
    written: list[Path] = []

    logger.info("generating overview spectrogram")
    overview = _render(
        audio, options, config, options.max_width, 0.0, None, global_range.min_db, global_range.max_db
    )
    written.append(_export(overview, base.with_name(f"{base.name}_overview.png"), metadata, options))

    part_paths: list[Path] = []
    for index in range(num_parts):
        start = index * options.max_width / options.pixels_per_second
        end = min((index + 1) * options.max_width / options.pixels_per_second, audio.duration_sec)
        part_width = max(1, math.ceil((end - start) * options.pixels_per_second))
        logger.info("generating part %d/%d (%.2fs - %.2fs)", index + 1, num_parts, start, end)
        raster = _render(
            audio, options, config, part_width, start, end - start, global_range.min_db, global_range.max_db
        )
        part_path = _export(raster, base.with_name(f"{base.name}_part{index + 1}.png"), metadata, options)
        part_paths.append(part_path)
    written.extend(part_paths)

    written.append(stitch_parts(part_paths, base.with_name(f"{base.name}_stitched.png")))
    return written


def _render(
    audio: AudioSamples,
    options: RenderOptions,
    config: SpectrogramConfig,
    width: int,
    start: float,
    duration: float | None,
    min_db: float | None,
    max_db: float | None,
) -> RasterImage:
    return render_spectrogram(
        audio,
        width=width,
        height=options.height,
        start_time=start,
        duration=duration,
        color_preset=options.color_preset,
        frequency_scale=options.frequency_scale,
        mapping=options.mapping,
        min_frequency=options.min_frequency,
        max_frequency=options.max_frequency,
        min_db=min_db,
        max_db=max_db,
        fft_size=options.fft_size,
        hop_size=options.hop_size,
        config=config,
    )


def _export(raster: RasterImage, path: Path, metadata: AudioMetadata, options: RenderOptions) -> Path:
    info = build_spectrogram_info(
        metadata,
        time_start=raster.time_start,
        time_end=raster.time_end,
        width=raster.width,
        height=raster.height,
        pixels_per_second=options.pixels_per_second,
        params={**raster.params, "min_db": raster.min_db, "max_db": raster.max_db},
    )
    return export_png(raster, path, info)


if __name__ == "__main__":
    raise SystemExit(main())
