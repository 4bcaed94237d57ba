from __future__ import annotations

import argparse
import json
import time
from dataclasses import replace
from datetime import UTC, datetime
from pathlib import Path

import numpy as np

from specgen.analysis import compute_global_range
from specgen.models import DEFAULT_CONFIG, AudioSamples
from specgen.spectrogram_renderer import render_spectrogram


def _parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Benchmark full-pipeline spectrogram renders on a synthetic signal.")
    parser.add_argument("--duration", type=float, default=60.0, help="Synthetic signal length (sec)")
    parser.add_argument("--sample-rate", type=int, default=44100, help="Synthetic signal sample rate (Hz)")
    parser.add_argument("--width", type=int, default=2048, help="Output width (px)")
    parser.add_argument("--height", type=int, default=768, help="Output height (px)")
    parser.add_argument("--fft-size", type=int, default=2048, help="FFT size")
    parser.add_argument("--hop-size", type=int, default=512, help="Hop size")
    parser.add_argument("--workers", type=int, default=1, help="Analysis threads")
    parser.add_argument("--warmup", type=int, default=1, help="Warmup renders")
    parser.add_argument("--iterations", type=int, default=5, help="Measured renders")
    return parser.parse_args()


def main() -> None:
    args = _parse_args()
    samples = int(args.sample_rate * args.duration)
    t = np.arange(samples, dtype=np.float64) / float(args.sample_rate)
    signal = 0.2 * np.sin(2.0 * np.pi * 220.0 * t) + 0.1 * np.sin(2.0 * np.pi * 880.0 * t)
    audio = AudioSamples.from_array(signal.astype(np.float32), args.sample_rate)
    config = replace(DEFAULT_CONFIG, max_workers=args.workers)

    t0 = time.perf_counter()
    db_range = compute_global_range(audio, args.fft_size, args.hop_size, config)
    global_range_ms = (time.perf_counter() - t0) * 1000.0

    times_ms: list[float] = []
    for index in range(args.warmup + args.iterations):
        t0 = time.perf_counter()
        render_spectrogram(
            audio,
            width=args.width,
            height=args.height,
            min_db=db_range.min_db,
            max_db=db_range.max_db,
            fft_size=args.fft_size,
            hop_size=args.hop_size,
            config=config,
        )
        elapsed_ms = (time.perf_counter() - t0) * 1000.0
        if index >= args.warmup:
            times_ms.append(elapsed_ms)

    arr = np.asarray(times_ms, dtype=np.float64)
    payload = {
        "captured_at": datetime.now(UTC).isoformat(),
        "sample_rate": args.sample_rate,
        "duration_sec": args.duration,
        "width": args.width,
        "height": args.height,
        "fft_size": args.fft_size,
        "hop_size": args.hop_size,
        "workers": args.workers,
        "iterations": args.iterations,
        "global_range_ms": round(global_range_ms, 4),
        "timings_ms": [round(float(v), 4) for v in times_ms],
        "stats_ms": {
            "min": float(np.min(arr)),
            "max": float(np.max(arr)),
            "mean": float(np.mean(arr)),
            "p95": float(np.percentile(arr, 95.0)),
        },
    }
    out_dir = Path("logs/benchmarks")
    out_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now().strftime("%Y%m%d-%H%M%S")
    out_file = out_dir / f"render-{stamp}.json"
    latest_file = out_dir / "render-latest.json"
    out_file.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    latest_file.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    print(out_file)


if __name__ == "__main__":
    main()
