from __future__ import annotations

import logging
from pathlib import Path

import audioread
import librosa
import numpy as np
import soundfile as sf

from specgen.models import AudioInfo, AudioSamples

logger = logging.getLogger(__name__)


class AudioDecodeError(RuntimeError):
    """No available decoder could read the file."""


def load_audio(path: Path, max_duration_sec: float | None = None) -> tuple[AudioInfo, AudioSamples]:
    """Decode ``path`` into mono float samples.

    libsndfile handles WAV/AIFF/FLAC/OGG (and MP3 on recent builds); anything
    else goes through audioread, which uses the platform's codecs or ffmpeg.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Audio file '{path}' does not exist.")

    try:
        sample_rate, channels, audio = _read_soundfile(path)
    except RuntimeError as error:
        logger.info("soundfile could not decode %s (%s); falling back to audioread", path.name, error)
        try:
            sample_rate, channels, audio = _read_audioread(path)
        except (audioread.DecodeError, OSError) as fallback_error:
            raise AudioDecodeError(f"Unable to decode '{path}': {fallback_error}") from fallback_error

    total_samples = audio.shape[0]
    truncated = False
    if max_duration_sec is not None:
        max_samples = int(sample_rate * max_duration_sec)
        truncated = total_samples > max_samples
        if truncated:
            audio = audio[:max_samples]

    duration_sec = total_samples / float(sample_rate) if sample_rate > 0 else 0.0
    info = AudioInfo(
        path=str(path),
        name=path.name,
        sample_rate=int(sample_rate),
        duration_sec=duration_sec,
        channels=channels,
        truncated=truncated,
    )
    samples = AudioSamples(
        samples=audio,
        sample_rate=int(sample_rate),
        duration_sec=audio.shape[0] / float(sample_rate) if sample_rate > 0 else 0.0,
    )
    logger.info(
        "audio info: %d channels, %d Hz, %.6fs%s",
        channels,
        sample_rate,
        duration_sec,
        " (truncated)" if truncated else "",
    )
    return info, samples


def _read_soundfile(path: Path) -> tuple[int, int, np.ndarray]:
    data, sample_rate = sf.read(str(path), dtype="float32", always_2d=True)
    channels = int(data.shape[1])
    return int(sample_rate), channels, _to_mono(data.T)


def _read_audioread(path: Path) -> tuple[int, int, np.ndarray]:
    with audioread.audio_open(str(path)) as source:
        sample_rate = int(source.samplerate)
        channels = int(source.channels)
        chunks = [librosa.util.buf_to_float(buffer, n_bytes=2, dtype=np.float32) for buffer in source]
    if not chunks:
        return sample_rate, channels, np.zeros(0, dtype=np.float32)
    interleaved = np.concatenate(chunks)
    # audioread yields interleaved 16-bit frames; drop any trailing partial frame.
    usable = interleaved.size - (interleaved.size % max(channels, 1))
    frames = interleaved[:usable].reshape((-1, max(channels, 1)))
    return sample_rate, channels, _to_mono(frames.T)


def _to_mono(channel_major: np.ndarray) -> np.ndarray:
    mono = librosa.to_mono(np.ascontiguousarray(channel_major, dtype=np.float32))
    return np.asarray(np.clip(mono, -1.0, 1.0), dtype=np.float32)
