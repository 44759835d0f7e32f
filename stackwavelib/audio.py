from __future__ import annotations

import logging
import os
import time
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass

import numpy as np
import soundfile as sf

from .cache import CacheProvider, cache_key
from .config import MAX_TARGET_COUNT
from .events import RENDER_DATA_COMPLETE, RENDER_DATA_LOAD, EventBus
from .models import WaveformRenderData
from .sampler import sample_waveform
from .spectral import analyze_spectrum

log = logging.getLogger(__name__)

AUDIO_EXTENSIONS = (".wav", ".aif", ".aiff", ".flac", ".ogg")


@dataclass
class PcmData:
    """Decoded audio as handed to the pipeline.

    Only ``samples`` (channel 0) is analyzed; ``channels`` and
    ``samplerate`` are informational.
    """
    samples: np.ndarray
    samplerate: int
    channels: int

    @property
    def total_samples(self) -> int:
        return len(self.samples)


def channel_zero(audio_data: np.ndarray | None) -> np.ndarray:
    """First channel of a ``(frames,)`` or ``(frames, channels)`` array."""
    if audio_data is None:
        return np.zeros(0, dtype=np.float64)
    data = np.asarray(audio_data)
    if data.ndim == 1:
        return np.ascontiguousarray(data, dtype=np.float64)
    if data.shape[1] == 0:
        return np.zeros(len(data), dtype=np.float64)
    return np.ascontiguousarray(data[:, 0], dtype=np.float64)


def load_pcm(filepath: str) -> PcmData:
    """Decode an audio file with soundfile.  Decode errors propagate."""
    data, samplerate = sf.read(filepath, dtype="float64", always_2d=True)
    return PcmData(
        samples=channel_zero(data),
        samplerate=int(samplerate),
        channels=int(data.shape[1]),
    )


def compute_render_data(pcm, target_count: int = MAX_TARGET_COUNT) -> WaveformRenderData:
    """Sampler followed by analyzer over channel-0 PCM.

    Never raises for an empty buffer: the result is all zeros.
    """
    samples = pcm.samples if isinstance(pcm, PcmData) else channel_zero(pcm)
    t0 = time.perf_counter()
    waveform = sample_waveform(samples, target_count)
    spectral = analyze_spectrum(samples, waveform)
    log.debug("computed %d positions from %d samples in %.1f ms",
              len(waveform), len(samples), (time.perf_counter() - t0) * 1e3)
    return WaveformRenderData(waveform, spectral)


def load_cached_render_data(cache: CacheProvider | None,
                            key: str) -> WaveformRenderData | None:
    """Cached render data for *key*, or None when missing or malformed."""
    if cache is None:
        return None
    cached = cache.get(key)
    if cached is None:
        return None
    try:
        return WaveformRenderData.from_dict(cached)
    except (ValueError, TypeError) as e:
        log.warning("Discarding cached render data %s: %s", key, e)
        return None


def load_render_data(filepath: str, cache: CacheProvider | None = None,
                     target_count: int = MAX_TARGET_COUNT) -> WaveformRenderData:
    """Render data for an audio file, served from *cache* when present.

    A cached entry only counts as a hit when its length equals the
    clamped *target_count*.  Otherwise the file is decoded, analyzed and
    the result stored under :func:`cache_key` of *filepath*, replacing
    any entry of another resolution.
    """
    count = max(0, min(int(target_count), MAX_TARGET_COUNT))
    key = cache_key(filepath)
    cached = load_cached_render_data(cache, key)
    if cached is not None:
        if len(cached) == count:
            log.debug("cache hit for %s", filepath)
            return cached
        log.debug("cached render data for %s has %d positions, %d requested",
                  filepath, len(cached), count)

    data = compute_render_data(load_pcm(filepath), target_count)
    if cache is not None:
        cache.set(key, data.to_dict())
    return data


def load_render_data_batch(
    filepaths: list[str],
    cache: CacheProvider | None = None,
    target_count: int = MAX_TARGET_COUNT,
    event_bus: EventBus | None = None,
    max_workers: int | None = None,
) -> dict[str, WaveformRenderData | Exception]:
    """Load render data for several files on a thread pool.

    Per-file failures are returned in place of the result rather than
    aborting the batch.  Emits ``render_data.load`` before and
    ``render_data.complete`` after each file when *event_bus* is given.
    """
    total = len(filepaths)
    results: dict[str, WaveformRenderData | Exception] = {}
    if not total:
        return results
    workers = max_workers or min(os.cpu_count() or 4, 8, total)

    def _one(idx: int, path: str):
        if event_bus:
            event_bus.emit(RENDER_DATA_LOAD, filepath=path, index=idx, total=total)
        try:
            return load_render_data(path, cache, target_count)
        except Exception as e:
            log.warning("Failed to load %s: %s", path, e)
            return e

    with ThreadPoolExecutor(max_workers=workers) as pool:
        futures = {pool.submit(_one, idx, path): path
                   for idx, path in enumerate(filepaths)}
        for future in as_completed(futures):
            path = futures[future]
            results[path] = future.result()
            if event_bus:
                event_bus.emit(RENDER_DATA_COMPLETE, filepath=path,
                               ok=not isinstance(results[path], Exception),
                               total=total)
    return {path: results[path] for path in filepaths}


def discover_audio_files(directory: str) -> list[str]:
    """Sorted audio file paths directly inside *directory*."""
    return sorted(
        os.path.join(directory, f) for f in os.listdir(directory)
        if f.lower().endswith(AUDIO_EXTENSIONS)
    )
