"""Amplitude envelope: PCM -> mean absolute amplitude per block."""

from __future__ import annotations

import numpy as np

from .config import MAX_SAMPLES_TO_PROCESS, MAX_TARGET_COUNT


def decimate(pcm: np.ndarray, limit: int = MAX_SAMPLES_TO_PROCESS) -> np.ndarray:
    """Nearest-index decimation of *pcm* down to at most *limit* frames.

    Frame ``i`` of the result is ``pcm[floor(i * len(pcm) / limit)]``.
    Buffers at or below the limit are returned unchanged.
    """
    n = len(pcm)
    if n <= limit:
        return pcm
    step = n / limit
    idx = np.floor(np.arange(limit, dtype=np.float64) * step).astype(np.intp)
    return pcm[idx]


def sample_waveform(pcm, target_count: int = MAX_TARGET_COUNT) -> np.ndarray:
    """Reduce one channel of PCM to *target_count* mean-absolute blocks.

    *target_count* is clamped to ``[0, 600]``.  All blocks but the last
    span ``floor(len / target_count)`` frames; the last block starts at
    ``(target_count - 1) * block_size`` and absorbs the remainder.  An
    empty buffer yields all zeros.
    """
    count = max(0, min(int(target_count), MAX_TARGET_COUNT))
    waveform = np.zeros(count, dtype=np.float64)
    data = np.asarray(pcm, dtype=np.float64).ravel()
    if count == 0 or data.size == 0:
        return waveform

    data = decimate(data)
    n = len(data)
    block = n // count

    if block > 0 and count > 1:
        body = np.abs(data[:(count - 1) * block]).reshape(count - 1, block)
        waveform[:-1] = body.sum(axis=1) / block

    tail = data[(count - 1) * block:]
    if tail.size > 0:
        waveform[-1] = np.abs(tail).sum() / tail.size
    return waveform
