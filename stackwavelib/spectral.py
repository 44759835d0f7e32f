"""Cheap three-band energy estimate per envelope position.

No FFT: the band proxies are mean absolute differences between samples at
three lag scales (1/8, 1/32 and 1/64 of the window), each multiplied by
the window RMS.  Long lags respond to slow (low-frequency) movement,
short lags to fast movement.
"""

from __future__ import annotations

import numpy as np

from .config import BAND_ENERGY_SCALE, SPECTRAL_WINDOW_CAP


def _lag_variation(segment: np.ndarray, lag: int, stride: int) -> float:
    """Mean ``|s[i] - s[i + lag]|`` over ``i = 0, stride, ...`` while
    ``i < len - lag``; 0.0 when no index qualifies."""
    n = len(segment) - lag
    if n <= 0:
        return 0.0
    head = segment[0:n:stride]
    lagged = segment[lag:lag + n:stride]
    return float(np.abs(head - lagged).sum()) / len(head)


def analyze_window(segment: np.ndarray) -> tuple[float, float, float]:
    """Return ``(low, mid, high)`` energy of one analysis window."""
    length = len(segment)
    if length == 0:
        return 0.0, 0.0, 0.0

    low_step = max(1, length >> 3)
    mid_step = max(1, length >> 5)
    high_step = max(1, length >> 6)

    rms = float(np.sqrt(np.dot(segment, segment) / length))
    low = _lag_variation(segment, low_step, max(1, low_step >> 1))
    mid = _lag_variation(segment, mid_step, max(1, mid_step >> 1))
    high = _lag_variation(segment, high_step, 1)

    return (
        low * rms * BAND_ENERGY_SCALE,
        mid * rms * BAND_ENERGY_SCALE,
        high * rms * BAND_ENERGY_SCALE,
    )


def analyze_spectrum(pcm, waveform_data) -> np.ndarray:
    """Band energies for each of the ``len(waveform_data)`` positions.

    Returns a float64 array of shape ``(N, 3)`` with columns low / mid /
    high.  Position ``p`` reads ``min(2048, 2 * samples_per_position)``
    samples starting at ``p * samples_per_position``; windows overlap
    their successor by up to half.
    """
    count = len(waveform_data)
    result = np.zeros((count, 3), dtype=np.float64)
    data = np.asarray(pcm, dtype=np.float64).ravel()
    total = len(data)
    if count == 0 or total == 0:
        return result

    per_position = total // count
    window = min(SPECTRAL_WINDOW_CAP, per_position * 2)

    for pos in range(count):
        start = pos * per_position
        end = min(start + window, total)
        if end <= start:
            continue
        result[pos] = analyze_window(data[start:end])
    return result
