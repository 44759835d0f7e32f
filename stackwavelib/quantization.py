"""Percentile-constrained normalization and level quantization."""

from __future__ import annotations

import numpy as np

from .config import WAVEFORM_QUANTIZATION_LEVELS
from .models import NormalizationConfig


def quantize_amplitude(normalized_value: float,
                       levels: int = WAVEFORM_QUANTIZATION_LEVELS) -> float:
    """Snap a 0..1 value down to one of *levels* steps ``k / levels``.

    The level index is clamped to ``[0, levels - 1]``, so 1.0 (and
    anything above) maps to ``(levels - 1) / levels``.
    """
    if levels <= 0:
        return 0.0
    level = int(np.floor(normalized_value * levels))
    level = min(levels - 1, max(0, level))
    return level / levels


def quantize_levels(values: np.ndarray,
                    levels: int = WAVEFORM_QUANTIZATION_LEVELS) -> np.ndarray:
    """Vectorised :func:`quantize_amplitude`."""
    values = np.asarray(values, dtype=np.float64)
    if levels <= 0:
        return np.zeros_like(values)
    idx = np.clip(np.floor(values * levels), 0, levels - 1)
    return idx / levels


def quantize_waveform(waveform_data, max_amplitude: float,
                      levels: int = WAVEFORM_QUANTIZATION_LEVELS) -> np.ndarray:
    """Quantize absolute values against *max_amplitude*."""
    data = np.asarray(waveform_data, dtype=np.float64)
    if max_amplitude <= 0:
        return np.zeros_like(data)
    return quantize_levels(data / max_amplitude, levels) * max_amplitude


def effective_max(waveform_data, config: NormalizationConfig | None = None) -> float:
    """Divisor that satisfies every percentile/target constraint at once.

    Starts at the waveform maximum and takes the smallest
    ``sorted[floor(N * p)] / t`` over the constraints whose percentile
    value and target are both positive.  Returns 0.0 for empty or silent
    data.
    """
    data = np.asarray(waveform_data, dtype=np.float64)
    if data.size == 0:
        return 0.0
    peak = float(data.max())
    if peak <= 0:
        return 0.0

    config = NormalizationConfig.from_value(config)
    ordered = np.sort(data)
    n = len(ordered)
    result = peak
    for percentile, target in config.constraints:
        idx = int(np.floor(n * percentile))
        value = float(ordered[idx]) if idx < n else 0.0
        if value > 0 and target > 0:
            result = min(result, value / target)
    return result


def normalize_waveform(waveform_data, max_amplitude: float,
                       config: NormalizationConfig | None = None,
                       levels: int = WAVEFORM_QUANTIZATION_LEVELS) -> np.ndarray:
    """Scale the envelope to ``[0, max_amplitude]`` pixels and quantize.

    Values above the effective maximum are clamped to *max_amplitude*
    before quantization.  Silent or empty input gives all zeros.
    """
    data = np.asarray(waveform_data, dtype=np.float64)
    divisor = effective_max(data, config)
    if divisor <= 0 or max_amplitude <= 0:
        return np.zeros_like(data)
    scaled = np.minimum(data / divisor * max_amplitude, max_amplitude)
    return quantize_levels(scaled / max_amplitude, levels) * max_amplitude
