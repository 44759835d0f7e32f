"""Stacked frequency-bar compositing onto a :class:`Surface`."""

from __future__ import annotations

import logging
import time

import numpy as np

from .config import (
    CENTER_LINE_DIVISOR,
    FREQUENCY_QUANTIZATION_LEVELS,
    HORIZONTAL_RESOLUTION_MULTIPLIER,
    MIN_BAND_SHARE,
)
from .models import (
    ColorPalette,
    Column,
    NormalizationConfig,
    SpectralTriple,
    SurfaceSize,
)
from .quantization import normalize_waveform, quantize_amplitude
from .smoothing import smooth_peaks
from .surface import DrawingContext, Surface, SurfaceError

log = logging.getLogger(__name__)

_FALLBACK_WIDTH = 1000
_FALLBACK_HEIGHT = 200


def _round_half_up(value: float) -> int:
    return int(np.floor(value + 0.5))


def _acquire_context(surface: Surface) -> DrawingContext:
    ctx = surface.get_context()
    if ctx is None:
        raise SurfaceError("Could not get a 2D drawing context from the surface")
    return ctx


def setup_surface(surface: Surface, css_width: float | None = None,
                  css_height: float | None = None) -> SurfaceSize:
    """Size the backing buffer to CSS size x device pixel ratio.

    The drawing transform is reset and scaled by the ratio so later
    drawing uses CSS-pixel coordinates.  Missing sizes fall back to the
    surface's current logical size, then to 1000 x 200.  Must be run
    again whenever the CSS size or the ratio changes.
    """
    dpr = surface.device_pixel_ratio or 1.0
    display_width = css_width or surface.css_width or _FALLBACK_WIDTH
    display_height = css_height or surface.css_height or _FALLBACK_HEIGHT

    surface.css_width = display_width
    surface.css_height = display_height
    surface.set_backing_size(int(display_width * dpr), int(display_height * dpr))

    ctx = _acquire_context(surface)
    try:
        ctx.reset_transform()
        ctx.scale(dpr, dpr)
    finally:
        ctx.end()
    return SurfaceSize(display_width, display_height)


def x_to_fraction(x: float, display_width: float) -> float:
    """Map a click at logical x to a 0..1 position along the waveform."""
    if display_width <= 0:
        return 0.0
    return max(0.0, min(1.0, x / display_width))


def _coerce_spectral(spectral_data) -> np.ndarray:
    if isinstance(spectral_data, np.ndarray):
        arr = spectral_data.astype(np.float64, copy=False)
    else:
        rows = []
        for entry in spectral_data:
            if isinstance(entry, dict):
                rows.append((entry.get("lowEnergy", entry.get("low_energy", 0.0)),
                             entry.get("midEnergy", entry.get("mid_energy", 0.0)),
                             entry.get("highEnergy", entry.get("high_energy", 0.0))))
            else:
                rows.append(tuple(entry))
        arr = np.array(rows, dtype=np.float64)
    return arr.reshape(-1, 3)


def _pick(values: np.ndarray, idx: np.ndarray) -> np.ndarray:
    """``values[idx]`` with zeros for out-of-range indices."""
    n = len(values)
    valid = (idx >= 0) & (idx < n)
    shape = (len(idx),) + values.shape[1:]
    out = np.zeros(shape, dtype=np.float64)
    if n:
        out[valid] = values[idx[valid]]
    return out


def build_columns(normalized: np.ndarray, spectral: np.ndarray,
                  width: float, rect_width: int) -> list[Column]:
    """Interpolate data positions onto pixel columns and split each
    column's amplitude into low / mid / high shares.

    Columns start every *rect_width* pixels over ``[0, width)``.
    Columns whose interpolated amplitude is 0 are left out.
    """
    n = len(normalized)
    if n == 0 or width <= 0:
        return []
    step = width / n

    pixel_xs = np.arange(0, width, rect_width, dtype=np.float64)
    data_index = pixel_xs / step
    prev_idx = np.floor(data_index).astype(np.intp)
    next_idx = np.ceil(data_index).astype(np.intp)
    t = data_index - prev_idx

    prev_amp = _pick(normalized, prev_idx)
    next_amp = _pick(normalized, next_idx)
    amplitude = np.where(
        (prev_amp > 0) & (next_amp > 0),
        prev_amp * (1 - t) + next_amp * t,
        np.where(prev_amp > 0, prev_amp, np.where(next_amp > 0, next_amp, 0.0)),
    )

    energies = _pick(spectral, prev_idx) * (1 - t)[:, None] \
        + _pick(spectral, next_idx) * t[:, None]

    band_max = spectral.max(axis=0) if len(spectral) else np.zeros(3)
    band_max = np.maximum(band_max, 0.0)
    with np.errstate(divide="ignore", invalid="ignore"):
        shares = np.where(
            band_max > 0,
            np.maximum(MIN_BAND_SHARE, energies / np.where(band_max > 0, band_max, 1.0)),
            MIN_BAND_SHARE,
        )
    total_share = shares.sum(axis=1)
    ratios = np.full_like(shares, 1.0 / 3.0)
    has_total = total_share > 0
    ratios[has_total] = shares[has_total] / total_share[has_total, None]

    columns: list[Column] = []
    for i in np.nonzero(amplitude != 0)[0]:
        amp = float(amplitude[i])
        low = amp * float(ratios[i, 0])
        mid = amp * float(ratios[i, 1])
        high = amp * float(ratios[i, 2])
        columns.append(Column(
            x=int(pixel_xs[i]),
            amplitude=amp,
            low_amplitude=low,
            mid_amplitude=mid,
            high_amplitude=high,
            total_amplitude=low + mid + high,
            spectral=SpectralTriple(*map(float, energies[i])),
        ))
    return columns


def _draw_column(ctx: DrawingContext, column: Column, max_amplitude: float,
                 bottom_y: int, rect_width: int, colors: ColorPalette):
    levels = FREQUENCY_QUANTIZATION_LEVELS
    low = int(np.floor(quantize_amplitude(column.low_amplitude / max_amplitude, levels)
                       * max_amplitude))
    mid = int(np.floor(quantize_amplitude(column.mid_amplitude / max_amplitude, levels)
                       * max_amplitude))
    high = int(np.floor(quantize_amplitude(column.high_amplitude / max_amplitude, levels)
                        * max_amplitude))

    ctx.global_alpha = 1.0
    ctx.fill_rect(column.x, bottom_y - low, rect_width, low, colors.low_frequency)
    ctx.fill_rect(column.x, bottom_y - low - mid, rect_width, mid, colors.mid_frequency)
    ctx.fill_rect(column.x, bottom_y - low - mid - high, rect_width, high,
                  colors.high_frequency)


def render_waveform(surface: Surface, waveform_data, spectral_data,
                    palette: ColorPalette | dict | None = None,
                    normalization_config: NormalizationConfig | dict | list | None = None,
                    *, resolution_multiplier: float = HORIZONTAL_RESOLUTION_MULTIPLIER):
    """Draw the stacked low/mid/high bar waveform onto *surface*.

    Expects :func:`setup_surface` to have sized the surface.  Raises
    :class:`SurfaceError` when no drawing context is available.
    """
    t0 = time.perf_counter()
    ctx = _acquire_context(surface)
    try:
        if isinstance(palette, ColorPalette):
            colors = palette
        else:
            colors = ColorPalette.from_dict(palette)
        config = NormalizationConfig.from_value(normalization_config)

        dpr = surface.device_pixel_ratio or 1.0
        display_width = surface.backing_width / dpr
        height = surface.backing_height / dpr
        width = display_width * resolution_multiplier

        ctx.save()
        ctx.scale(1.0 / resolution_multiplier, 1.0)
        ctx.clear_rect(0, 0, width, height)

        waveform = np.asarray(waveform_data, dtype=np.float64).ravel()
        spectral = _coerce_spectral(spectral_data)
        normalized = normalize_waveform(waveform, height, config)

        ctx.image_smoothing_enabled = False
        n = len(waveform)
        rect_width = max(1, int(np.floor(width / n))) if n else 1
        t1 = time.perf_counter()

        columns = build_columns(normalized, spectral, width, rect_width)
        t2 = time.perf_counter()
        smooth_peaks(columns)
        t3 = time.perf_counter()

        bottom_y = int(np.floor(height))
        if height > 0:
            for column in columns:
                _draw_column(ctx, column, height, bottom_y, rect_width, colors)

        ctx.global_alpha = 1.0
        line_h = _round_half_up(surface.backing_height / CENTER_LINE_DIVISOR)
        ctx.fill_rect(0, bottom_y - line_h, display_width, line_h, colors.low_frequency)
        ctx.restore()
    finally:
        ctx.end()

    t4 = time.perf_counter()
    log.debug(
        "render %d positions -> %d columns: setup %.2f ms, columns %.2f ms, "
        "peaks %.2f ms, draw %.2f ms",
        len(waveform), len(columns),
        (t1 - t0) * 1e3, (t2 - t1) * 1e3, (t3 - t2) * 1e3, (t4 - t3) * 1e3,
    )
