"""Predefined color palettes and an OKLCH palette generator."""

from __future__ import annotations

import numpy as np

from .models import ColorPalette
from .surface import color_to_hex

COLOR_PALETTES: dict[str, ColorPalette] = {
    "classic": ColorPalette("#fff", "#000", "#555", "#000", "#FFF"),
    "vibrant": ColorPalette("#fff", "#FF6B6B", "#4ECDC4", "#45B7D1", "#95A5A6"),
    "dark": ColorPalette("#1a1a1a", "#E74C3C", "#3498DB", "#2ECC71", "#ECF0F1"),
    "neon": ColorPalette("#000", "#FF00FF", "#00FFFF", "#FFFF00", "#FFFFFF"),
    "pastel": ColorPalette("#FFF8F0", "#FFB3BA", "#BAFFC9", "#BAE1FF", "#888"),
    "monochrome": ColorPalette("#fff", "#333", "#666", "#999", "#000"),
    "monochrome-dark": ColorPalette("#1a1a1a", "#e0e0e0", "#b0b0b0", "#808080", "#fff"),
    "monochrome-light": ColorPalette("#fafafa", "#1a1a1a", "#2a2a2a", "#3a3a3a", "#000"),
    "monochrome-inverted": ColorPalette("#000", "#fff", "#ccc", "#999", "#fff"),
    "monochrome-blue-tint": ColorPalette("#f8f9fa", "#2c3e50", "#34495e", "#5d6d7e", "#1a252f"),
    "monochrome-warm": ColorPalette("#faf8f5", "#3d3529", "#4a4235", "#5a5245", "#2a241f"),
    "monochrome-cool": ColorPalette("#f5f7f8", "#2d3436", "#3d4446", "#4d5456", "#1d2426"),
    "monochrome-charcoal": ColorPalette("#2c2c2c", "#d4d4d4", "#a8a8a8", "#7c7c7c", "#fff"),
}


def get_color_palette(name: str) -> ColorPalette:
    """Palette by name; unknown names give ``classic``."""
    return COLOR_PALETTES.get(name, COLOR_PALETTES["classic"])


def palette_names() -> list[str]:
    return list(COLOR_PALETTES)


def resolve_palette(value) -> ColorPalette:
    """Accept a palette name, a (partial) color dict or a ColorPalette."""
    if isinstance(value, ColorPalette):
        return value
    if isinstance(value, str):
        return get_color_palette(value)
    return ColorPalette.from_dict(value)


# ---------------------------------------------------------------------------
# OKLCH -> sRGB
# ---------------------------------------------------------------------------

def _linear_to_srgb(c: np.ndarray) -> np.ndarray:
    c = np.clip(c, 0.0, 1.0)
    return np.where(c <= 0.0031308, 12.92 * c, 1.055 * np.power(c, 1 / 2.4) - 0.055)


def oklch_to_hex(lightness: float, chroma: float, hue: float) -> str:
    """Convert an OKLCH color to ``#rrggbb`` (out-of-gamut values clipped)."""
    h = np.deg2rad(hue)
    a = chroma * np.cos(h)
    b = chroma * np.sin(h)

    l_ = lightness + 0.3963377774 * a + 0.2158037573 * b
    m_ = lightness - 0.1055613458 * a - 0.0638541728 * b
    s_ = lightness - 0.0894841775 * a - 1.2914855480 * b
    lms = np.array([l_, m_, s_]) ** 3

    rgb_linear = np.array([
        [4.0767416621, -3.3077115913, 0.2309699292],
        [-1.2684380046, 2.6097574011, -0.3413193965],
        [-0.0041960863, -0.7034186147, 1.7076147010],
    ]) @ lms
    rgb = _linear_to_srgb(rgb_linear)
    return color_to_hex(tuple(int(round(float(v) * 255)) for v in rgb))


def generate_oklch_palette(hue: float, saturation: float,
                           hue_spread: float = 60, contrast: float = 0,
                           lightness: float = 0.5) -> ColorPalette:
    """Build a palette from one hue with spread and lightness contrast.

    Args:
        hue:        Base hue in degrees (0-360); used for the low band.
        saturation: OKLCH chroma (0-0.4); low gets 1.2x, high 0.8x.
        hue_spread: Degrees across the three bands (0-180); mid is
                    shifted by a third, high by two thirds.
        contrast:   -1..1.  Positive makes low darker and high lighter,
                    negative inverts that.  Magnitude 1 spreads
                    lightness by +/-0.4 around *lightness*.
        lightness:  Base (mid band) lightness, 0.1-0.9.
    """
    hue = max(0.0, min(360.0, hue))
    saturation = max(0.0, min(0.4, saturation))
    hue_spread = max(0.0, min(180.0, hue_spread))
    contrast = max(-1.0, min(1.0, contrast))
    lightness = max(0.1, min(0.9, lightness))

    spread = abs(contrast) * 0.4
    inverted = contrast < 0
    low_l = max(0.0, min(1.0, lightness + (spread if inverted else -spread)))
    high_l = max(0.0, min(1.0, lightness + (-spread if inverted else spread)))

    mid_hue = (hue + hue_spread / 3) % 360
    high_hue = (hue + hue_spread * 2 / 3) % 360

    return ColorPalette(
        background=oklch_to_hex(0.98, 0.0, 0.0),
        low_frequency=oklch_to_hex(low_l, min(0.4, saturation * 1.2), hue),
        mid_frequency=oklch_to_hex(lightness, min(0.4, saturation), mid_hue),
        high_frequency=oklch_to_hex(high_l, min(0.4, saturation * 0.8), high_hue),
        center_line=oklch_to_hex(max(0.1, low_l - 0.1),
                                 min(0.4, saturation * 0.5), hue),
    )
