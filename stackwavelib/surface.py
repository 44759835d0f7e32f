"""Minimal raster surface capability and an in-memory implementation.

A :class:`Surface` owns a backing pixel buffer whose size is independent
of its logical (CSS) size, plus the current drawing transform.  A
:class:`DrawingContext` obtained from it draws opaque rectangles in
logical coordinates; the transform maps them onto backing pixels.
"""

from __future__ import annotations

import re
from abc import ABC, abstractmethod

import numpy as np


class SurfaceError(RuntimeError):
    """Raised when a surface cannot provide a drawing context."""
    pass


# ---------------------------------------------------------------------------
# Colors
# ---------------------------------------------------------------------------

_HEX_RE = re.compile(r"^#([0-9a-fA-F]{3,4}|[0-9a-fA-F]{6}|[0-9a-fA-F]{8})$")
_RGB_RE = re.compile(
    r"^rgba?\(\s*([\d.]+)\s*,\s*([\d.]+)\s*,\s*([\d.]+)\s*(?:,\s*([\d.]+)\s*)?\)$"
)


def parse_color(value: str) -> tuple[int, int, int, int]:
    """Parse ``#rgb``, ``#rgba``, ``#rrggbb``, ``#rrggbbaa``, ``rgb()``,
    ``rgba()`` or ``transparent`` into an RGBA tuple of 0..255 ints.

    Raises ValueError for anything else.
    """
    if not isinstance(value, str):
        raise ValueError(f"Color must be a string, got {type(value).__name__}")
    text = value.strip()
    if text.lower() == "transparent":
        return 0, 0, 0, 0
    m = _HEX_RE.match(text)
    if m:
        digits = m.group(1)
        if len(digits) in (3, 4):
            digits = "".join(c * 2 for c in digits)
        if len(digits) == 6:
            digits += "ff"
        r, g, b, a = (int(digits[i:i + 2], 16) for i in range(0, 8, 2))
        return r, g, b, a
    m = _RGB_RE.match(text)
    if m:
        r, g, b = (min(255, int(round(float(c)))) for c in m.groups()[:3])
        alpha = m.group(4)
        a = 255 if alpha is None else int(round(min(1.0, float(alpha)) * 255))
        return r, g, b, a
    raise ValueError(f"Unsupported color: {value!r}")


def color_to_hex(rgb: tuple[int, int, int]) -> str:
    r, g, b = (max(0, min(255, int(c))) for c in rgb[:3])
    return f"#{r:02x}{g:02x}{b:02x}"


# ---------------------------------------------------------------------------
# Capabilities
# ---------------------------------------------------------------------------

class DrawingContext(ABC):
    """2D drawing context bound to one :class:`Surface`.

    Transform bookkeeping lives on the surface so it survives between
    contexts (a transform set up once is still in effect on the next
    render).  Subclasses implement the two rectangle primitives and
    read the current scale from :attr:`transform`.
    """

    def __init__(self, surface: Surface):
        self.surface = surface
        self.global_alpha: float = 1.0

    @property
    def transform(self) -> tuple[float, float]:
        return self.surface._transform

    @property
    def image_smoothing_enabled(self) -> bool:
        return self.surface._image_smoothing

    @image_smoothing_enabled.setter
    def image_smoothing_enabled(self, enabled: bool):
        self.surface._image_smoothing = bool(enabled)

    def reset_transform(self):
        self.surface._transform = (1.0, 1.0)

    def scale(self, sx: float, sy: float):
        cx, cy = self.surface._transform
        self.surface._transform = (cx * sx, cy * sy)

    def save(self):
        self.surface._state_stack.append(
            (self.surface._transform, self.global_alpha)
        )

    def restore(self):
        if self.surface._state_stack:
            self.surface._transform, self.global_alpha = (
                self.surface._state_stack.pop()
            )

    def end(self):
        """Release backend resources.  Called once drawing is finished."""
        pass

    @abstractmethod
    def clear_rect(self, x: float, y: float, w: float, h: float):
        ...

    @abstractmethod
    def fill_rect(self, x: float, y: float, w: float, h: float, color: str):
        ...


class Surface(ABC):
    """A raster target with a backing buffer and a logical size."""

    def __init__(self, device_pixel_ratio: float = 1.0):
        self.device_pixel_ratio = float(device_pixel_ratio) or 1.0
        self.css_width: float = 0
        self.css_height: float = 0
        self._transform: tuple[float, float] = (1.0, 1.0)
        self._state_stack: list[tuple[tuple[float, float], float]] = []
        self._image_smoothing: bool = True

    @property
    @abstractmethod
    def backing_width(self) -> int:
        ...

    @property
    @abstractmethod
    def backing_height(self) -> int:
        ...

    def set_backing_size(self, width: int, height: int):
        """Resize the backing buffer.  Clears pixels and drawing state."""
        self._resize_backing(max(0, int(width)), max(0, int(height)))
        self._transform = (1.0, 1.0)
        self._state_stack = []
        self._image_smoothing = True

    @abstractmethod
    def _resize_backing(self, width: int, height: int):
        ...

    @abstractmethod
    def get_context(self) -> DrawingContext | None:
        """Return a drawing context, or None when none can be obtained."""
        ...


# ---------------------------------------------------------------------------
# In-memory implementation
# ---------------------------------------------------------------------------

def _device_span(start: float, length: float, scale: float, limit: int) -> tuple[int, int]:
    a = start * scale
    b = (start + length) * scale
    if b < a:
        a, b = b, a
    lo = int(np.floor(a + 0.5))
    hi = int(np.floor(b + 0.5))
    return max(0, lo), min(limit, hi)


class MemoryContext(DrawingContext):

    def clear_rect(self, x, y, w, h):
        pixels = self.surface.pixels
        sx, sy = self.transform
        x0, x1 = _device_span(x, w, sx, pixels.shape[1])
        y0, y1 = _device_span(y, h, sy, pixels.shape[0])
        if x1 > x0 and y1 > y0:
            pixels[y0:y1, x0:x1] = 0

    def fill_rect(self, x, y, w, h, color):
        pixels = self.surface.pixels
        sx, sy = self.transform
        x0, x1 = _device_span(x, w, sx, pixels.shape[1])
        y0, y1 = _device_span(y, h, sy, pixels.shape[0])
        if x1 <= x0 or y1 <= y0:
            return
        rgba = np.array(parse_color(color), dtype=np.float64)
        alpha = rgba[3] / 255.0 * max(0.0, min(1.0, self.global_alpha))
        if alpha >= 1.0:
            pixels[y0:y1, x0:x1] = rgba.astype(np.uint8)
            return
        region = pixels[y0:y1, x0:x1].astype(np.float64)
        dst_a = region[..., 3:4] / 255.0
        out_a = alpha + dst_a * (1.0 - alpha)
        src = rgba[:3] * alpha
        dst = region[..., :3] * dst_a * (1.0 - alpha)
        with np.errstate(invalid="ignore", divide="ignore"):
            rgb = np.where(out_a > 0, (src + dst) / out_a, 0.0)
        region[..., :3] = rgb
        region[..., 3:4] = out_a * 255.0
        pixels[y0:y1, x0:x1] = np.clip(np.round(region), 0, 255).astype(np.uint8)


class MemorySurface(Surface):
    """Surface backed by a ``(height, width, 4)`` uint8 RGBA numpy array."""

    def __init__(self, width: int = 0, height: int = 0,
                 device_pixel_ratio: float = 1.0):
        super().__init__(device_pixel_ratio)
        self.pixels = np.zeros((max(0, int(height)), max(0, int(width)), 4),
                               dtype=np.uint8)

    @property
    def backing_width(self) -> int:
        return self.pixels.shape[1]

    @property
    def backing_height(self) -> int:
        return self.pixels.shape[0]

    def _resize_backing(self, width, height):
        self.pixels = np.zeros((height, width, 4), dtype=np.uint8)

    def get_context(self) -> MemoryContext:
        return MemoryContext(self)

    def color_at(self, x: int, y: int) -> tuple[int, int, int, int]:
        """RGBA of backing pixel (x, y)."""
        return tuple(int(c) for c in self.pixels[y, x])
