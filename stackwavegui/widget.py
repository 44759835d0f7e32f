"""Waveform widget: paints a stacked-bar render and reports seek clicks."""

from __future__ import annotations

from PySide6.QtCore import QRectF, Qt, Signal
from PySide6.QtGui import QColor, QPainter
from PySide6.QtWidgets import QWidget

from stackwavelib.cache import CacheProvider
from stackwavelib.compositor import render_waveform, setup_surface, x_to_fraction
from stackwavelib.models import ColorPalette, NormalizationConfig, WaveformRenderData
from stackwavelib.palettes import resolve_palette

from .log import dbg
from .surface import QImageSurface, to_qcolor
from .worker import RenderDataWorker


class WaveformWidget(QWidget):
    """Shows one track's render data.

    The render data is computed once (see :meth:`load_file`); resizing or
    changing palette / normalization only re-runs the compositor.
    """

    clicked_at_fraction = Signal(float)  # 0..1 along the width
    load_failed = Signal(str)

    def __init__(self, parent=None, *, height: int = 32):
        super().__init__(parent)
        self._data: WaveformRenderData | None = None
        self._palette: ColorPalette = ColorPalette()
        self._normalization = NormalizationConfig()
        self._surface: QImageSurface | None = None
        self._surface_key: tuple | None = None
        self._worker: RenderDataWorker | None = None
        self._loading = False
        self.setFixedHeight(height)
        self.setMinimumWidth(20)

    # ── Data management ────────────────────────────────────────────────────

    def set_render_data(self, data: WaveformRenderData | None):
        self._data = data
        self._loading = False
        self._invalidate()

    def render_data(self) -> WaveformRenderData | None:
        return self._data

    def set_palette(self, palette):
        self._palette = resolve_palette(palette)
        self._invalidate()

    def set_normalization(self, config):
        self._normalization = NormalizationConfig.from_value(config)
        self._invalidate()

    def load_file(self, filepath: str, cache: CacheProvider | None = None):
        """Compute render data in the background, replacing any pending load."""
        if self._worker is not None:
            self._worker.cancel()
        self._loading = True
        self._data = None
        self._invalidate()
        worker = RenderDataWorker(filepath, cache, parent=self)
        worker.finished.connect(self._on_loaded)
        worker.failed.connect(self._on_failed)
        self._worker = worker
        worker.start()

    def _on_loaded(self, filepath: str, data: WaveformRenderData):
        if self._worker is None or self._worker.filepath != filepath \
                or self._worker.is_cancelled():
            return
        dbg(f"render data ready: {filepath} ({len(data)} positions)")
        self._worker = None
        self.set_render_data(data)

    def _on_failed(self, filepath: str, message: str):
        if self._worker is None or self._worker.filepath != filepath:
            return
        self._worker = None
        self._loading = False
        self.update()
        self.load_failed.emit(message)

    def _invalidate(self):
        self._surface_key = None
        self.update()

    # ── Painting ───────────────────────────────────────────────────────────

    def _ensure_surface(self) -> QImageSurface | None:
        if self._data is None:
            return None
        dpr = self.devicePixelRatioF()
        key = (self.width(), self.height(), dpr)
        if self._surface is not None and self._surface_key == key:
            return self._surface
        surface = QImageSurface(device_pixel_ratio=dpr)
        setup_surface(surface, self.width(), self.height())
        render_waveform(surface, self._data.waveform_data, self._data.spectral_data,
                        self._palette, self._normalization)
        self._surface = surface
        self._surface_key = key
        return surface

    def paintEvent(self, event):
        painter = QPainter(self)
        painter.fillRect(self.rect(), to_qcolor(self._palette.background))
        surface = self._ensure_surface()
        if surface is not None:
            painter.drawImage(QRectF(0, 0, self.width(), self.height()), surface.image)
        elif self._loading:
            painter.setPen(QColor(136, 136, 136))
            painter.drawText(self.rect(), Qt.AlignCenter, "Loading waveform…")
        painter.end()

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton and self._data is not None:
            self.clicked_at_fraction.emit(
                x_to_fraction(event.position().x(), self.width())
            )
        super().mousePressEvent(event)
