"""QImage-backed :class:`~stackwavelib.surface.Surface`."""

from __future__ import annotations

from PySide6.QtCore import QRectF, Qt
from PySide6.QtGui import QColor, QImage, QPainter, QTransform

from stackwavelib.surface import DrawingContext, Surface, parse_color


def to_qcolor(color: str) -> QColor:
    r, g, b, a = parse_color(color)
    return QColor(r, g, b, a)


class QPainterContext(DrawingContext):
    """Draws through a QPainter that stays active until :meth:`end`."""

    def __init__(self, surface: QImageSurface, painter: QPainter):
        super().__init__(surface)
        self._painter = painter
        painter.setRenderHint(QPainter.RenderHint.Antialiasing, False)

    def _apply_state(self):
        sx, sy = self.transform
        self._painter.setTransform(QTransform.fromScale(sx, sy))
        self._painter.setRenderHint(QPainter.RenderHint.SmoothPixmapTransform,
                                    self.image_smoothing_enabled)
        self._painter.setOpacity(max(0.0, min(1.0, self.global_alpha)))

    def clear_rect(self, x, y, w, h):
        self._apply_state()
        self._painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_Source)
        self._painter.fillRect(QRectF(x, y, w, h), Qt.GlobalColor.transparent)
        self._painter.setCompositionMode(QPainter.CompositionMode.CompositionMode_SourceOver)

    def fill_rect(self, x, y, w, h, color):
        if w == 0 or h == 0:
            return
        self._apply_state()
        self._painter.fillRect(QRectF(x, y, w, h), to_qcolor(color))

    def end(self):
        if self._painter.isActive():
            self._painter.end()
        self.surface._active = None


class QImageSurface(Surface):
    """Render target for widgets and PNG export."""

    def __init__(self, width: int = 0, height: int = 0,
                 device_pixel_ratio: float = 1.0):
        super().__init__(device_pixel_ratio)
        self._image = QImage()
        self._active: QPainterContext | None = None
        self._resize_backing(max(0, int(width)), max(0, int(height)))

    @property
    def backing_width(self) -> int:
        return self._image.width()

    @property
    def backing_height(self) -> int:
        return self._image.height()

    @property
    def image(self) -> QImage:
        return self._image

    def _resize_backing(self, width, height):
        if self._active is not None:
            self._active.end()
        if width <= 0 or height <= 0:
            self._image = QImage()
            return
        self._image = QImage(width, height, QImage.Format.Format_RGBA8888)
        self._image.fill(Qt.GlobalColor.transparent)

    def get_context(self) -> QPainterContext | None:
        if self._active is not None:
            return self._active
        if self._image.isNull():
            return None
        painter = QPainter()
        if not painter.begin(self._image):
            return None
        self._active = QPainterContext(self, painter)
        return self._active

    def flattened(self, background: str) -> QImage:
        """Copy of the image composited over an opaque *background*."""
        out = QImage(self._image.size(), QImage.Format.Format_RGBA8888)
        out.fill(to_qcolor(background))
        if not self._image.isNull():
            painter = QPainter(out)
            painter.drawImage(0, 0, self._image)
            painter.end()
        return out

    def color_at(self, x: int, y: int) -> tuple[int, int, int, int]:
        c = self._image.pixelColor(x, y)
        return c.red(), c.green(), c.blue(), c.alpha()
