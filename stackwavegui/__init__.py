"""PySide6 front-end pieces for stackwave."""

from .surface import QImageSurface, QPainterContext
from .worker import RenderDataWorker
from .widget import WaveformWidget

__all__ = ["QImageSurface", "QPainterContext", "RenderDataWorker", "WaveformWidget"]
