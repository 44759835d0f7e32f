"""Background computation of render data."""

from __future__ import annotations

import threading

from PySide6.QtCore import QThread, Signal

from stackwavelib.audio import load_render_data
from stackwavelib.cache import CacheProvider
from stackwavelib.config import MAX_TARGET_COUNT

from .log import dbg


class RenderDataWorker(QThread):
    """Decodes and analyzes one file off the UI thread.

    Emits ``finished(path, WaveformRenderData)`` on success and
    ``failed(path, message)`` on a decode error.  A cancelled worker
    emits nothing, so a superseded result never reaches the widget.
    """

    finished = Signal(str, object)
    failed = Signal(str, str)

    def __init__(self, filepath: str, cache: CacheProvider | None = None,
                 target_count: int = MAX_TARGET_COUNT, parent=None):
        super().__init__(parent)
        self._filepath = filepath
        self._cache = cache
        self._target_count = target_count
        self._cancelled = threading.Event()

    @property
    def filepath(self) -> str:
        return self._filepath

    def cancel(self):
        """Request that the result be dropped."""
        self._cancelled.set()

    def is_cancelled(self) -> bool:
        return self._cancelled.is_set()

    def run(self):
        if self._cancelled.is_set():
            return
        try:
            data = load_render_data(self._filepath, self._cache, self._target_count)
        except Exception as e:
            dbg(f"load failed for {self._filepath}: {e}")
            if not self._cancelled.is_set():
                self.failed.emit(self._filepath, str(e))
            return
        if self._cancelled.is_set():
            dbg(f"dropping superseded result for {self._filepath}")
            return
        self.finished.emit(self._filepath, data)
