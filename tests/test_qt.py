"""Tests for the QImage surface, worker and widget."""

import numpy as np
import pytest

pytest.importorskip("PySide6.QtGui")

from PySide6.QtCore import QEvent, QPointF, Qt  # noqa: E402
from PySide6.QtGui import QMouseEvent  # noqa: E402

from stackwavegui.surface import QImageSurface, to_qcolor  # noqa: E402
from stackwavegui.widget import WaveformWidget  # noqa: E402
from stackwavegui.worker import RenderDataWorker  # noqa: E402
from stackwavelib.compositor import render_waveform, setup_surface  # noqa: E402
from stackwavelib.models import WaveformRenderData  # noqa: E402

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)


class TestQImageSurface:

    def test_null_image_has_no_context(self, qapp):
        assert QImageSurface().get_context() is None

    def test_high_dpi_setup(self, qapp):
        surface = QImageSurface(device_pixel_ratio=2)
        setup_surface(surface, 300, 150)
        assert (surface.image.width(), surface.image.height()) == (600, 300)
        ctx = surface.get_context()
        assert ctx.transform == (2.0, 2.0)
        ctx.end()

    def test_stacked_render(self, qapp, rgb_palette):
        surface = QImageSurface(device_pixel_ratio=2)
        setup_surface(surface, 10, 24)
        render_waveform(surface, np.ones(10), np.ones((10, 3)), rgb_palette)
        assert surface.color_at(1, 40) == RED
        assert surface.color_at(19, 30) == GREEN
        assert surface.color_at(19, 20) == BLUE
        assert surface.color_at(0, 10)[3] == 0

    def test_flattened(self, qapp, rgb_palette):
        surface = QImageSurface()
        setup_surface(surface, 10, 24)
        render_waveform(surface, np.ones(10), np.ones((10, 3)), rgb_palette)
        image = surface.flattened("#ffffff")
        top = image.pixelColor(0, 0)
        assert (top.red(), top.green(), top.blue(), top.alpha()) == (255, 255, 255, 255)
        low = image.pixelColor(0, 20)
        assert (low.red(), low.green(), low.blue()) == (255, 0, 0)

    def test_to_qcolor(self, qapp):
        c = to_qcolor("rgba(1, 2, 3, 0.5)")
        assert (c.red(), c.green(), c.blue(), c.alpha()) == (1, 2, 3, 128)


class TestRenderDataWorker:

    def _run(self, worker):
        done, failed = [], []
        worker.finished.connect(lambda path, data: done.append((path, data)))
        worker.failed.connect(lambda path, msg: failed.append((path, msg)))
        worker.run()
        return done, failed

    def test_success(self, qapp, wav_file):
        done, failed = self._run(RenderDataWorker(wav_file, target_count=16))
        assert failed == []
        assert done[0][0] == wav_file
        assert len(done[0][1]) == 16

    def test_failure(self, qapp, tmp_path):
        missing = str(tmp_path / "missing.wav")
        done, failed = self._run(RenderDataWorker(missing))
        assert done == []
        assert failed[0][0] == missing

    def test_cancelled_emits_nothing(self, qapp, wav_file):
        worker = RenderDataWorker(wav_file)
        worker.cancel()
        assert worker.is_cancelled()
        assert self._run(worker) == ([], [])


class TestWaveformWidget:

    def test_paints_render_data(self, qapp, rgb_palette):
        widget = WaveformWidget(height=32)
        widget.resize(50, 32)
        widget.set_palette(rgb_palette)
        widget.set_render_data(WaveformRenderData(np.ones(10), np.ones((10, 3))))
        image = widget.grab().toImage()
        top = image.pixelColor(0, 0)
        bottom = image.pixelColor(0, image.height() - 1)
        assert (top.red(), top.green(), top.blue()) == (255, 255, 255)
        assert (bottom.red(), bottom.green(), bottom.blue()) == (255, 0, 0)

    def test_click_reports_fraction(self, qapp):
        widget = WaveformWidget()
        widget.resize(200, 32)
        widget.set_render_data(WaveformRenderData.empty(4))
        seen = []
        widget.clicked_at_fraction.connect(seen.append)
        pos = QPointF(50, 5)
        event = QMouseEvent(QEvent.Type.MouseButtonPress, pos, pos,
                            Qt.MouseButton.LeftButton, Qt.MouseButton.LeftButton,
                            Qt.KeyboardModifier.NoModifier)
        widget.mousePressEvent(event)
        assert seen == [pytest.approx(0.25)]

    def test_click_without_data_ignored(self, qapp):
        widget = WaveformWidget()
        widget.resize(200, 32)
        seen = []
        widget.clicked_at_fraction.connect(seen.append)
        pos = QPointF(50, 5)
        event = QMouseEvent(QEvent.Type.MouseButtonPress, pos, pos,
                            Qt.MouseButton.LeftButton, Qt.MouseButton.LeftButton,
                            Qt.KeyboardModifier.NoModifier)
        widget.mousePressEvent(event)
        assert seen == []
