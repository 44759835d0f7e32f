import os
import sys

import numpy as np
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), ".."))

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")


@pytest.fixture
def rng():
    return np.random.default_rng(1234)


@pytest.fixture
def rgb_palette():
    return {
        "background": "#ffffff",
        "lowFrequency": "#ff0000",
        "midFrequency": "#00ff00",
        "highFrequency": "#0000ff",
        "centerLine": "#000000",
    }


@pytest.fixture(scope="session")
def qapp():
    widgets = pytest.importorskip("PySide6.QtWidgets")
    app = widgets.QApplication.instance() or widgets.QApplication([])
    yield app


@pytest.fixture
def wav_file(tmp_path, rng):
    sf = pytest.importorskip("soundfile")
    path = tmp_path / "input.wav"
    sf.write(str(path), rng.uniform(-0.5, 0.5, 8_000), 8_000, subtype="FLOAT")
    return str(path)
