"""Tests for color parsing and the in-memory surface."""

import numpy as np
import pytest

from stackwavelib.surface import MemorySurface, color_to_hex, parse_color


class TestParseColor:

    @pytest.mark.parametrize("text, expected", [
        ("#fff", (255, 255, 255, 255)),
        ("#0008", (0, 0, 0, 136)),
        ("#1a2B3c", (26, 43, 60, 255)),
        ("#1a2b3c80", (26, 43, 60, 128)),
        ("rgb(10, 20, 30)", (10, 20, 30, 255)),
        ("rgba(10,20,30,0.5)", (10, 20, 30, 128)),
        ("transparent", (0, 0, 0, 0)),
        ("  #000  ", (0, 0, 0, 255)),
    ])
    def test_valid(self, text, expected):
        assert parse_color(text) == expected

    @pytest.mark.parametrize("text", ["red", "#12", "#12345", "rgb(1,2)", ""])
    def test_invalid(self, text):
        with pytest.raises(ValueError):
            parse_color(text)

    def test_non_string(self):
        with pytest.raises(ValueError):
            parse_color(0xFFFFFF)

    def test_to_hex(self):
        assert color_to_hex((255, 0, 300)) == "#ff00ff"


class TestMemorySurface:

    def test_initial_state(self):
        s = MemorySurface(4, 3)
        assert (s.backing_width, s.backing_height) == (4, 3)
        assert s.color_at(0, 0) == (0, 0, 0, 0)

    def test_fill_uses_transform(self):
        s = MemorySurface(8, 8)
        ctx = s.get_context()
        ctx.scale(2, 2)
        ctx.fill_rect(1, 1, 2, 1, "#ff0000")
        red = np.argwhere(s.pixels[..., 0] == 255)
        assert red[:, 0].min() == 2 and red[:, 0].max() == 3
        assert red[:, 1].min() == 2 and red[:, 1].max() == 5

    def test_clear_rect(self):
        s = MemorySurface(4, 4)
        ctx = s.get_context()
        ctx.fill_rect(0, 0, 4, 4, "#00ff00")
        ctx.clear_rect(0, 0, 2, 4)
        assert s.color_at(0, 0) == (0, 0, 0, 0)
        assert s.color_at(3, 0) == (0, 255, 0, 255)

    def test_save_restore(self):
        s = MemorySurface(4, 4)
        ctx = s.get_context()
        ctx.scale(2, 2)
        ctx.save()
        ctx.scale(0.5, 1)
        assert ctx.transform == (1.0, 2.0)
        ctx.restore()
        assert ctx.transform == (2.0, 2.0)

    def test_transform_shared_between_contexts(self):
        s = MemorySurface(4, 4)
        s.get_context().scale(3, 3)
        assert s.get_context().transform == (3.0, 3.0)

    def test_resize_resets_state(self):
        s = MemorySurface(4, 4)
        ctx = s.get_context()
        ctx.scale(2, 2)
        ctx.fill_rect(0, 0, 1, 1, "#fff")
        s.set_backing_size(6, 2)
        assert s.pixels.shape == (2, 6, 4)
        assert not s.pixels.any()
        assert s.get_context().transform == (1.0, 1.0)

    def test_alpha_blend_over_transparent(self):
        s = MemorySurface(1, 1)
        s.get_context().fill_rect(0, 0, 1, 1, "rgba(255, 0, 0, 0.5)")
        assert s.color_at(0, 0) == (255, 0, 0, 128)

    def test_global_alpha_over_opaque(self):
        s = MemorySurface(1, 1)
        ctx = s.get_context()
        ctx.fill_rect(0, 0, 1, 1, "#000")
        ctx.global_alpha = 0.5
        ctx.fill_rect(0, 0, 1, 1, "#fff")
        assert s.color_at(0, 0) == (128, 128, 128, 255)

    def test_zero_size_fill_is_noop(self):
        s = MemorySurface(2, 2)
        s.get_context().fill_rect(0, 0, 0, 2, "#fff")
        assert not s.pixels.any()
