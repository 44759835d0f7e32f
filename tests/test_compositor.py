"""Tests for surface setup and the stacked-bar compositor."""

import numpy as np
import pytest

from stackwavelib.compositor import (
    build_columns,
    render_waveform,
    setup_surface,
    x_to_fraction,
)
from stackwavelib.models import SurfaceSize
from stackwavelib.surface import MemorySurface, SurfaceError

RED = (255, 0, 0, 255)
GREEN = (0, 255, 0, 255)
BLUE = (0, 0, 255, 255)
CLEAR = (0, 0, 0, 0)


class NoContextSurface(MemorySurface):

    def get_context(self):
        return None


def _uniform_render(palette, dpr=1.0, width=10, height=24):
    surface = MemorySurface(device_pixel_ratio=dpr)
    setup_surface(surface, width, height)
    render_waveform(surface, np.ones(10), np.ones((10, 3)), palette)
    return surface


class TestSetupSurface:

    def test_high_dpi(self):
        surface = MemorySurface(device_pixel_ratio=2)
        size = setup_surface(surface, 300, 150)
        assert size == SurfaceSize(300, 150)
        assert (surface.backing_width, surface.backing_height) == (600, 300)
        assert surface.get_context().transform == (2.0, 2.0)

    def test_fractional_ratio_truncates(self):
        surface = MemorySurface(device_pixel_ratio=1.5)
        setup_surface(surface, 101, 33)
        assert (surface.backing_width, surface.backing_height) == (151, 49)

    def test_fallback_size(self):
        surface = MemorySurface()
        assert setup_surface(surface) == SurfaceSize(1000, 200)
        assert surface.pixels.shape == (200, 1000, 4)

    def test_reuses_logical_size(self):
        surface = MemorySurface()
        setup_surface(surface, 40, 20)
        surface.device_pixel_ratio = 2.0
        setup_surface(surface)
        assert (surface.backing_width, surface.backing_height) == (80, 40)

    def test_repeated_setup_does_not_compound(self):
        surface = MemorySurface(device_pixel_ratio=2)
        setup_surface(surface, 10, 10)
        setup_surface(surface, 10, 10)
        assert surface.get_context().transform == (2.0, 2.0)

    def test_no_context(self):
        with pytest.raises(SurfaceError):
            setup_surface(NoContextSurface(), 10, 10)


class TestXToFraction:

    def test_middle(self):
        assert x_to_fraction(150, 300) == 0.5

    def test_clamped(self):
        assert x_to_fraction(-5, 300) == 0.0
        assert x_to_fraction(400, 300) == 1.0

    def test_zero_width(self):
        assert x_to_fraction(10, 0) == 0.0


class TestBuildColumns:

    def test_interpolation(self):
        cols = build_columns(np.array([8.0, 16.0]), np.ones((2, 3)), 3, 1)
        assert [c.x for c in cols] == [0, 1, 2]
        assert [c.amplitude for c in cols] == pytest.approx([8.0, 40 / 3, 16.0])

    def test_zero_neighbor_takes_other(self):
        cols = build_columns(np.array([0.0, 16.0]), np.ones((2, 3)), 4, 2)
        # x=0 reads index 0 only; x=2 reads index 1 only
        assert [(c.x, c.amplitude) for c in cols] == [(2, 16.0)]

    def test_silent_columns_skipped(self):
        cols = build_columns(np.array([0.0, 8.0, 0.0, 0.0]), np.ones((4, 3)), 4, 1)
        assert [c.x for c in cols] == [1]

    def test_equal_energies_split_evenly(self):
        cols = build_columns(np.array([9.0]), np.array([[5.0, 5.0, 5.0]]), 1, 1)
        c = cols[0]
        assert (c.low_amplitude, c.mid_amplitude, c.high_amplitude) == \
            pytest.approx((3.0, 3.0, 3.0))
        assert c.total_amplitude == pytest.approx(9.0)

    def test_band_share_floor(self):
        cols = build_columns(np.array([12.0]), np.array([[10.0, 0.0, 0.0]]), 1, 1)
        c = cols[0]
        assert c.low_amplitude == pytest.approx(12.0 / 1.2)
        assert c.mid_amplitude == pytest.approx(12.0 * 0.1 / 1.2)
        assert c.high_amplitude == pytest.approx(12.0 * 0.1 / 1.2)

    def test_no_energy_falls_back_to_thirds(self):
        cols = build_columns(np.array([6.0]), np.zeros((1, 3)), 1, 1)
        assert cols[0].low_amplitude == pytest.approx(2.0)

    def test_columns_every_rect_width(self):
        cols = build_columns(np.full(5, 4.0), np.ones((5, 3)), 20, 4)
        assert [c.x for c in cols] == [0, 4, 8, 12, 16]

    def test_empty(self):
        assert build_columns(np.zeros(0), np.zeros((0, 3)), 100, 1) == []


class TestRenderWaveform:

    def test_stacked_order(self, rgb_palette):
        surface = _uniform_render(rgb_palette)
        # every band is 6 px: low 18..24, mid 12..18, high 6..12
        assert surface.color_at(0, 20) == RED
        assert surface.color_at(0, 15) == GREEN
        assert surface.color_at(0, 8) == BLUE
        assert surface.color_at(0, 3) == CLEAR
        assert surface.color_at(9, 5) == CLEAR

    def test_center_line(self, rgb_palette):
        rgb_palette["lowFrequency"] = "#123456"
        surface = MemorySurface()
        setup_surface(surface, 10, 24)
        render_waveform(surface, np.zeros(10), np.zeros((10, 3)), rgb_palette)
        assert surface.color_at(5, 23) == (0x12, 0x34, 0x56, 255)
        assert not surface.pixels[:23].any()

    def test_high_dpi_render(self, rgb_palette):
        surface = _uniform_render(rgb_palette, dpr=2.0)
        assert surface.pixels.shape == (48, 20, 4)
        assert surface.color_at(1, 40) == RED
        assert surface.color_at(19, 30) == GREEN
        assert surface.color_at(19, 20) == BLUE
        assert surface.color_at(0, 10) == CLEAR
        # baseline is round(48 / 24) = 2 logical px
        assert surface.color_at(19, 47) == RED
        assert surface.get_context().transform == (2.0, 2.0)

    def test_clears_previous_frame(self, rgb_palette):
        surface = _uniform_render(rgb_palette)
        render_waveform(surface, np.zeros(10), np.zeros((10, 3)), rgb_palette)
        assert surface.color_at(0, 15) == CLEAR

    def test_empty_waveform(self, rgb_palette):
        surface = MemorySurface()
        setup_surface(surface, 10, 24)
        render_waveform(surface, [], [], rgb_palette)
        assert surface.color_at(0, 23) == RED
        assert not surface.pixels[:23].any()

    def test_dict_spectral_entries(self, rgb_palette):
        surface = MemorySurface()
        setup_surface(surface, 10, 24)
        spectral = [{"lowEnergy": 1, "midEnergy": 1, "highEnergy": 1}] * 10
        render_waveform(surface, np.ones(10), spectral, rgb_palette)
        assert np.array_equal(surface.pixels, _uniform_render(rgb_palette).pixels)

    def test_default_palette(self):
        surface = MemorySurface()
        setup_surface(surface, 10, 24)
        render_waveform(surface, np.ones(10), np.ones((10, 3)))
        assert surface.color_at(0, 20) == (0, 0, 0, 255)
        assert surface.color_at(0, 15) == (0x55, 0x55, 0x55, 255)

    def test_invalid_palette_color(self):
        surface = MemorySurface()
        setup_surface(surface, 10, 24)
        with pytest.raises(ValueError):
            render_waveform(surface, np.ones(10), np.ones((10, 3)),
                            {"lowFrequency": "not-a-color"})

    def test_no_context(self):
        with pytest.raises(SurfaceError):
            render_waveform(NoContextSurface(10, 10), np.ones(4), np.ones((4, 3)))

    def test_deterministic(self, rng, rgb_palette):
        wf = rng.uniform(0, 1, 600)
        spec = rng.uniform(0, 50, (600, 3))
        a, b = MemorySurface(), MemorySurface()
        for s in (a, b):
            setup_surface(s, 300, 32)
            render_waveform(s, wf, spec, rgb_palette, [[0.5, 1.0], [0.9, 0.5]])
        assert np.array_equal(a.pixels, b.pixels)
