from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, NamedTuple

import numpy as np


class SpectralTriple(NamedTuple):
    """Relative low/mid/high band-energy proxies for one envelope position."""
    low_energy: float
    mid_energy: float
    high_energy: float


# JSON keys of the persisted render-data artifact
_TRIPLE_KEYS = ("lowEnergy", "midEnergy", "highEnergy")


def _frozen_array(values, shape_tail: tuple[int, ...] = ()) -> np.ndarray:
    arr = np.array(values, dtype=np.float64)
    if arr.size == 0:
        arr = np.zeros((0,) + shape_tail, dtype=np.float64)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class WaveformRenderData:
    """Amplitude envelope plus per-position band energies of one track.

    Attributes:
        waveform_data: float64 array of shape ``(N,)``, mean absolute
                       amplitude per block.
        spectral_data: float64 array of shape ``(N, 3)``; columns are
                       low / mid / high energy.

    Both arrays are read-only once constructed.  ``to_dict`` produces the
    JSON artifact that caches persist; ``from_dict`` reads it back.
    """
    waveform_data: np.ndarray
    spectral_data: np.ndarray

    def __post_init__(self):
        wf = _frozen_array(self.waveform_data)
        spec = _frozen_array(self.spectral_data, (3,))
        if wf.ndim != 1:
            raise ValueError("waveform_data must be one-dimensional")
        if spec.ndim != 2 or spec.shape[1] != 3:
            raise ValueError("spectral_data must have shape (N, 3)")
        if len(wf) != len(spec):
            raise ValueError(
                f"waveform_data and spectral_data differ in length "
                f"({len(wf)} != {len(spec)})"
            )
        object.__setattr__(self, "waveform_data", wf)
        object.__setattr__(self, "spectral_data", spec)

    def __len__(self) -> int:
        return len(self.waveform_data)

    def __eq__(self, other):
        if not isinstance(other, WaveformRenderData):
            return NotImplemented
        return (np.array_equal(self.waveform_data, other.waveform_data)
                and np.array_equal(self.spectral_data, other.spectral_data))

    def spectral_triples(self) -> list[SpectralTriple]:
        return [SpectralTriple(*map(float, row)) for row in self.spectral_data]

    def to_dict(self) -> dict[str, Any]:
        return {
            "waveformData": [float(v) for v in self.waveform_data],
            "spectralData": [
                dict(zip(_TRIPLE_KEYS, map(float, row)))
                for row in self.spectral_data
            ],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> WaveformRenderData:
        """Build from the JSON artifact.  Raises ValueError on a bad shape."""
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")
        waveform = data.get("waveformData")
        spectral = data.get("spectralData")
        if not isinstance(waveform, list) or not isinstance(spectral, list):
            raise ValueError("render data needs 'waveformData' and 'spectralData' lists")
        rows = []
        for entry in spectral:
            if not isinstance(entry, dict):
                raise ValueError("spectralData entries must be objects")
            rows.append([float(entry.get(k, 0.0)) for k in _TRIPLE_KEYS])
        return cls(waveform_data=waveform, spectral_data=rows)

    @classmethod
    def empty(cls, length: int = 0) -> WaveformRenderData:
        return cls(np.zeros(length), np.zeros((length, 3)))


@dataclass
class Column:
    """One output pixel column of a render pass.

    Created by the compositor, scaled in place by the peak smoother and
    discarded after drawing.
    """
    x: int
    amplitude: float
    low_amplitude: float
    mid_amplitude: float
    high_amplitude: float
    total_amplitude: float
    spectral: SpectralTriple = field(default=SpectralTriple(0.0, 0.0, 0.0))


DEFAULT_COLOR_BACKGROUND = "#fff"
DEFAULT_COLOR_LOW_FREQUENCY = "#000"
DEFAULT_COLOR_MID_FREQUENCY = "#555"
DEFAULT_COLOR_HIGH_FREQUENCY = "#000"
DEFAULT_COLOR_CENTER_LINE = "#FFF"

# camelCase keys used by palette JSON / presets
_PALETTE_KEYS = {
    "background": "background",
    "lowFrequency": "low_frequency",
    "midFrequency": "mid_frequency",
    "highFrequency": "high_frequency",
    "centerLine": "center_line",
}


@dataclass(frozen=True)
class ColorPalette:
    background: str = DEFAULT_COLOR_BACKGROUND
    low_frequency: str = DEFAULT_COLOR_LOW_FREQUENCY
    mid_frequency: str = DEFAULT_COLOR_MID_FREQUENCY
    high_frequency: str = DEFAULT_COLOR_HIGH_FREQUENCY
    center_line: str = DEFAULT_COLOR_CENTER_LINE

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None,
                  base: ColorPalette | None = None) -> ColorPalette:
        """Merge a partial palette over *base* (defaults when None).

        Accepts both snake_case and camelCase keys; ``None`` values keep
        the base color.  Every resulting color is checked with
        :func:`stackwavelib.surface.parse_color`.
        """
        from .surface import parse_color

        values = {f.name: getattr(base or cls(), f.name) for f in fields(cls)}
        for key, value in (data or {}).items():
            name = _PALETTE_KEYS.get(key, key)
            if name not in values:
                raise ValueError(f"Unknown palette color: {key}")
            if value is not None:
                values[name] = value
        for value in values.values():
            parse_color(value)
        return cls(**values)

    def to_dict(self) -> dict[str, str]:
        return {camel: getattr(self, name) for camel, name in _PALETTE_KEYS.items()}


def _clamp01(value: float) -> float:
    return max(0.0, min(1.0, float(value)))


@dataclass(frozen=True)
class NormalizationConfig:
    """Percentile / target-amplitude minimum-threshold constraints.

    ``(0.5, 1.0)`` reads "at least 50% of positions reach 100% of the
    drawable height".  Pairs are clamped into [0, 1] on construction; an
    empty list falls back to the default constraint.
    """
    constraints: tuple[tuple[float, float], ...] = ((0.5, 1.0),)

    def __post_init__(self):
        clamped = tuple(
            (_clamp01(p), _clamp01(t)) for p, t in (self.constraints or ())
        )
        if not clamped:
            clamped = ((0.5, 1.0),)
        object.__setattr__(self, "constraints", clamped)

    @classmethod
    def from_value(cls, value) -> NormalizationConfig:
        """Coerce None, a config, a ``{"constraints": [...]}`` dict or a
        bare list of pairs."""
        if value is None:
            return cls()
        if isinstance(value, NormalizationConfig):
            return value
        if isinstance(value, dict):
            value = value.get("constraints")
            if value is None:
                return cls()
        return cls(tuple((float(p), float(t)) for p, t in value))

    def to_list(self) -> list[list[float]]:
        return [[p, t] for p, t in self.constraints]


class SurfaceSize(NamedTuple):
    display_width: float
    display_height: float
