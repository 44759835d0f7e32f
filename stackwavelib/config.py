from __future__ import annotations

import json
import os
from dataclasses import dataclass
from typing import Any

PRESET_SCHEMA_VERSION = "1.0"

# ---------------------------------------------------------------------------
# Fixed pipeline constants
# ---------------------------------------------------------------------------

MAX_TARGET_COUNT = 600              # hard ceiling on envelope positions
MAX_SAMPLES_TO_PROCESS = 100_000    # decimation bound for the sampler
SPECTRAL_WINDOW_CAP = 2048          # analyzer window size cap (samples)
BAND_ENERGY_SCALE = 100             # display scale of band energies
WAVEFORM_QUANTIZATION_LEVELS = 8    # amplitude levels
FREQUENCY_QUANTIZATION_LEVELS = 16  # per-band stacked bar levels
HORIZONTAL_RESOLUTION_MULTIPLIER = 1
MIN_BAND_SHARE = 0.1                # floor of a band's normalized energy
CENTER_LINE_DIVISOR = 24            # baseline height = backing height / 24

DEFAULT_NORMALIZATION: list[list[float]] = [[0.5, 1.0]]

# command-line only; never written to presets
_INTERNAL_KEYS = {"output", "cache_dir", "opaque", "verbose"}


class ConfigError(Exception):
    """Invalid render parameters or an unusable preset file."""
    pass


@dataclass
class ConfigFieldError:
    """One rejected render parameter.

    Attributes:
        key:     Parameter name, e.g. ``"target_count"``.
        value:   The rejected value as given.
        message: Sentence suitable for showing to the user.
    """
    key: str
    value: Any
    message: str


@dataclass(frozen=True)
class ParamSpec:
    """Declares one render parameter: type, default, bounds and help."""
    key: str
    type: type | tuple              # accepted Python type(s)
    default: Any
    label: str                      # name shown in messages
    description: str = ""
    min: float | int | None = None  # lower bound, inclusive unless min_exclusive
    max: float | int | None = None  # upper bound, inclusive unless max_exclusive
    min_exclusive: bool = False
    max_exclusive: bool = False
    choices: list | None = None     # allowed values for string parameters
    item_type: type | tuple | None = None  # element type for list parameters
    nullable: bool = False


def _palette_choices() -> list[str]:
    from .palettes import palette_names
    return palette_names()


def _copy_default(value):
    if isinstance(value, list):
        return [list(v) if isinstance(v, list) else v for v in value]
    return value


def default_config() -> dict[str, Any]:
    """Fresh dict of every render parameter at its default."""
    return {p.key: _copy_default(p.default) for p in render_params()}


def merge_configs(*configs: dict[str, Any]) -> dict[str, Any]:
    """Layer *configs* left to right.  A ``None`` value never overrides."""
    merged: dict[str, Any] = {}
    for layer in configs:
        merged.update((k, v) for k, v in layer.items() if v is not None)
    return merged


def load_preset(path: str) -> dict[str, Any]:
    """Read render parameters from a JSON preset.

    Returns the stored parameters without the ``schema_version`` and
    ``_description`` bookkeeping keys.  Any problem reading the file is
    reported as :class:`ConfigError`.
    """
    if not os.path.isfile(path):
        raise ConfigError(f"No such preset: {path}")
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Preset {path} is not valid JSON: {e}")
    except OSError as e:
        raise ConfigError(f"Preset {path} could not be read: {e}")

    if not isinstance(data, dict):
        raise ConfigError(
            f"Preset {path} must hold a JSON object, not {type(data).__name__}"
        )
    return {k: v for k, v in data.items() if k not in ("schema_version", "_description")}


def save_preset(config: dict[str, Any], path: str, *, description: str | None = None) -> None:
    """Write the parameters of *config* that differ from the defaults.

    Command-line only keys and ``_``-prefixed keys are skipped.
    """
    defaults = default_config()
    preset: dict[str, Any] = {"schema_version": PRESET_SCHEMA_VERSION}
    if description:
        preset["_description"] = description
    preset.update(
        (k, v) for k, v in config.items()
        if k not in _INTERNAL_KEYS and not k.startswith("_")
        and not (k in defaults and defaults[k] == v)
    )

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(preset, f, indent=4, ensure_ascii=False)


# ---------------------------------------------------------------------------
# Render parameters
# ---------------------------------------------------------------------------

def render_params() -> list[ParamSpec]:
    return [
        ParamSpec(
            key="target_count", type=int, default=MAX_TARGET_COUNT,
            min=1, max=MAX_TARGET_COUNT,
            label="Envelope positions",
            description="Number of amplitude/energy positions computed per track.",
        ),
        ParamSpec(
            key="palette", type=str, default="classic",
            choices=_palette_choices(),
            label="Color palette",
            description="Named palette used for the stacked frequency bars.",
        ),
        ParamSpec(
            key="normalization", type=list, default=_copy_default(DEFAULT_NORMALIZATION),
            item_type=(list, tuple),
            label="Normalization constraints",
            description=(
                "List of [percentile, target] pairs. Each pair is a minimum "
                "threshold: [0.5, 1.0] means at least half of the positions "
                "reach the full bar height. The most restrictive pair wins. "
                "Values outside 0..1 are clamped."
            ),
        ),
        ParamSpec(
            key="width", type=int, default=1000, min=1,
            label="Width (px)",
            description="Display width in logical (CSS) pixels.",
        ),
        ParamSpec(
            key="height", type=int, default=32, min=1,
            label="Height (px)",
            description="Display height in logical (CSS) pixels.",
        ),
        ParamSpec(
            key="device_pixel_ratio", type=(int, float), default=1.0,
            min=0.0, min_exclusive=True,
            label="Device pixel ratio",
            description="Backing pixels per logical pixel.",
        ),
    ]


# ---------------------------------------------------------------------------
# Validation
# ---------------------------------------------------------------------------

def _type_label(t) -> str:
    if isinstance(t, tuple):
        return " or ".join(x.__name__ for x in t)
    return t.__name__


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _check_type(spec: ParamSpec, value) -> str | None:
    # bool is an int subclass but never a valid number here
    if spec.type is not bool and isinstance(value, bool):
        return f"{spec.label} must be {_type_label(spec.type)}, got boolean."
    if not isinstance(value, spec.type):
        return (f"{spec.label} must be {_type_label(spec.type)}, "
                f"got {type(value).__name__}.")
    return None


def _check_bounds(spec: ParamSpec, value) -> str | None:
    if not _is_number(value):
        return None
    if spec.min is not None:
        if spec.min_exclusive and value <= spec.min:
            return f"{spec.label} must be greater than {spec.min}."
        if not spec.min_exclusive and value < spec.min:
            return f"{spec.label} must be at least {spec.min}."
    if spec.max is not None:
        if spec.max_exclusive and value >= spec.max:
            return f"{spec.label} must be less than {spec.max}."
        if not spec.max_exclusive and value > spec.max:
            return f"{spec.label} must be at most {spec.max}."
    return None


def _check_items(spec: ParamSpec, value) -> str | None:
    if spec.item_type is None or not isinstance(value, list):
        return None
    for i, item in enumerate(value):
        if not isinstance(item, spec.item_type):
            return (f"{spec.label}[{i}] must be {_type_label(spec.item_type)}, "
                    f"got {type(item).__name__}.")
    return None


def _check_constraint_pairs(spec: ParamSpec, value) -> str | None:
    """Out-of-range numbers are allowed (clamped at render time)."""
    if spec.key != "normalization" or not isinstance(value, list):
        return None
    for i, pair in enumerate(value):
        if len(pair) != 2 or not all(_is_number(v) for v in pair):
            return (f"{spec.label}[{i}] must be a [percentile, target] "
                    f"pair of numbers.")
    return None


def _check_param(spec: ParamSpec, value) -> str | None:
    """First problem with *value* for *spec*, or None when it is valid."""
    if value is None:
        return None if spec.nullable else f"{spec.label} must not be empty."
    message = _check_type(spec, value)
    if message:
        return message
    if spec.choices is not None and value not in spec.choices:
        opts = ", ".join(repr(c) for c in spec.choices)
        return f"{spec.label} must be one of {opts}."
    return (_check_bounds(spec, value)
            or _check_items(spec, value)
            or _check_constraint_pairs(spec, value))


def validate_param_values(
    params: list[ParamSpec],
    values: dict[str, Any],
) -> list[ConfigFieldError]:
    """Check the keys of *values* that *params* declares.

    Unknown keys are ignored.  At most one error is reported per key.
    """
    errors: list[ConfigFieldError] = []
    for spec in params:
        if spec.key not in values:
            continue
        value = values[spec.key]
        message = _check_param(spec, value)
        if message:
            errors.append(ConfigFieldError(spec.key, value, message))
    return errors


def validate_config_fields(config: dict[str, Any]) -> list[ConfigFieldError]:
    """Structured errors for a flat render config; never raises."""
    return validate_param_values(render_params(), config)


def validate_config(config: dict[str, Any]) -> None:
    """Raise :class:`ConfigError` listing every invalid parameter."""
    errors = validate_config_fields(config)
    if errors:
        raise ConfigError(
            "Configuration has invalid values:\n  • "
            + "\n  • ".join(e.message for e in errors)
        )
