from ._version import __version__
from .models import (
    SpectralTriple,
    WaveformRenderData,
    Column,
    ColorPalette,
    NormalizationConfig,
    SurfaceSize,
)
from .sampler import sample_waveform
from .spectral import analyze_spectrum
from .quantization import (
    quantize_amplitude,
    quantize_waveform,
    normalize_waveform,
    effective_max,
)
from .smoothing import smooth_peaks
from .surface import Surface, DrawingContext, MemorySurface, SurfaceError, parse_color
from .compositor import setup_surface, render_waveform, build_columns, x_to_fraction
from .palettes import (
    COLOR_PALETTES,
    get_color_palette,
    palette_names,
    resolve_palette,
    generate_oklch_palette,
)
from .cache import CacheProvider, MemoryCache, JsonFileCache, cache_key
from .config import (
    default_config,
    merge_configs,
    validate_config,
    validate_config_fields,
    load_preset,
    save_preset,
    ConfigError,
    ConfigFieldError,
    ParamSpec,
)
from .events import EventBus

__all__ = [
    "__version__",
    "SpectralTriple",
    "WaveformRenderData",
    "Column",
    "ColorPalette",
    "NormalizationConfig",
    "SurfaceSize",
    "sample_waveform",
    "analyze_spectrum",
    "quantize_amplitude",
    "quantize_waveform",
    "normalize_waveform",
    "effective_max",
    "smooth_peaks",
    "Surface",
    "DrawingContext",
    "MemorySurface",
    "SurfaceError",
    "parse_color",
    "setup_surface",
    "render_waveform",
    "build_columns",
    "x_to_fraction",
    "COLOR_PALETTES",
    "get_color_palette",
    "palette_names",
    "resolve_palette",
    "generate_oklch_palette",
    "CacheProvider",
    "MemoryCache",
    "JsonFileCache",
    "cache_key",
    "default_config",
    "merge_configs",
    "validate_config",
    "validate_config_fields",
    "load_preset",
    "save_preset",
    "ConfigError",
    "ConfigFieldError",
    "ParamSpec",
    "EventBus",
]
