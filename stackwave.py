import argparse
import json
import logging
import os
import sys

try:
    from rich.console import Console
    from rich.logging import RichHandler
    from rich.progress import Progress, SpinnerColumn, BarColumn, TextColumn
    from rich.table import Table
    from rich import box
except ImportError:
    print("Error: The 'rich' library is required for the CLI but not installed.", file=sys.stderr)
    print("Please install it with: pip install stackwave[cli]", file=sys.stderr)
    sys.exit(1)

from stackwavelib import __version__
from stackwavelib.audio import discover_audio_files, load_render_data_batch
from stackwavelib.cache import JsonFileCache
from stackwavelib.config import (
    ConfigError,
    default_config,
    load_preset,
    merge_configs,
    save_preset,
    validate_config,
)
from stackwavelib.events import RENDER_DATA_COMPLETE, EventBus
from stackwavelib.palettes import palette_names, resolve_palette

console = Console()


def positive_int(value):
    ivalue = int(value)
    if ivalue <= 0:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return ivalue


def positive_float(value):
    fvalue = float(value)
    if fvalue <= 0:
        raise argparse.ArgumentTypeError("must be a positive number")
    return fvalue


def parse_arguments(argv=None):
    parser = argparse.ArgumentParser(
        description="Stacked frequency-bar waveform renderer",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    parser.add_argument("--version", action="version",
                        version=f"stackwave {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="Enable debug logging")

    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("inputs", nargs="+",
                        help="Audio files or directories containing audio files")
    common.add_argument("-o", "--output", type=str, default=".",
                        help="Output directory")
    common.add_argument("--preset", type=str, default=None,
                        help="JSON preset with render parameters")
    common.add_argument("--target-count", "--target_count", dest="target_count",
                        type=positive_int, default=None,
                        help="Envelope positions per track (max 600)")
    common.add_argument("--cache-dir", dest="cache_dir", type=str, default=None,
                        help="Directory for cached render data")
    common.add_argument("--save-preset", dest="save_preset", type=str, default=None,
                        metavar="PATH",
                        help="Write the effective render parameters to a JSON preset")

    sub = parser.add_subparsers(dest="command", required=True)

    render = sub.add_parser("render", parents=[common],
                            help="Render waveforms to PNG",
                            formatter_class=argparse.ArgumentDefaultsHelpFormatter)
    render.add_argument("--width", type=positive_int, default=None,
                        help="Display width in logical pixels")
    render.add_argument("--height", type=positive_int, default=None,
                        help="Display height in logical pixels")
    render.add_argument("--dpr", dest="device_pixel_ratio", type=positive_float,
                        default=None, help="Device pixel ratio")
    render.add_argument("--palette", type=str, choices=palette_names(), default=None,
                        help="Color palette")
    render.add_argument("--constraint", dest="normalization", nargs=2, type=float,
                        action="append", metavar=("PERCENTILE", "TARGET"),
                        default=None,
                        help="Normalization constraint; repeat for several")
    render.add_argument("--opaque", action="store_true",
                        help="Fill the palette background instead of leaving it transparent")

    sub.add_parser("data", parents=[common],
                   help="Write render data as JSON",
                   formatter_class=argparse.ArgumentDefaultsHelpFormatter)

    return parser.parse_args(argv)


def build_config(args) -> dict:
    preset = load_preset(args.preset) if args.preset else {}
    overrides = {
        key: getattr(args, key, None)
        for key in ("target_count", "width", "height", "device_pixel_ratio",
                    "palette", "normalization")
    }
    config = merge_configs(default_config(), preset, overrides)
    validate_config(config)
    return config


def collect_inputs(inputs: list[str]) -> list[str]:
    files: list[str] = []
    for path in inputs:
        if os.path.isdir(path):
            files.extend(discover_audio_files(path))
        else:
            files.append(path)
    return files


def load_all(files, config, cache):
    event_bus = EventBus()
    with Progress(
        SpinnerColumn(),
        TextColumn("[progress.description]{task.description}"),
        BarColumn(),
        TextColumn("{task.completed}/{task.total}"),
        console=console,
    ) as progress:
        task_id = progress.add_task("[cyan]Analyzing tracks...", total=len(files))

        def on_complete(**data):
            progress.advance(task_id)
        unsubscribe = event_bus.subscribe(RENDER_DATA_COMPLETE, on_complete)

        results = load_render_data_batch(
            files, cache=cache, target_count=config["target_count"],
            event_bus=event_bus,
        )
        unsubscribe()
    return results


def _output_path(output_dir: str, filepath: str, suffix: str) -> str:
    stem = os.path.splitext(os.path.basename(filepath))[0]
    return os.path.join(output_dir, stem + suffix)


def write_pngs(results, config, output_dir, opaque):
    try:
        from stackwavegui.surface import QImageSurface
    except ImportError:
        console.print("[bold red]Error:[/] PNG output needs PySide6 (pip install stackwave[gui])")
        return {}
    from stackwavelib.compositor import render_waveform, setup_surface

    palette = resolve_palette(config["palette"])
    written = {}
    for path, data in results.items():
        if isinstance(data, Exception):
            continue
        surface = QImageSurface(device_pixel_ratio=config["device_pixel_ratio"])
        setup_surface(surface, config["width"], config["height"])
        render_waveform(surface, data.waveform_data, data.spectral_data,
                        palette, config["normalization"])
        image = surface.flattened(palette.background) if opaque else surface.image
        out = _output_path(output_dir, path, ".png")
        if image.save(out):
            written[path] = out
        else:
            written[path] = OSError(f"could not write {out}")
    return written


def write_json(results, output_dir):
    written = {}
    for path, data in results.items():
        if isinstance(data, Exception):
            continue
        out = _output_path(output_dir, path, ".waveform.json")
        try:
            with open(out, "w", encoding="utf-8") as f:
                json.dump(data.to_dict(), f)
            written[path] = out
        except OSError as e:
            written[path] = e
    return written


def print_summary(results, written):
    table = Table(box=box.ROUNDED, title="Waveforms")
    table.add_column("Track", style="cyan", max_width=40)
    table.add_column("Positions", justify="right")
    table.add_column("Output", style="dim")
    table.add_column("Status", justify="right")
    for path, data in results.items():
        name = os.path.basename(path)
        if isinstance(data, Exception):
            table.add_row(name, "-", "-", f"[red]ERR[/] {data}")
            continue
        out = written.get(path)
        if isinstance(out, Exception):
            table.add_row(name, str(len(data)), "-", f"[red]ERR[/] {out}")
        elif out is None:
            table.add_row(name, str(len(data)), "-", "[yellow]SKIPPED[/]")
        else:
            table.add_row(name, str(len(data)), out, "[green]OK[/]")
    console.print(table)


def main(argv=None):
    args = parse_arguments(argv)
    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(message)s",
                            handlers=[RichHandler(console=console)])

    try:
        config = build_config(args)
    except ConfigError as e:
        console.print(f"[bold red]Error:[/] {e}")
        return 2

    if args.save_preset:
        try:
            save_preset(config, args.save_preset)
        except OSError as e:
            console.print(f"[bold red]Error:[/] cannot write preset {args.save_preset}: {e}")
            return 2
        console.print(f"Preset saved to [cyan]{args.save_preset}[/]")

    files = collect_inputs(args.inputs)
    if not files:
        console.print("[red]No audio files found.[/]")
        return 1
    os.makedirs(args.output, exist_ok=True)

    cache = JsonFileCache(args.cache_dir) if args.cache_dir else None
    results = load_all(files, config, cache)

    if args.command == "render":
        written = write_pngs(results, config, args.output, args.opaque)
    else:
        written = write_json(results, args.output)

    print_summary(results, written)
    failed = any(isinstance(v, Exception) for v in results.values()) or \
        any(isinstance(v, Exception) for v in written.values())
    return 1 if failed else 0


if __name__ == "__main__":
    sys.exit(main())
