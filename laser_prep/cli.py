"""Command-line interface for laser_prep.

Supports both interactive TUI mode and headless/JSON mode for agent integration.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from laser_prep.core.dither import Algorithm
from laser_prep.core.processor import LaserSettings


def _build_parser() -> argparse.ArgumentParser:
    defaults = LaserSettings()
    parser = argparse.ArgumentParser(
        prog="laser-prep",
        description="Convert images to black/white bitmaps for laser engraving.",
    )
    subparsers = parser.add_subparsers(dest="command")

    # --- convert subcommand ---
    convert = subparsers.add_parser(
        "convert",
        help="Convert an image for laser engraving.",
    )
    convert.add_argument("input", help="Input image path or HTTP(S) URL.")
    convert.add_argument(
        "-o", "--output",
        help="Output file path. Defaults to <input>_laser_<algorithm>.png.",
    )
    convert.add_argument(
        "-a", "--algorithm",
        choices=[a.value for a in Algorithm],
        default=defaults.algorithm.value,
        help=f"Quantization algorithm (default: {defaults.algorithm.value}).",
    )
    convert.add_argument(
        "--threshold",
        type=int,
        default=defaults.threshold,
        help="Cutoff for the threshold algorithm, 0 to 255 (default: 128).",
    )
    convert.add_argument(
        "--brightness",
        type=int,
        default=defaults.brightness,
        help="Brightness adjustment, -100 to 100 (default: 0).",
    )
    convert.add_argument(
        "--contrast",
        type=int,
        default=defaults.contrast,
        help="Contrast adjustment, -100 to 100 (default: 0).",
    )
    convert.add_argument(
        "--invert",
        action="store_true",
        help="Invert luminance.",
    )
    convert.add_argument(
        "--scale",
        type=float,
        default=defaults.scale,
        help="Downsample factor applied before processing, 0.1 to 1.0 (default: 1.0).",
    )
    convert.add_argument(
        "--grid-size",
        type=int,
        default=defaults.grid_size,
        help="Halftone cell size in pixels, at least 2 (default: 6).",
    )
    convert.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON (pipe-friendly, no TUI).",
    )
    convert.add_argument(
        "--no-tui",
        action="store_true",
        help="Run headless (no interactive TUI).",
    )
    convert.add_argument(
        "--debug",
        action="store_true",
        help="Show stack traces on error (with --json).",
    )
    convert.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Log progress and timings to stderr.",
    )

    return parser


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )


def _json_error(message: str, code: str, debug: bool = False) -> None:
    """Print JSON error to stderr and exit with code 1."""
    if debug:
        import traceback
        traceback.print_exc(file=sys.stderr)
    err = {"status": "error", "error": message, "code": code}
    print(json.dumps(err), file=sys.stderr)
    sys.exit(1)


def _fail(args: argparse.Namespace, message: str, code: str) -> None:
    if args.json:
        _json_error(message, code, debug=args.debug)
    print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _settings_from_args(args: argparse.Namespace) -> LaserSettings:
    return LaserSettings(
        algorithm=Algorithm(args.algorithm),
        threshold=args.threshold,
        brightness=args.brightness,
        contrast=args.contrast,
        inverted=args.invert,
        scale=args.scale,
        grid_size=args.grid_size,
    )


def _run_convert(args: argparse.Namespace) -> None:
    """Run the headless convert pipeline."""
    from laser_prep.core.errors import InvalidSettingsError, LaserPrepError
    from laser_prep.core.processor import process_image
    from laser_prep.core.reader import is_url, open_image
    from laser_prep.core.writer import default_output_path, save_output

    raw_input = args.input
    is_json = args.json
    is_remote = is_url(raw_input)

    if is_remote:
        if not is_json:
            print(f"Downloading {raw_input}...", file=sys.stderr)
        input_display = raw_input
    else:
        input_path = Path(raw_input).resolve()
        input_display = str(input_path)
        if not input_path.exists():
            _fail(args, f"File not found: {input_path}", "FILE_NOT_FOUND")

    try:
        source = open_image(raw_input)
    except (ValueError, OSError) as e:
        code = "DOWNLOAD_FAILED" if is_remote else "INVALID_INPUT"
        _fail(args, str(e), code)

    try:
        settings = _settings_from_args(args).normalized()
    except InvalidSettingsError as e:
        _fail(args, str(e), "INVALID_SETTINGS")

    # Determine output path
    if args.output:
        output_path = Path(args.output).resolve()
    else:
        output_path = default_output_path(source.path, settings.algorithm)

    if not is_json:
        print(
            f"Processing {source.width}x{source.height} with {settings.algorithm.value}...",
            file=sys.stderr,
        )

    try:
        result = process_image(source.image, settings)
        save_output(result, output_path)
    except MemoryError:
        _fail(args, "Image too large to process in available memory", "OUT_OF_MEMORY")
    except (LaserPrepError, ValueError, OSError) as e:
        _fail(args, str(e), "PROCESSING_ERROR")

    if not is_json:
        print(f"Saved to {output_path}", file=sys.stderr)
    else:
        payload = {
            "status": "success",
            "input": input_display,
            "output": str(output_path),
            "settings": {
                "algorithm": settings.algorithm.value,
                "threshold": settings.threshold,
                "brightness": settings.brightness,
                "contrast": settings.contrast,
                "inverted": settings.inverted,
                "scale": settings.scale,
                "grid_size": settings.grid_size,
            },
            "metadata": {
                "input_width": source.width,
                "input_height": source.height,
                "output_width": result.width,
                "output_height": result.height,
                "input_format": source.format,
                "output_format": output_path.suffix.lstrip("."),
                "elapsed_ms": round(result.elapsed_ms, 1),
            },
        }
        print(json.dumps(payload, indent=2))


def main() -> None:
    """Main entry point.

    Routing:
      laser-prep convert <file> [opts]  → convert subcommand
      laser-prep <file>                 → launch TUI with file
      laser-prep                        → launch TUI (file picker)
    """
    # If the first real arg isn't "convert", treat it as a direct TUI launch
    # to avoid argparse subparser consuming the file path as a subcommand.
    raw_args = sys.argv[1:]
    if raw_args and raw_args[0] == "convert":
        parser = _build_parser()
        args = parser.parse_args()
        _configure_logging(args.verbose)
        if args.json or args.no_tui:
            _run_convert(args)
        else:
            from laser_prep.app import run_app
            run_app(input_path=args.input, settings=_settings_from_args(args))
    elif raw_args and not raw_args[0].startswith("-"):
        # Positional arg = file path → TUI
        from laser_prep.app import run_app
        run_app(input_path=raw_args[0])
    elif raw_args and raw_args[0] in ("-h", "--help"):
        parser = _build_parser()
        parser.parse_args()
    else:
        # No args → TUI with file picker
        from laser_prep.app import run_app
        run_app()
