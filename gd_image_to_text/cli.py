"""Command-line interface for gd_image_to_text.

Human-readable progress goes to stderr; ``--json`` prints one result object
on stdout instead, for scripting.
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

from gd_image_to_text.core.fitter import DEFAULT_CAPACITY
from gd_image_to_text.core.level import TOOL_VERSION


def parse_size(value: str) -> tuple[int, int]:
    """Parse a "WxH" size with positive integer dimensions."""
    width, sep, height = value.lower().partition("x")
    if not sep:
        raise argparse.ArgumentTypeError('Size must be in "WxH" format')
    try:
        size = int(width), int(height)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid size: {value}") from None
    if size[0] <= 0 or size[1] <= 0:
        raise argparse.ArgumentTypeError(f"Size must be positive: {value}")
    return size


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid integer: {value}") from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"Must be positive: {value}")
    return number


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gd-image-to-text",
        description="Geometry Dash image to text conversion tool.",
    )
    parser.add_argument("input", help="Path or URL of the input image.")
    parser.add_argument(
        "-g", "--grayscale",
        action="store_true",
        help="Turn the image grayscale, using only one text object.",
    )
    parser.add_argument(
        "-o", "--output",
        help="Output .gmd path. If omitted, a save dialog is shown.",
    )
    parser.add_argument(
        "-s", "--size",
        type=parse_size,
        help=(
            'Size of the image in characters, "WxH". Defaults to the image '
            "size with the height halved, as characters are about twice as "
            "tall as they are wide."
        ),
    )
    parser.add_argument(
        "--scale",
        type=float,
        default=0.075,
        help="Scale of the text objects (default: 0.075).",
    )
    parser.add_argument(
        "--capacity",
        type=_positive_int,
        default=DEFAULT_CAPACITY,
        help=f"Max characters per text object (default: {DEFAULT_CAPACITY}).",
    )
    parser.add_argument(
        "--frame",
        type=int,
        default=0,
        help="Frame to use from an animation or video (default: 0).",
    )
    parser.add_argument(
        "--preview",
        help="Also render the layers to this image file.",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Output structured JSON (pipe-friendly, no dialog).",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Show stack traces on error.",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {TOOL_VERSION}"
    )
    return parser


def default_output_path(source) -> Path:
    """Where the .gmd goes when no -o is given.

    Next to a local input; in the current directory for a downloaded one.
    """
    if source.remote:
        return Path.cwd() / f"{source.path.stem}.gmd"
    return source.path.with_suffix(".gmd")


def _fail(args: argparse.Namespace, message: str, code: str) -> None:
    """Report an error (JSON on stderr with --json) and exit with code 1."""
    if args.debug:
        import traceback
        traceback.print_exc(file=sys.stderr)
    if args.json:
        err = {"status": "error", "error": message, "code": code}
        print(json.dumps(err), file=sys.stderr)
    else:
        print(f"Error: {message}", file=sys.stderr)
    sys.exit(1)


def _run(args: argparse.Namespace) -> None:
    """Load, fit and save."""
    from gd_image_to_text.core.fitter import (
        FitAttempt,
        FitSettings,
        UnfittableImageError,
        fit,
    )
    from gd_image_to_text.core.level import LevelSettings
    from gd_image_to_text.core.reader import is_url, load_image
    from gd_image_to_text.core.writer import save_gmd, save_preview

    is_json = args.json
    is_remote = is_url(args.input)

    if is_remote and not is_json:
        print(f"Downloading {args.input}...", file=sys.stderr)

    try:
        source = load_image(args.input, frame=args.frame)
    except FileNotFoundError as e:
        _fail(args, str(e), "FILE_NOT_FOUND")
    except (ValueError, OSError) as e:
        _fail(args, str(e), "DOWNLOAD_FAILED" if is_remote else "INVALID_INPUT")

    settings = FitSettings(
        size=args.size,
        grayscale=args.grayscale,
        capacity=args.capacity,
    )

    def on_attempt(attempt: FitAttempt) -> None:
        if is_json:
            return
        print(f"char count is {attempt.char_count}", file=sys.stderr)
        if not attempt.fits:
            print(
                f"too big for {attempt.width}x{attempt.height}, shrinking...",
                file=sys.stderr,
            )

    try:
        result = fit(source.image, settings, on_attempt=on_attempt)
    except UnfittableImageError as e:
        _fail(args, str(e), "UNFITTABLE_IMAGE")
    except ValueError as e:
        _fail(args, str(e), "INVALID_INPUT")

    if args.output:
        output_path = Path(args.output).resolve()
    elif is_json:
        output_path = default_output_path(source)
    else:
        from gd_image_to_text.app import ask_output_path

        output_path = ask_output_path(
            default_path=str(default_output_path(source)),
            summary=f"Fitted {result.width}x{result.height} characters. Save to:",
        )
        if output_path is None:
            print("No output path given, nothing saved.", file=sys.stderr)
            sys.exit(1)

    level_settings = LevelSettings(object_scale=args.scale)
    try:
        save_gmd(result, output_path, args.grayscale, level_settings)
        if args.preview:
            save_preview(result, Path(args.preview), args.grayscale)
    except (OSError, ValueError) as e:
        _fail(args, str(e), "PROCESSING_ERROR")

    if not is_json:
        print(
            f"Saved {result.width}x{result.height} image to {output_path}",
            file=sys.stderr,
        )
    else:
        report = {
            "status": "success",
            "input": args.input,
            "output": str(output_path),
            "preview": args.preview,
            "settings": {
                "grayscale": args.grayscale,
                "size": list(args.size) if args.size else None,
                "scale": args.scale,
                "capacity": args.capacity,
            },
            "result": {
                "width": result.width,
                "height": result.height,
                "layers": len(result.layers),
                "char_count": result.char_count,
                "attempts": len(result.attempts),
            },
        }
        print(json.dumps(report, indent=2))


def main(argv: list[str] | None = None) -> None:
    """Main entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    _run(args)


if __name__ == "__main__":
    main()
