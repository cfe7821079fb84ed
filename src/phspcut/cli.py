"""
Command-line entry point.

Usage:
    phspcut <inputBase> <outputBase> [--window FILE.json] [--z-plane Z]
            [--x-min X] [--x-max X] [--y-min Y] [--y-max Y]
            [--error-threshold N] [--strict-size-check] [--preview] [-v]
"""

from __future__ import annotations

import argparse
import logging
import sys

from phspcut.config import ERROR_THRESHOLD, CutterOptions
from phspcut.cutter import cut_phase_space, preview_window
from phspcut.errors import PhaseSpaceError
from phspcut.window import DEFAULT_WINDOW, load_window_json

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


class _ArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that exits with status 1 on usage errors."""

    def error(self, message: str):
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: error: {message}\n")


def build_parser() -> argparse.ArgumentParser:
    parser = _ArgumentParser(
        prog="phspcut",
        description="Keep the particles of an IAEA phase space whose trajectory "
        "crosses a rectangular window on the plane z = Z_PLANE.",
    )
    parser.add_argument("input_base", help="Input file base name (without extension)")
    parser.add_argument("output_base", help="Output file base name (without extension)")
    parser.add_argument("--window", help="JSON file with z_plane, x_min, x_max, y_min, y_max")
    parser.add_argument("--z-plane", type=float, help="Plane position in cm (default 100)")
    parser.add_argument("--x-min", type=float, help="Window x lower bound in cm (default -7)")
    parser.add_argument("--x-max", type=float, help="Window x upper bound in cm (default 7)")
    parser.add_argument("--y-min", type=float, help="Window y lower bound in cm (default -7)")
    parser.add_argument("--y-max", type=float, help="Window y upper bound in cm (default 7)")
    parser.add_argument(
        "--error-threshold",
        type=int,
        default=ERROR_THRESHOLD,
        help=f"Unreadable records tolerated before aborting (default {ERROR_THRESHOLD})",
    )
    parser.add_argument(
        "--strict-size-check",
        action="store_true",
        help="Fail when the input data file size does not match its header",
    )
    parser.add_argument(
        "--preview",
        action="store_true",
        help="Only count how many records would be kept; write nothing",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser


def setup_logging(verbose: bool = False) -> None:
    """Configure console logging for the command-line tool."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        force=True,
    )


def main(argv: list[str] | None = None) -> int:
    """Run the cutter; returns the process exit code."""
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.verbose)

    try:
        window = load_window_json(args.window) if args.window else DEFAULT_WINDOW
        window = window.replace(
            z_plane=args.z_plane,
            x_min=args.x_min,
            x_max=args.x_max,
            y_min=args.y_min,
            y_max=args.y_max,
        )
        options = CutterOptions(
            error_threshold=args.error_threshold,
            tolerate_size_mismatch=not args.strict_size_check,
        )
    except (OSError, ValueError) as e:
        logger.error("Invalid configuration: %s", e)
        return 1

    logger.info(
        "Window: z = %g cm, x in [%g, %g], y in [%g, %g]",
        window.z_plane,
        window.x_min,
        window.x_max,
        window.y_min,
        window.y_max,
    )

    if args.preview:
        try:
            counts = preview_window(args.input_base, window)
        except PhaseSpaceError as e:
            logger.error("%s", e)
            return 1
        for decision, count in counts.items():
            print(f"{decision.name.lower()}: {count}")
        return 0

    report = cut_phase_space(args.input_base, args.output_base, window, options)
    if report.result is not None:
        result = report.result
        print(f"Total records processed: {result.processed}")
        print(f"Accepted records (filtered): {result.accepted}")
        if result.errors:
            print(f"Read errors: {result.errors}")
        if result.header_error:
            print(f"Output header update failed: {result.header_error}")
    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
