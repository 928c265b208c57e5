"""
negconv command line

Two tools:
    negconv        convert a scanned negative into a positive
    negconv-gamma  measure gamma exponents from a calibration chart

Usage:
    negconv --gamma portra800 --base base.tif scan.tif positive.tif
    negconv-gamma [--bw] chart.png
"""

import argparse
import logging
import sys
from pathlib import Path

from negconv.core.curve_profiler import format_profile, profile_chart
from negconv.core.errors import ConfigurationError, ConversionError, UnknownProfileError
from negconv.core.gamma import GAMMA_PROFILES
from negconv.core.image_loader import load_chart
from negconv.core.image_processor import ConversionSettings, ImageProcessor
from negconv.logging_config import setup_logging

logger = logging.getLogger("negconv")

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_CONFIG = 2


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="negconv",
        description="Convert a scanned film negative into a positive.",
    )
    p.add_argument("input", nargs="?", help="Negative scan (16-bit TIFF/PNG or camera RAW)")
    p.add_argument("output", nargs="?", help="Output path (.tif, .tiff or .png)")
    p.add_argument("--gamma", default="", help="Apply the given gamma profile")
    p.add_argument(
        "--invert",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Invert the image after setting levels",
    )
    p.add_argument(
        "--normalize",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Normalize the image by channel",
    )
    p.add_argument(
        "--border",
        type=float,
        default=10,
        help="Percentage border to ignore when calculating normalization",
    )
    p.add_argument("--base", default=None, help="Path to film base sample for mask correction")
    p.add_argument("--tupper", type=int, default=10, help="Pixel count upper threshold for normalization")
    p.add_argument("--tlower", type=int, default=10, help="Pixel count lower threshold for normalization")
    p.add_argument("--list-profiles", action="store_true", help="Print available gamma profiles and exit")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    p.add_argument("--log-file", default=None, help="Also write logs to this file")
    return p


def build_gamma_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="negconv-gamma",
        description="Measure per-channel gamma from a square curve chart.",
    )
    p.add_argument("input", help="Calibration chart image")
    p.add_argument("--bw", action="store_true", help="Set black and white mode (single curve)")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.list_profiles:
        for name in sorted(GAMMA_PROFILES):
            print(name)
        return EXIT_OK

    setup_logging(logging.DEBUG if args.verbose else logging.INFO, args.log_file)

    settings = ConversionSettings(
        gamma_profile=args.gamma,
        invert=args.invert,
        normalize=args.normalize,
        border=args.border,
        threshold_upper=args.tupper,
        threshold_lower=args.tlower,
        base_path=Path(args.base) if args.base else None,
    )

    try:
        processor = ImageProcessor(settings)
    except UnknownProfileError as e:
        logger.error("Must specify a gamma profile. Options are:")
        for name in e.available:
            logger.error("  %s", name)
        return EXIT_CONFIG
    except ConfigurationError as e:
        logger.error("%s", e)
        return EXIT_CONFIG

    if not args.input or not args.output:
        parser.error("INPUT and OUTPUT are required")

    try:
        processor.process_file(args.input, args.output)
    except ConversionError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    return EXIT_OK


def gamma_main(argv: list[str] | None = None) -> int:
    args = build_gamma_parser().parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.WARNING)

    try:
        chart = load_chart(args.input)
        profile = profile_chart(chart, bw=args.bw)
    except ConversionError as e:
        logger.error("%s", e)
        return EXIT_FAILURE

    sys.stdout.write(format_profile(profile))
    sys.stdout.flush()
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
