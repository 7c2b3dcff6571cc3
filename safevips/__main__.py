#!/usr/bin/env python3
"""safevips - inspect images through libvips.

This is the CLI entry point for safevips. It loads a file (or rasterizes an
SVG) and prints what the image handle reports about it.

Usage:
    python -m safevips photo.jpg
    python -m safevips logo.svg --svg --dpi 300
    python -m safevips photo.jpg --blob icc-profile-data
"""

import argparse
import dataclasses
import logging
import sys
from pathlib import Path
from typing import List, Optional

from ._version import __version__
from .config import ConfigManager
from .config.manager import ConfigError
from .engine import get_engine
from .enums import Access
from .exceptions import VipsError
from .image import FromFileOptions, FromSvgOptions, VipsImage
from .utils import c_string


def setup_logging(verbose: bool = False, config: Optional[ConfigManager] = None) -> None:
    """Configure logging for the application.

    Args:
        verbose: If True, enable DEBUG level logging
        config: Configuration providing logging.level/file/format
    """
    if verbose:
        level = logging.DEBUG
    elif config is not None:
        level = getattr(logging, str(config.get("logging.level", "INFO")).upper(), logging.INFO)
    else:
        level = logging.INFO

    # Console handler with simpler format
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(console_handler)

    # Also log to file if configured
    log_file = config.get("logging.file") if config is not None else None
    if log_file:
        log_path = Path(log_file).expanduser()
        try:
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler = logging.FileHandler(log_path)
        except OSError as e:
            root_logger.warning(f"Cannot write log file {log_path}: {e}")
            return

        file_handler.setLevel(logging.DEBUG)  # Always DEBUG in file
        file_handler.setFormatter(
            logging.Formatter(
                config.get(
                    "logging.format",
                    "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
                )
            )
        )
        root_logger.addHandler(file_handler)


def parse_arguments(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments.

    Args:
        argv: Argument list (defaults to sys.argv[1:])

    Returns:
        Parsed arguments
    """
    parser = argparse.ArgumentParser(
        prog="safevips",
        description="safevips - inspect images through libvips",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Show dimensions, bands, pages and transparency
  python -m safevips photo.jpg

  # Rasterize an SVG at 300 DPI
  python -m safevips logo.svg --svg --dpi 300

  # Report the size of an embedded ICC profile
  python -m safevips photo.jpg --blob icc-profile-data
"""
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"safevips {__version__}"
    )

    parser.add_argument("filename", help="Image file to inspect")

    # Loader selection and options
    parser.add_argument(
        "--svg",
        action="store_true",
        help="Load the file with the SVG rasterizer"
    )
    parser.add_argument(
        "--dpi",
        type=float,
        help="SVG render resolution (default: from config, 72)"
    )
    parser.add_argument(
        "--scale",
        type=float,
        help="SVG scale factor (default: from config, 1.0)"
    )
    parser.add_argument(
        "--access",
        choices=[member.name.lower() for member in Access],
        help="Pixel access pattern hint"
    )
    parser.add_argument(
        "--memory",
        action="store_true",
        help="Decode the image into memory"
    )

    # Metadata queries
    parser.add_argument(
        "--blob",
        metavar="NAME",
        action="append",
        default=[],
        help="Report the size of a binary metadata property (repeatable)"
    )
    parser.add_argument(
        "--property",
        metavar="NAME",
        action="append",
        default=[],
        help="Report whether a metadata property exists (repeatable)"
    )

    # Configuration
    parser.add_argument(
        "--config",
        metavar="PATH",
        help="Path to config file (default: ~/.safevips/config.yaml)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose debug logging"
    )

    return parser.parse_args(argv)


def build_options(args: argparse.Namespace, config: ConfigManager):
    """Merge configured load options with command-line overrides.

    Returns:
        FromSvgOptions when --svg is given, FromFileOptions otherwise

    Raises:
        ValueError: If an override is out of range
    """
    overrides = {}
    if args.access:
        overrides["access"] = args.access
    if args.memory:
        overrides["memory"] = True

    if args.svg:
        if args.dpi is not None:
            overrides["dpi"] = args.dpi
        if args.scale is not None:
            overrides["scale"] = args.scale
        return dataclasses.replace(FromSvgOptions.from_config(config), **overrides)

    return dataclasses.replace(FromFileOptions.from_config(config), **overrides)


def describe(image: VipsImage, args: argparse.Namespace) -> None:
    """Print what the handle reports about the image."""
    width, height = image.get_dimensions()
    print(f"Dimensions:   {width} x {height}")
    print(f"Bands:        {image.get_bands()}")
    print(f"Pages:        {image.get_page_count()}")
    print(f"Transparent:  {'yes' if image.is_transparent() else 'no'}")

    for name in args.property:
        print(f"Property {name}: {'present' if image.has_property(name) else 'absent'}")

    for name in args.blob:
        blob = image.get_blob(name)
        print(f"Blob {name}: {len(blob)} bytes")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the safevips CLI.

    Returns:
        Exit code (0 for success, non-zero for errors)
    """
    args = parse_arguments(argv)
    logger = logging.getLogger(__name__)

    try:
        config = ConfigManager.load(config_path=args.config)
        setup_logging(args.verbose, config)

        engine = get_engine(config)
        options = build_options(args, config)

        loader = engine.find_loader(c_string(args.filename))
        print(f"File:         {args.filename}")
        print(f"Loader:       {loader or 'unknown'}")

        if args.svg:
            image = VipsImage.new_from_svg(args.filename, options)
        else:
            image = VipsImage.new_from_file(args.filename, options)

        with image:
            describe(image, args)

        return 0

    except ConfigError as e:
        logger.error(f"Configuration error: {e}")
        print(f"✗ Configuration Error: {e}", file=sys.stderr)
        return 2

    except (VipsError, ValueError) as e:
        logger.error(f"libvips error: {e}", exc_info=args.verbose)
        print(f"✗ Error: {e}", file=sys.stderr)
        return 3

    except KeyboardInterrupt:
        print("\nInterrupted by user", file=sys.stderr)
        return 130


if __name__ == "__main__":
    sys.exit(main())
