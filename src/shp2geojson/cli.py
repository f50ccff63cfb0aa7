"""Command-line entry point: ``shp2geojson INPUT [-o OUTPUT]``."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError
from tqdm import tqdm

from .config import ConverterSettings
from .errors import ConversionError
from .pipeline import convert_shapefile_to_geojson, prescan
from .source import COMPANION_EXTS, PairingPolicy

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="shp2geojson",
        description="Convert an ESRI shapefile (.shp + .dbf) to a GeoJSON FeatureCollection.",
    )
    parser.add_argument("input", type=Path, help="Path stem of the shapefile, with or without .shp")
    parser.add_argument(
        "-o",
        "--output",
        type=Path,
        help="Output .geojson path (defaults next to the input)",
    )
    parser.add_argument("--workers", type=int, help="Worker threads (default: number of CPUs)")
    parser.add_argument(
        "--pairing",
        choices=[p.value for p in PairingPolicy],
        help="How to pair shapes and records when their counts differ (default: truncate)",
    )
    parser.add_argument("--encoding", help="Text encoding of the .dbf (default: from .cpg, else UTF-8)")
    parser.add_argument("--indent", type=int, help="JSON indentation (default: 2)")
    parser.add_argument("--no-prescan", action="store_true", help="Skip the separate record counting pass")
    parser.add_argument("-q", "--quiet", action="store_true", help="Hide the progress bar")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return parser.parse_args(argv)


def default_output(input_path: Path) -> Path:
    base = input_path.with_suffix("") if input_path.suffix.lower() in COMPANION_EXTS else input_path
    return base.with_name(f"{base.name}.geojson")


def build_settings(args: argparse.Namespace) -> ConverterSettings:
    """Environment settings overridden by explicit command-line flags."""
    overrides = {
        "max_workers": args.workers,
        "pairing": args.pairing,
        "encoding": args.encoding,
        "indent": args.indent,
    }
    if args.no_prescan:
        overrides["prescan"] = False
    return ConverterSettings(**{k: v for k, v in overrides.items() if v is not None})


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logging.captureWarnings(True)

    output = args.output or default_output(args.input)

    try:
        settings = build_settings(args)
        counts = prescan(args.input) if settings.prescan else None
        with tqdm(total=counts.total if counts else None, desc="Converting", disable=args.quiet) as pbar:
            report = convert_shapefile_to_geojson(
                args.input,
                output,
                settings=settings,
                progress=pbar,
                counts=counts,
            )
    except ValidationError as exc:
        print(f"Invalid settings: {exc}", file=sys.stderr)
        return 2
    except ConversionError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    logger.debug("Conversion report: %s", report.model_dump())

    print(f"Done: {report.feature_count} features ({report.skipped_count} skipped)")
    print(f"GeoJSON file has been created: {report.output_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
