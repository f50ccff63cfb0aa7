"""End-to-end shapefile to GeoJSON conversion."""

from __future__ import annotations

import logging
from pathlib import Path

from .assembler import assemble, serialize, write_output
from .config import ConverterSettings
from .counter import RecordCounts, check_counts, count_records
from .dispatcher import ProgressSink, dispatch
from .models import ConversionReport, FeatureCollection
from .source import GeometrySource, PairingPolicy, resolve_paths

logger = logging.getLogger(__name__)


def prescan(input_path: str | Path) -> RecordCounts:
    """Count both files and warn if they disagree. Useful for sizing progress output."""
    counts = count_records(resolve_paths(input_path))
    check_counts(counts)
    return counts


def convert_to_collection(
    input_path: str | Path,
    *,
    settings: ConverterSettings | None = None,
    progress: ProgressSink | None = None,
    counts: RecordCounts | None = None,
) -> tuple[FeatureCollection, ConversionReport]:
    """Read a shapefile dataset and convert it into an in-memory FeatureCollection.

    Args:
        input_path: Path stem of the dataset, with or without a component extension.
        settings: Conversion settings; defaults are read from the environment.
        progress: Optional sink receiving one increment per processed record.
        counts: Counts from an earlier :func:`prescan`, to avoid scanning twice.
    """
    settings = settings or ConverterSettings()

    with GeometrySource(input_path, encoding=settings.encoding) as source:
        logger.info("Reading %s (%s, encoding %s)", source.paths.shp, source.shape_type_name, source.encoding)
        if counts is None and settings.prescan:
            counts = count_records(source.paths)
            check_counts(counts)

        result = dispatch(source.pairs(settings.pairing), max_workers=settings.max_workers, progress=progress)

        if counts is None:
            counts = RecordCounts(shapes=source.shape_count or 0, records=source.record_count or 0)
            # strict pairing already raised on a mismatch
            if settings.pairing is not PairingPolicy.STRICT:
                check_counts(counts)
        crs_epsg, crs_name = source.crs()

    collection = assemble(result.features)
    report = ConversionReport(
        shape_count=counts.shapes,
        record_count=counts.records,
        paired_count=result.paired,
        feature_count=len(result.features),
        skipped_count=result.skipped,
        decode_warnings=result.decode_warnings,
        crs_epsg=crs_epsg,
        crs_name=crs_name,
    )
    return collection, report


def convert_shapefile_to_geojson(
    input_path: str | Path,
    output_path: str | Path,
    *,
    settings: ConverterSettings | None = None,
    progress: ProgressSink | None = None,
    counts: RecordCounts | None = None,
) -> ConversionReport:
    """Convert a shapefile dataset into a pretty-printed GeoJSON file."""
    settings = settings or ConverterSettings()
    collection, report = convert_to_collection(input_path, settings=settings, progress=progress, counts=counts)
    written = write_output(serialize(collection, indent=settings.indent), output_path)
    return report.model_copy(update={"output_path": str(written)})
