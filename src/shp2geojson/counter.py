"""Independent record counting of the .shp and .dbf files."""

from __future__ import annotations

import logging

import shapefile
from pydantic import BaseModel

from .errors import InputCorrupt, InputNotFound, RecordCountMismatch
from .source import READ_ERRORS, DatasetPaths

logger = logging.getLogger(__name__)


class RecordCounts(BaseModel):
    """Number of shapes and attribute row positions in a dataset."""

    shapes: int
    records: int

    @property
    def matched(self) -> bool:
        return self.shapes == self.records

    @property
    def total(self) -> int:
        """Units of work a progress display should expect."""
        return self.shapes


def count_records(paths: DatasetPaths) -> RecordCounts:
    """Scan both files in full and count their entries.

    Each file is read with its own reader, so a damaged or short companion
    file cannot affect the other count.
    """
    for path in (paths.shp, paths.dbf):
        if not path.is_file():
            raise InputNotFound(f"File not found: {path}")

    try:
        with open(paths.shp, "rb") as shp:
            shapes = sum(1 for _ in shapefile.Reader(shp=shp).iterShapes())
        with open(paths.dbf, "rb") as dbf:
            reader = shapefile.Reader(dbf=dbf, encodingErrors="replace")
            # every row position counts, deleted rows included, so the count
            # matches how rows are paired with shapes
            records = 0
            for position in range(len(reader)):
                reader.record(position)
                records += 1
    except READ_ERRORS as exc:
        raise InputCorrupt(f"Failed to count records in '{paths.shp.with_suffix('')}': {exc}") from exc

    return RecordCounts(shapes=shapes, records=records)


def check_counts(counts: RecordCounts) -> bool:
    """Log a warning (never fail) when the two files disagree. Returns True when they match."""
    if not counts.matched:
        logger.warning("Warning: %s", RecordCountMismatch(counts.shapes, counts.records))
        return False
    logger.info("SHP and DBF data have the same number of elements: %d records", counts.shapes)
    return True
