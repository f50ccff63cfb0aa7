"""Shapefile reader that pairs .shp geometry with .dbf attributes positionally."""

from __future__ import annotations

import codecs
import logging
import struct
from collections.abc import Iterator
from datetime import date
from enum import Enum
from itertools import zip_longest
from pathlib import Path
from typing import Any, BinaryIO

import shapefile
from pydantic import BaseModel
from pyproj import CRS
from pyproj.exceptions import CRSError

from .errors import InputCorrupt, InputNotFound, RecordCountMismatch
from .models import (
    AttributeRecord,
    CharacterValue,
    DateValue,
    LogicalValue,
    NumericValue,
    OtherValue,
    PointShape,
    PolygonShape,
    PolylineShape,
    Ring,
    Shape,
    TypedValue,
    UnsupportedShape,
)

logger = logging.getLogger(__name__)

COMPANION_EXTS = {".shp", ".shx", ".dbf", ".prj", ".cpg"}
DEFAULT_ENCODING = "utf-8"

# Errors pyshp surfaces for truncated or malformed files
READ_ERRORS = (shapefile.ShapefileException, struct.error, KeyError, ValueError, IndexError)


class PairingPolicy(str, Enum):
    """What to do when the .shp and .dbf hold different numbers of entries."""

    TRUNCATE = "truncate"
    PAD = "pad"
    STRICT = "strict"


class DatasetPaths(BaseModel):
    """Component files of one shapefile dataset."""

    shp: Path
    dbf: Path
    prj: Path | None = None
    cpg: Path | None = None


def resolve_paths(stem: str | Path) -> DatasetPaths:
    """Resolve the component files for a path stem.

    The stem may already carry a component extension (``roads.shp``), which
    is stripped. Lower-case extensions are preferred, upper-case ones are
    accepted as a fallback.
    """
    base = Path(stem)
    if base.suffix.lower() in COMPANION_EXTS:
        base = base.with_suffix("")

    def component(ext: str) -> Path | None:
        for candidate in (ext, ext.upper()):
            path = base.with_name(f"{base.name}.{candidate}")
            if path.exists():
                return path
        return None

    return DatasetPaths(
        shp=component("shp") or base.with_name(f"{base.name}.shp"),
        dbf=component("dbf") or base.with_name(f"{base.name}.dbf"),
        prj=component("prj"),
        cpg=component("cpg"),
    )


def detect_crs(prj_source: str | Path | None) -> tuple[int | None, str | None]:
    """Parse CRS from a .prj WKT string or file path.

    Returns (epsg_code, crs_name) or (None, None) on failure. Informational
    only; coordinates are never reprojected.
    """
    if prj_source is None:
        return None, None

    wkt = prj_source if isinstance(prj_source, str) else ""
    if isinstance(prj_source, Path):
        if not prj_source.exists():
            return None, None
        wkt = prj_source.read_text(errors="replace")

    if not wkt.strip():
        return None, None

    try:
        crs = CRS.from_wkt(wkt)
    except CRSError:
        logger.warning("Could not parse projection WKT")
        return None, None

    return crs.to_epsg(), crs.name


def read_cpg(cpg_path: Path | None) -> str | None:
    """Return the Python codec named by a .cpg sidecar, if it names a known one."""
    if cpg_path is None:
        return None
    name = cpg_path.read_text(errors="replace").strip()
    if not name:
        return None
    if name.isdigit():
        # ArcGIS writes bare code page numbers, e.g. "1252" or "932"
        name = f"cp{name}"
    try:
        return codecs.lookup(name).name
    except LookupError:
        logger.warning("Unknown code page %r in %s, falling back to %s", name, cpg_path, DEFAULT_ENCODING)
        return None


def _split_parts(shape: shapefile.Shape) -> tuple[tuple[tuple[float, float], ...], ...]:
    """Split a multi-part shape's flat point list at its part start indices."""
    part_starts = list(shape.parts)
    parts = []
    for part_idx, start in enumerate(part_starts):
        end = part_starts[part_idx + 1] if part_idx + 1 < len(part_starts) else len(shape.points)
        parts.append(tuple((float(p[0]), float(p[1])) for p in shape.points[start:end]))
    return tuple(parts)


def _ring_kind(points: tuple[tuple[float, float], ...]) -> str:
    # Shapefile outer rings run clockwise; too few points to tell means outer
    if len(points) < 3:
        return "outer"
    return "outer" if shapefile.is_cw(points) else "inner"


def to_shape(shape: shapefile.Shape) -> Shape:
    """Convert a pyshp shape into a Shape model."""
    shape_type = shape.shapeType
    if shape_type == shapefile.POINT and shape.points:
        x, y = shape.points[0][:2]
        return PointShape(x=x, y=y)
    if shape_type == shapefile.POLYLINE:
        return PolylineShape(parts=_split_parts(shape))
    if shape_type == shapefile.POLYGON:
        return PolygonShape(
            rings=tuple(Ring(kind=_ring_kind(points), points=points) for points in _split_parts(shape))
        )
    return UnsupportedShape(shape_type=shapefile.SHAPETYPE_LOOKUP.get(shape_type, str(shape_type)))


def to_typed_value(field_type: str, value: Any) -> TypedValue:
    """Tag a pyshp record value with the dBASE type of its field."""
    if field_type in ("N", "F"):
        if value is None:
            return NumericValue()
        try:
            return NumericValue(value=float(value))
        except (TypeError, ValueError):
            return OtherValue(display=str(value))
    if field_type == "C":
        return CharacterValue(value=str(value) if value else None)
    if field_type == "L" and (value is None or isinstance(value, bool)):
        return LogicalValue(value=value)
    if field_type == "D" and (value is None or isinstance(value, date)):
        return DateValue(value=value)
    return OtherValue(display="" if value is None else str(value))


def null_value(field_type: str) -> TypedValue:
    """The empty cell of a field type, used to pad missing records."""
    return to_typed_value(field_type, None)


class GeometrySource:
    """Open a shapefile dataset and read it as (Shape, AttributeRecord) pairs.

    Usage::

        with GeometrySource("data/roads") as source:
            for shape, record in source.pairs():
                ...
    """

    def __init__(self, stem: str | Path, encoding: str | None = None):
        self.paths = resolve_paths(stem)
        self.encoding = encoding or read_cpg(self.paths.cpg) or DEFAULT_ENCODING
        self.shape_count: int | None = None
        self.record_count: int | None = None
        self._files: list[BinaryIO] = []
        shp = self._open(self.paths.shp)
        dbf = self._open(self.paths.dbf)
        try:
            self._reader = shapefile.Reader(shp=shp, dbf=dbf, encoding=self.encoding, encodingErrors="replace")
        except READ_ERRORS as exc:
            self.close()
            raise InputCorrupt(f"Failed to read shapefile headers for '{self.paths.shp.with_suffix('')}': {exc}") from exc
        self.fields: list[tuple[str, str]] = [(f[0], f[1]) for f in self._reader.fields[1:]]  # skip DeletionFlag

    def _open(self, path: Path) -> BinaryIO:
        if not path.is_file():
            self.close()
            raise InputNotFound(f"File not found: {path}")
        handle = open(path, "rb")
        self._files.append(handle)
        return handle

    def __enter__(self) -> GeometrySource:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    def close(self) -> None:
        while self._files:
            self._files.pop().close()

    @property
    def shape_type_name(self) -> str:
        return self._reader.shapeTypeName

    @property
    def field_names(self) -> list[str]:
        return [name for name, _ in self.fields]

    def crs(self) -> tuple[int | None, str | None]:
        return detect_crs(self.paths.prj)

    def shapes(self) -> Iterator[Shape]:
        """Lazily read every shape from the .shp file."""
        try:
            for shape in self._reader.iterShapes():
                yield to_shape(shape)
        except READ_ERRORS as exc:
            raise InputCorrupt(f"Failed to read shape from {self.paths.shp}: {exc}") from exc

    def records(self) -> Iterator[AttributeRecord]:
        """Lazily read every row position of the .dbf file.

        A row flagged deleted keeps its position and comes back as an empty
        record, so later rows stay aligned with their shapes.
        """
        try:
            for position in range(len(self._reader)):
                row = self._reader.record(position)
                if row is None:
                    logger.info("Row %d of %s is flagged deleted, its attributes are left empty", position, self.paths.dbf)
                    yield self.empty_record(position)
                    continue
                values = {name: to_typed_value(field_type, value) for (name, field_type), value in zip(self.fields, row)}
                yield AttributeRecord(position=position, values=values)
        except READ_ERRORS as exc:
            raise InputCorrupt(f"Failed to read record from {self.paths.dbf}: {exc}") from exc

    def empty_record(self, position: int) -> AttributeRecord:
        return AttributeRecord(
            position=position,
            values={name: null_value(field_type) for name, field_type in self.fields},
        )

    def pairs(self, policy: PairingPolicy = PairingPolicy.TRUNCATE) -> Iterator[tuple[Shape, AttributeRecord]]:
        """Yield the Nth shape with the Nth record, once.

        - ``truncate``: stop pairing at the shorter file.
        - ``pad``: pair every shape; missing records become all-empty ones.
        - ``strict``: like truncate, then raise RecordCountMismatch at the end
          if the counts differ.

        Unpaired leftovers are always read so both counts are known afterwards.
        """
        shape_count = record_count = 0
        for shape, record in zip_longest(self.shapes(), self.records()):
            if shape is not None:
                shape_count += 1
            if record is not None:
                record_count += 1
            if shape is None:
                continue
            if record is None:
                if policy is not PairingPolicy.PAD:
                    continue
                record = self.empty_record(shape_count - 1)
            yield shape, record

        self.shape_count = shape_count
        self.record_count = record_count
        if shape_count == record_count:
            return
        if policy is PairingPolicy.STRICT:
            raise RecordCountMismatch(shape_count, record_count)
        if policy is PairingPolicy.PAD and shape_count > record_count:
            logger.info("Padded %d shapes without attributes", shape_count - record_count)
        else:
            logger.info("Dropped %d unpaired entries", abs(shape_count - record_count))
