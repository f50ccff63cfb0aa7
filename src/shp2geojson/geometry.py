"""Map decoded shapefile shapes onto GeoJSON geometries."""

from __future__ import annotations

from .errors import GeometryTypeMismatch
from .models import (
    Geometry,
    MultiLineStringGeometry,
    PointGeometry,
    PointShape,
    PolygonGeometry,
    PolygonShape,
    PolylineShape,
    Shape,
)


def point_geometry(shape: Shape) -> PointGeometry:
    if not isinstance(shape, PointShape):
        raise GeometryTypeMismatch(f"Expected point shape, got {shape.kind}")
    return PointGeometry(coordinates=[shape.x, shape.y])


def polyline_geometry(shape: Shape) -> MultiLineStringGeometry:
    """Each polyline part becomes one line string, in file order."""
    if not isinstance(shape, PolylineShape):
        raise GeometryTypeMismatch(f"Expected polyline shape, got {shape.kind}")
    return MultiLineStringGeometry(
        coordinates=[[[x, y] for x, y in part] for part in shape.parts]
    )


def polygon_geometry(shape: Shape) -> PolygonGeometry:
    """Flatten outer and inner rings positionally.

    Rings keep their file order and winding; no hole assignment or
    right-hand-rule correction is applied, so a multi-part shapefile
    polygon becomes a single GeoJSON polygon whose first ring is
    whatever came first in the file.
    """
    if not isinstance(shape, PolygonShape):
        raise GeometryTypeMismatch(f"Expected polygon shape, got {shape.kind}")
    return PolygonGeometry(
        coordinates=[[[x, y] for x, y in ring.points] for ring in shape.rings]
    )


_MAPPERS = {
    "point": point_geometry,
    "polyline": polyline_geometry,
    "polygon": polygon_geometry,
}


def map_geometry(shape: Shape) -> Geometry | None:
    """Return the GeoJSON geometry for ``shape``, or None if its kind is unsupported."""
    mapper = _MAPPERS.get(shape.kind)
    if mapper is None:
        return None
    return mapper(shape)
