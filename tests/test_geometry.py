"""Tests for mapping shapes onto GeoJSON geometries."""

import pytest

from shp2geojson.errors import GeometryTypeMismatch
from shp2geojson.geometry import map_geometry, point_geometry, polygon_geometry, polyline_geometry
from shp2geojson.models import PointShape, PolygonShape, PolylineShape, Ring, UnsupportedShape


class TestMapGeometry:
    def test_point(self):
        geometry = map_geometry(PointShape(x=139.69, y=35.68))
        assert geometry.type == "Point"
        assert geometry.coordinates == [139.69, 35.68]

    def test_polyline_parts_preserved(self):
        parts = (((0.0, 0.0), (1.0, 1.0), (2.0, 1.0)), ((5.0, 5.0), (6.0, 7.0)))
        geometry = map_geometry(PolylineShape(parts=parts))
        assert geometry.type == "MultiLineString"
        assert geometry.coordinates == [[[0.0, 0.0], [1.0, 1.0], [2.0, 1.0]], [[5.0, 5.0], [6.0, 7.0]]]

    def test_polygon_rings_flattened_in_file_order(self):
        # An inner ring first stays first: no reordering or rewinding
        inner = Ring(kind="inner", points=((2.0, 2.0), (4.0, 2.0), (4.0, 4.0), (2.0, 2.0)))
        outer = Ring(kind="outer", points=((0.0, 0.0), (0.0, 10.0), (10.0, 10.0), (0.0, 0.0)))
        geometry = map_geometry(PolygonShape(rings=(inner, outer)))
        assert geometry.type == "Polygon"
        assert geometry.coordinates == [
            [[2.0, 2.0], [4.0, 2.0], [4.0, 4.0], [2.0, 2.0]],
            [[0.0, 0.0], [0.0, 10.0], [10.0, 10.0], [0.0, 0.0]],
        ]

    def test_unsupported_returns_none(self):
        assert map_geometry(UnsupportedShape(shape_type="MULTIPOINT")) is None

    def test_serializes_without_extra_members(self):
        geometry = map_geometry(PointShape(x=1.0, y=2.0))
        assert geometry.model_dump() == {"type": "Point", "coordinates": [1.0, 2.0]}


class TestKindMismatch:
    @pytest.mark.parametrize(
        "helper",
        [polyline_geometry, polygon_geometry],
    )
    def test_point_into_other_helpers(self, helper):
        with pytest.raises(GeometryTypeMismatch):
            helper(PointShape(x=0.0, y=0.0))

    def test_polyline_into_point_helper(self):
        with pytest.raises(GeometryTypeMismatch, match="Expected point shape"):
            point_geometry(PolylineShape(parts=()))
