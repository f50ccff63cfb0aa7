import shutil
import struct
from datetime import date
from pathlib import Path

import pytest
import shapefile
from httpx import ASGITransport, AsyncClient
from pyproj import CRS

from shp2geojson.server import app

# Outer ring clockwise, hole counter-clockwise (shapefile convention)
OUTER_RING = [[0.0, 0.0], [0.0, 10.0], [10.0, 10.0], [10.0, 0.0], [0.0, 0.0]]
INNER_RING = [[2.0, 2.0], [4.0, 2.0], [4.0, 4.0], [2.0, 4.0], [2.0, 2.0]]


def write_points(stem: Path, names: list[str]) -> Path:
    """Write a POINT shapefile with one ``name`` field; point i sits at (i, i * 10)."""
    with shapefile.Writer(str(stem), shapeType=shapefile.POINT) as w:
        w.field("name", "C", size=20)
        for i, name in enumerate(names):
            w.point(float(i), float(i * 10))
            w.record(name)
    return stem


def mark_deleted(stem: Path, row: int) -> None:
    """Set the deletion flag of one .dbf row to ``*``, as dBASE does on delete."""
    dbf = stem.with_suffix(".dbf")
    data = bytearray(dbf.read_bytes())
    header_length, record_length = struct.unpack("<HH", data[8:12])
    data[header_length + row * record_length] = ord("*")
    dbf.write_bytes(bytes(data))


@pytest.fixture
def point_dataset(tmp_path):
    return write_points(tmp_path / "cities", ["A", "B", "C"])


@pytest.fixture
def polyline_dataset(tmp_path):
    stem = tmp_path / "roads"
    with shapefile.Writer(str(stem), shapeType=shapefile.POLYLINE) as w:
        w.field("road", "C", size=20)
        w.line([[[0.0, 0.0], [1.0, 1.0], [2.0, 1.0]], [[5.0, 5.0], [6.0, 7.0]]])
        w.record("Main St")
        w.line([[[10.0, 10.0], [11.0, 12.0]]])
        w.record("Side St")
    return stem


@pytest.fixture
def polygon_dataset(tmp_path):
    stem = tmp_path / "parcels"
    with shapefile.Writer(str(stem), shapeType=shapefile.POLYGON) as w:
        w.field("parcel", "N", size=10, decimal=0)
        w.poly([OUTER_RING, INNER_RING])
        w.record(42)
    return stem


@pytest.fixture
def mixed_dataset(tmp_path):
    """Points interleaved with null shapes, which are not converted."""
    stem = tmp_path / "mixed"
    with shapefile.Writer(str(stem), shapeType=shapefile.POINT) as w:
        w.field("name", "C", size=20)
        w.point(1.0, 2.0)
        w.record("kept-1")
        w.null()
        w.record("dropped")
        w.point(3.0, 4.0)
        w.record("kept-2")
    return stem


@pytest.fixture
def typed_dataset(tmp_path):
    stem = tmp_path / "typed"
    with shapefile.Writer(str(stem), shapeType=shapefile.POINT) as w:
        w.field("city", "C", size=20)
        w.field("pop", "N", size=12, decimal=2)
        w.field("rank", "N", size=5, decimal=0)
        w.field("active", "L")
        w.field("founded", "D")
        w.point(139.69, 35.68)
        w.record("Tokyo", 3.14, -2, True, date(1868, 9, 3))
        w.point(135.50, 34.69)
        w.record("", None, None, None, None)
    return stem


@pytest.fixture
def mismatch_dataset(tmp_path):
    """10 shapes in the .shp but only 9 rows in the .dbf."""
    stem = write_points(tmp_path / "ten", [f"n{i}" for i in range(10)])
    nine = write_points(tmp_path / "nine", [f"n{i}" for i in range(9)])
    shutil.copyfile(nine.with_suffix(".dbf"), stem.with_suffix(".dbf"))
    return stem


@pytest.fixture
def prj_dataset(point_dataset):
    point_dataset.with_suffix(".prj").write_text(CRS.from_epsg(4326).to_wkt())
    return point_dataset


@pytest.fixture
def deleted_row_dataset(tmp_path):
    """Points A, B, C whose middle .dbf row is flagged deleted."""
    stem = write_points(tmp_path / "pruned", ["A", "B", "C"])
    mark_deleted(stem, 1)
    return stem


@pytest.fixture
def client():
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


def upload(path: Path) -> tuple[str, bytes, str]:
    """Return a (filename, content, content_type) tuple for upload."""
    return (path.name, path.read_bytes(), "application/octet-stream")
