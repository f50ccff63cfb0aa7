"""Shapefile (.shp + .dbf) to GeoJSON FeatureCollection converter."""

from .assembler import assemble, serialize, write_output
from .attributes import decode_attribute, decode_record
from .config import ConverterSettings
from .counter import RecordCounts, check_counts, count_records
from .dispatcher import dispatch
from .geometry import map_geometry
from .models import ConversionReport, Feature, FeatureCollection
from .pipeline import convert_shapefile_to_geojson, convert_to_collection
from .source import GeometrySource, PairingPolicy, detect_crs, resolve_paths

__all__ = [
    "ConversionReport",
    "ConverterSettings",
    "Feature",
    "FeatureCollection",
    "GeometrySource",
    "PairingPolicy",
    "RecordCounts",
    "assemble",
    "check_counts",
    "convert_shapefile_to_geojson",
    "convert_to_collection",
    "count_records",
    "decode_attribute",
    "decode_record",
    "detect_crs",
    "dispatch",
    "map_geometry",
    "resolve_paths",
    "serialize",
    "write_output",
]
