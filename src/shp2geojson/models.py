"""Pydantic data models for the shapefile-to-GeoJSON converter."""

from __future__ import annotations

from datetime import date
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field

Coordinate = tuple[float, float]
Scalar = Union[float, str, None]


# --- Shapes read from the .shp file ---------------------------------------


class PointShape(BaseModel):
    """A single 2D point."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["point"] = "point"
    x: float
    y: float


class PolylineShape(BaseModel):
    """One or more connected line parts."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["polyline"] = "polyline"
    parts: tuple[tuple[Coordinate, ...], ...]


class Ring(BaseModel):
    """A closed polygon ring, tagged outer (clockwise) or inner."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["outer", "inner"]
    points: tuple[Coordinate, ...]


class PolygonShape(BaseModel):
    """Polygon rings in file order."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["polygon"] = "polygon"
    rings: tuple[Ring, ...]


class UnsupportedShape(BaseModel):
    """Any shape kind the converter does not map (null, multipoint, Z/M, ...)."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["unsupported"] = "unsupported"
    shape_type: str


Shape = Annotated[
    Union[PointShape, PolylineShape, PolygonShape, UnsupportedShape],
    Field(discriminator="kind"),
]


# --- Typed attribute cells read from the .dbf file ------------------------


class NumericValue(BaseModel):
    """dBASE N or F cell."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["numeric"] = "numeric"
    value: float | None = None

    def __str__(self) -> str:
        return "" if self.value is None else str(self.value)


class CharacterValue(BaseModel):
    """dBASE C cell. Blank text is stored as ``None``."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["character"] = "character"
    value: str | None = None

    def __str__(self) -> str:
        return self.value or ""


class LogicalValue(BaseModel):
    """dBASE L cell."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["logical"] = "logical"
    value: bool | None = None

    def __str__(self) -> str:
        if self.value is None:
            return ""
        return "true" if self.value else "false"


class DateValue(BaseModel):
    """dBASE D cell."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["date"] = "date"
    value: date | None = None

    def __str__(self) -> str:
        return "" if self.value is None else self.value.isoformat()


class OtherValue(BaseModel):
    """Memo cells and anything else, kept only as display text."""

    model_config = ConfigDict(frozen=True)

    kind: Literal["other"] = "other"
    display: str = ""

    def __str__(self) -> str:
        return self.display


TypedValue = Annotated[
    Union[NumericValue, CharacterValue, LogicalValue, DateValue, OtherValue],
    Field(discriminator="kind"),
]


class AttributeRecord(BaseModel):
    """Named, typed field values of one .dbf row."""

    position: int
    values: dict[str, TypedValue]


# --- GeoJSON output -------------------------------------------------------


class PointGeometry(BaseModel):
    type: Literal["Point"] = "Point"
    coordinates: list[float]


class MultiLineStringGeometry(BaseModel):
    type: Literal["MultiLineString"] = "MultiLineString"
    coordinates: list[list[list[float]]]


class PolygonGeometry(BaseModel):
    type: Literal["Polygon"] = "Polygon"
    coordinates: list[list[list[float]]]


Geometry = Annotated[
    Union[PointGeometry, MultiLineStringGeometry, PolygonGeometry],
    Field(discriminator="type"),
]


class Feature(BaseModel):
    """One geometry paired with its decoded properties. Carries no ``id``."""

    type: Literal["Feature"] = "Feature"
    geometry: Geometry | None = None
    properties: dict[str, Scalar]


class FeatureCollection(BaseModel):
    """Top-level output document."""

    type: Literal["FeatureCollection"] = "FeatureCollection"
    bbox: list[float] | None = None
    features: list[Feature]


class ConversionReport(BaseModel):
    """Summary of a finished conversion run."""

    shape_count: int
    record_count: int
    paired_count: int
    feature_count: int
    skipped_count: int
    decode_warnings: int = 0
    output_path: str | None = None
    crs_epsg: int | None = None
    crs_name: str | None = None
