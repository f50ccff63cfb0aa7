"""Exceptions and warnings raised during a shapefile conversion."""


class ConversionError(Exception):
    """Base class for every fatal conversion error."""


class InputNotFound(ConversionError):
    """A required component file (.shp or .dbf) does not exist."""


class InputCorrupt(ConversionError):
    """A component file exists but its header cannot be parsed."""


class RecordCountMismatch(ConversionError):
    """Geometry and attribute files hold different numbers of entries.

    Logged as a warning on every conversion under the default pairing
    policies and raised under ``strict`` pairing.
    """

    def __init__(self, shapes: int, records: int):
        self.shapes = shapes
        self.records = records
        super().__init__(
            f"SHP data ({shapes} records) and DBF data ({records} records) "
            "have different numbers of elements"
        )


class GeometryTypeMismatch(ConversionError):
    """A geometry helper was handed a shape of the wrong kind."""


class SerializationFailure(ConversionError):
    """A feature or the final document could not be encoded as JSON."""


class OutputWriteFailure(ConversionError):
    """The output document could not be written to disk."""


class AttributeDecodeWarning(UserWarning):
    """An attribute cell could not be normalized and was kept as text."""
