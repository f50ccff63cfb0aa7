"""Wrap converted features into a FeatureCollection and write it out."""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic_core import PydanticSerializationError

from .errors import OutputWriteFailure, SerializationFailure
from .models import Feature, FeatureCollection

logger = logging.getLogger(__name__)


def assemble(features: list[Feature]) -> FeatureCollection:
    """Build the output document: no bounding box, no foreign members."""
    return FeatureCollection(bbox=None, features=features)


def serialize(collection: FeatureCollection, indent: int | None = 2) -> str:
    """Encode the collection as (pretty-printed) GeoJSON text."""
    try:
        return collection.model_dump_json(indent=indent)
    except PydanticSerializationError as exc:
        raise SerializationFailure(f"Failed to encode feature collection: {exc}") from exc


def write_output(text: str, output_path: str | Path) -> Path:
    output_path = Path(output_path)
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(text, encoding="utf-8")
    except OSError as exc:
        raise OutputWriteFailure(f"Failed to write {output_path}: {exc}") from exc
    logger.info("Wrote %d bytes to %s", len(text.encode("utf-8")), output_path)
    return output_path
