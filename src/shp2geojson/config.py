"""Converter settings, read from ``SHP2GEOJSON_*`` environment variables or a .env file."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .source import PairingPolicy


class ConverterSettings(BaseSettings):
    """
    Tunables for a conversion run.

    Maps environment variables with prefix "SHP2GEOJSON_":
    - SHP2GEOJSON_MAX_WORKERS → max_workers
    - SHP2GEOJSON_PAIRING → pairing
    - SHP2GEOJSON_ENCODING → encoding
    - SHP2GEOJSON_INDENT → indent
    - SHP2GEOJSON_PRESCAN → prescan

    Attributes:
        max_workers: Worker threads (default: number of CPUs)
        pairing: Policy when .shp and .dbf counts differ (default: truncate)
        encoding: .dbf text encoding (default: from .cpg, else UTF-8)
        indent: JSON indentation of the output document (default: 2)
        prescan: Count both files in a separate pass before converting
    """

    max_workers: int | None = Field(None, ge=1, description="Worker threads (None = CPU count)")
    pairing: PairingPolicy = Field(PairingPolicy.TRUNCATE, description="Pairing policy for mismatched counts")
    encoding: str | None = Field(None, description=".dbf text encoding")
    indent: int | None = Field(2, ge=0, description="Output JSON indentation (None = compact)")
    prescan: bool = Field(True, description="Count records in a separate pass before converting")

    model_config = SettingsConfigDict(
        env_prefix="SHP2GEOJSON_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )
