"""FastAPI server for shapefile to GeoJSON conversion."""

from __future__ import annotations

import io
import logging
import tempfile
import zipfile
from pathlib import Path

from fastapi import FastAPI, HTTPException, Query, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import Response

from .assembler import serialize
from .config import ConverterSettings
from .errors import ConversionError, InputCorrupt, InputNotFound, RecordCountMismatch
from .pipeline import convert_to_collection
from .source import COMPANION_EXTS, PairingPolicy

logger = logging.getLogger(__name__)

app = FastAPI(title="shp2geojson", version="0.1.0")

GEOJSON_MEDIA_TYPE = "application/geo+json"
DATASET_NAME = "upload"


@app.post("/convert")
async def convert(
    files: list[UploadFile],
    pairing: PairingPolicy = Query(PairingPolicy.TRUNCATE),
    workers: int | None = Query(None, ge=1),
):
    """Convert an uploaded shapefile and return it as a GeoJSON FeatureCollection.

    Accepts:
    - A single .zip containing shapefile components
    - Multiple files (.shp and .dbf, optionally .shx, .prj and .cpg)
    """
    filename = (files[0].filename or "").lower() if len(files) == 1 else ""

    with tempfile.TemporaryDirectory() as tmp:
        tmp_dir = Path(tmp)
        if filename.endswith(".zip"):
            stem = await _handle_zip(files[0], tmp_dir)
        else:
            stem = await _handle_multi_file(files, tmp_dir)

        settings = ConverterSettings(pairing=pairing, max_workers=workers)
        try:
            collection, report = await run_in_threadpool(convert_to_collection, stem, settings=settings)
        except InputNotFound as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except (InputCorrupt, RecordCountMismatch) as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc
        except ConversionError as exc:
            logger.error("Conversion failed: %s", exc)
            raise HTTPException(status_code=500, detail=str(exc)) from exc

    logger.info("Converted upload: %d features, %d skipped", report.feature_count, report.skipped_count)
    headers = {"X-Feature-Count": str(report.feature_count)}
    if report.crs_epsg is not None:
        headers["X-Source-EPSG"] = str(report.crs_epsg)
    return Response(content=serialize(collection, indent=settings.indent), media_type=GEOJSON_MEDIA_TYPE, headers=headers)


async def _handle_zip(upload: UploadFile, tmp_dir: Path) -> Path:
    """Extract a zip archive and return the stem of the first shapefile in it."""
    content = await upload.read()
    try:
        with zipfile.ZipFile(io.BytesIO(content)) as zf:
            zf.extractall(tmp_dir)
    except zipfile.BadZipFile as exc:
        raise HTTPException(status_code=400, detail="Upload is not a valid zip archive") from exc

    shp_files = sorted(p for p in tmp_dir.rglob("*") if p.suffix.lower() == ".shp")
    if not shp_files:
        raise HTTPException(status_code=400, detail="No .shp file found in zip archive")
    return shp_files[0].with_suffix("")


async def _handle_multi_file(files: list[UploadFile], tmp_dir: Path) -> Path:
    """Store uploaded component files under one stem and return it."""
    stem = tmp_dir / DATASET_NAME
    seen: set[str] = set()
    for f in files:
        ext = Path(f.filename or "").suffix.lower()
        if ext in COMPANION_EXTS:
            stem.with_name(f"{DATASET_NAME}{ext}").write_bytes(await f.read())
            seen.add(ext)

    for required in (".shp", ".dbf"):
        if required not in seen:
            raise HTTPException(status_code=400, detail=f"Missing required {required} file")
    return stem
