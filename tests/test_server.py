"""Tests for the FastAPI server endpoint."""

import io
import zipfile
from pathlib import Path

import pytest

from shp2geojson import server
from shp2geojson.errors import SerializationFailure

from conftest import upload


def _components(stem: Path, exts=(".shp", ".shx", ".dbf")):
    return [("files", upload(stem.with_suffix(ext))) for ext in exts]


@pytest.mark.asyncio
class TestConvertUpload:
    async def test_multi_file(self, client, point_dataset):
        resp = await client.post("/convert", files=_components(point_dataset))
        assert resp.status_code == 200
        assert resp.headers["content-type"].startswith("application/geo+json")
        assert resp.headers["x-feature-count"] == "3"
        data = resp.json()
        assert data["type"] == "FeatureCollection"
        assert [f["properties"]["name"] for f in data["features"]] == ["A", "B", "C"]

    async def test_prj_reported(self, client, prj_dataset):
        resp = await client.post("/convert", files=_components(prj_dataset, (".shp", ".dbf", ".prj")))
        assert resp.status_code == 200
        assert resp.headers["x-source-epsg"] == "4326"

    async def test_zipupload(self, client, polyline_dataset):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            for ext in (".shp", ".shx", ".dbf"):
                p = polyline_dataset.with_suffix(ext)
                zf.writestr(f"data/{p.name}", p.read_bytes())
        files = [("files", ("archive.zip", buf.getvalue(), "application/zip"))]
        resp = await client.post("/convert", files=files)
        assert resp.status_code == 200
        assert len(resp.json()["features"]) == 2

    async def test_missing_dbf_returns_400(self, client, point_dataset):
        resp = await client.post("/convert", files=_components(point_dataset, (".shp",)))
        assert resp.status_code == 400

    async def test_zip_without_shp_returns_400(self, client):
        buf = io.BytesIO()
        with zipfile.ZipFile(buf, "w") as zf:
            zf.writestr("readme.txt", "nothing here")
        files = [("files", ("archive.zip", buf.getvalue(), "application/zip"))]
        resp = await client.post("/convert", files=files)
        assert resp.status_code == 400

    async def test_corrupt_returns_422(self, client, point_dataset):
        files = [
            ("files", ("bad.shp", b"garbage", "application/octet-stream")),
            ("files", upload(point_dataset.with_suffix(".dbf"))),
        ]
        resp = await client.post("/convert", files=files)
        assert resp.status_code == 422

    async def test_strict_mismatch_returns_422(self, client, mismatch_dataset):
        resp = await client.post("/convert?pairing=strict", files=_components(mismatch_dataset))
        assert resp.status_code == 422
        assert "different numbers" in resp.json()["detail"]

    async def test_pad_pairing(self, client, mismatch_dataset):
        resp = await client.post("/convert?pairing=pad&workers=2", files=_components(mismatch_dataset))
        assert resp.status_code == 200
        assert len(resp.json()["features"]) == 10

    async def test_other_conversion_error_returns_500(self, client, point_dataset, monkeypatch):
        def fail(stem, **kwargs):
            raise SerializationFailure("Feature 2 could not be serialized")

        monkeypatch.setattr(server, "convert_to_collection", fail)
        resp = await client.post("/convert", files=_components(point_dataset))
        assert resp.status_code == 500
        assert resp.json()["detail"] == "Feature 2 could not be serialized"

    async def test_deleted_row_upload(self, client, deleted_row_dataset):
        resp = await client.post("/convert", files=_components(deleted_row_dataset))
        assert resp.status_code == 200
        assert [f["properties"]["name"] for f in resp.json()["features"]] == ["A", None, "C"]
