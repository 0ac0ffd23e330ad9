from __future__ import annotations

from datetime import datetime

import numpy as np
import pytest
import requests
from rasterio.io import MemoryFile
from rasterio.transform import from_origin
from shapely.geometry import box

from landsatpipe.ingest.fetch import make_fallback_fetch
from landsatpipe.ingest.google import GoogleSource
from landsatpipe.ingest.locator import SceneDescriptor
from landsatpipe.ingest.s3 import S3Source
from landsatpipe.job import EtlJob, copy_to_directory

PRODUCT = "LC08_L1TP_014032_20170304_20170316_01_T1"
PRE_COLLECTION = "LC80140322017063LGN00"


def _geotiff(value: int, width: int = 20, height: int = 10) -> bytes:
    arr = np.full((height, width), value, dtype=np.uint16)
    with MemoryFile() as mem:
        with mem.open(driver="GTiff", width=width, height=height, count=1, dtype="uint16",
                      crs="EPSG:32618", transform=from_origin(500000, 4500000, 30, 30), nodata=0) as dst:
            dst.write(arr, 1)
        mem.seek(0)
        return mem.read()


class FakeResponse:
    def __init__(self, url, content=b"", status_code=200):
        self.url = url
        self.content = content
        self.status_code = status_code
        self.headers = {"content-length": str(len(content))}

    @property
    def text(self):
        return self.content.decode()

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} for {self.url}")

    def iter_content(self, chunk_size=8192):
        for i in range(0, len(self.content), chunk_size):
            yield self.content[i:i + chunk_size]


@pytest.fixture
def scene():
    return SceneDescriptor(PRODUCT, box(-74.6, 39.58, -71.85, 41.72), datetime(2017, 3, 4))


@pytest.fixture
def serve(monkeypatch):
    """Route requests.get to a dict ``url → bytes``; unknown URLs answer 404."""
    served = {}
    requested = []

    def fake_get(url, **kwargs):
        requested.append(url)
        if url in served:
            return FakeResponse(url, served[url])
        return FakeResponse(url, status_code=404)

    monkeypatch.setattr(requests, "get", fake_get)
    served["__requested__"] = requested
    return served


def test_s3_urls(scene):
    src = S3Source()
    assert src.band_url(scene, "4") == (
        f"https://landsat-pds.s3.amazonaws.com/c1/L8/014/032/{PRODUCT}/{PRODUCT}_B4.TIF"
    )
    pre = SceneDescriptor(PRE_COLLECTION, scene.footprint, scene.acquisition_date)
    assert src.mtl_url(pre) == (
        f"https://landsat-pds.s3.amazonaws.com/L8/014/032/{PRE_COLLECTION}/{PRE_COLLECTION}_MTL.txt"
    )


def test_google_urls(scene):
    src = GoogleSource()
    assert src.band_url(scene, "QA") == (
        f"https://storage.googleapis.com/gcp-public-data-landsat/LC08/01/014/032/{PRODUCT}/{PRODUCT}_BQA.TIF"
    )
    pre = SceneDescriptor(PRE_COLLECTION, scene.footprint, scene.acquisition_date)
    assert src.scene_url(pre) == (
        f"https://storage.googleapis.com/gcp-public-data-landsat/LC08/PRE/014/032/{PRE_COLLECTION}"
    )


def test_fetch_stacks_bands_in_requested_order(serve, scene):
    src = S3Source()
    for band, value in [("4", 40), ("3", 30), ("2", 20)]:
        serve[src.band_url(scene, band)] = _geotiff(value)

    raster = src.fetch(scene, EtlJob(bands_wanted=("4", "3", "2")))

    assert raster.band_count == 3
    assert [int(raster.data[i, 0, 0]) for i in range(3)] == [40, 30, 20]
    assert (raster.cols, raster.rows) == (20, 10)
    assert raster.crs == "EPSG:32618"
    assert raster.nodata == 0


def test_cache_hook_sees_every_band(serve, scene, tmp_path):
    src = S3Source()
    for band in ("4", "5"):
        serve[src.band_url(scene, band)] = _geotiff(1)
    seen = []

    job = EtlJob(bands_wanted=("4", "5"), cache_hook=lambda sid, band, path: seen.append((sid, band, path.name)))
    src.fetch(scene, job)
    assert seen == [(PRODUCT, "4", f"{PRODUCT}_B4.TIF"), (PRODUCT, "5", f"{PRODUCT}_B5.TIF")]

    cache = tmp_path / "cache"
    src.fetch(scene, EtlJob(bands_wanted=("4",), cache_hook=copy_to_directory(cache)))
    assert (cache / PRODUCT / f"{PRODUCT}_B4.TIF").read_bytes() == serve[src.band_url(scene, "4")]


def test_missing_band_raises_http_error(serve, scene):
    with pytest.raises(requests.HTTPError):
        S3Source().fetch(scene, EtlJob(bands_wanted=("4",)))


def test_fallback_to_google_when_s3_misses(serve, scene):
    google = GoogleSource()
    serve[google.band_url(scene, "4")] = _geotiff(7)

    fetch = make_fallback_fetch(S3Source(), google)
    raster = fetch(scene, EtlJob(bands_wanted=("4",)))

    assert raster is not None and int(raster.data[0, 0, 0]) == 7
    requested = serve["__requested__"]
    assert requested[0].startswith("https://landsat-pds")
    assert requested[-1].startswith("https://storage.googleapis.com")


def test_both_sources_missing_returns_none(serve, scene, caplog):
    fetch = make_fallback_fetch(S3Source(), GoogleSource())
    with caplog.at_level("WARNING"):
        assert fetch(scene, EtlJob(bands_wanted=("4",))) is None
    assert PRODUCT in caplog.text


def test_fetch_mtl(serve, scene, mtl_text):
    src = GoogleSource()
    serve[src.mtl_url(scene)] = mtl_text.encode()
    mtl = src.fetch_mtl(scene)
    assert mtl.find("LANDSAT_PRODUCT_ID") == PRODUCT


def test_cache_hook_fires_for_secondary_downloads(serve, scene):
    google = GoogleSource()
    for band in ("4", "3"):
        serve[google.band_url(scene, band)] = _geotiff(3)
    seen = []
    job = EtlJob(bands_wanted=("4", "3"), cache_hook=lambda sid, band, path: seen.append((band, path.exists())))

    raster = make_fallback_fetch(S3Source(), google)(scene, job)

    assert raster is not None
    # the primary 404s on its first band, before anything reaches the hook
    assert seen == [("4", True), ("3", True)]


def test_interrupted_download_leaves_no_partial_file(monkeypatch, scene, tmp_path):
    class Interrupted(FakeResponse):
        def iter_content(self, chunk_size=8192):
            yield self.content[:100]
            raise requests.ConnectionError("connection reset")

    monkeypatch.setattr(requests, "get", lambda url, **kw: Interrupted(url, _geotiff(1)))
    with pytest.raises(requests.ConnectionError):
        S3Source().download(scene, ("4",), tmp_path)
    assert list(tmp_path.iterdir()) == []
