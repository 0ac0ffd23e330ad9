"""
Shared pytest fixtures for landsatpipe tests.

Rasters are synthetic and built in memory; nothing here touches the network.
"""
from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import numpy as np
import pytest
from rasterio.transform import from_origin
from shapely.geometry import box

from landsatpipe.ingest.locator import SceneDescriptor
from landsatpipe.tiling.tiles import ProjectedRaster


SAMPLE_MTL = """\
GROUP = L1_METADATA_FILE
  GROUP = METADATA_FILE_INFO
    ORIGIN = "Image courtesy of the U.S. Geological Survey"
    LANDSAT_SCENE_ID = "LC80140322017063LGN00"
    LANDSAT_PRODUCT_ID = "LC08_L1TP_014032_20170304_20170316_01_T1"
    COLLECTION_NUMBER = 01
    FILE_DATE = 2017-03-16T19:42:16Z
  END_GROUP = METADATA_FILE_INFO
  GROUP = PRODUCT_METADATA
    DATA_TYPE = "L1TP"
    SPACECRAFT_ID = "LANDSAT_8"
    WRS_PATH = 14
    WRS_ROW = 32
    DATE_ACQUIRED = 2017-03-04
    SCENE_CENTER_TIME = "15:48:38.7548600Z"
    CORNER_UL_LAT_PRODUCT = 41.71293
    CORNER_UL_LON_PRODUCT = -74.60391
    CORNER_UR_LAT_PRODUCT = 41.72110
    CORNER_UR_LON_PRODUCT = -71.85003
    CORNER_LL_LAT_PRODUCT = 39.57768
    CORNER_LL_LON_PRODUCT = -74.55762
    CORNER_LR_LAT_PRODUCT = 39.58516
    CORNER_LR_LON_PRODUCT = -71.87166
  END_GROUP = PRODUCT_METADATA
  GROUP = IMAGE_ATTRIBUTES
    CLOUD_COVER = 12.34
  END_GROUP = IMAGE_ATTRIBUTES
END_GROUP = L1_METADATA_FILE
END
"""


def _make_raster(cols: int, rows: int, bands: int = 3, crs: str = "EPSG:32618",
                 origin=(500000.0, 4500000.0), res: float = 30.0) -> ProjectedRaster:
    data = (np.arange(bands * rows * cols, dtype=np.uint32) % 60000 + 1).astype(np.uint16)
    return ProjectedRaster(data.reshape(bands, rows, cols), from_origin(*origin, res, res), crs, 0)


@pytest.fixture
def make_raster() -> Callable[..., ProjectedRaster]:
    """Factory for UTM 18N uint16 rasters with no nodata cells."""
    return _make_raster


@pytest.fixture
def scenes():
    """Three scenes over the US north-east, a week apart."""
    return [
        SceneDescriptor(
            "LC08_L1TP_014032_20170304_20170316_01_T1",
            box(-74.6, 39.58, -71.85, 41.72),
            datetime(2017, 3, 4, 15, 48, tzinfo=timezone.utc),
        ),
        SceneDescriptor(
            "LC08_L1TP_013032_20170311_20170317_01_T1",
            box(-73.1, 39.58, -70.3, 41.72),
            datetime(2017, 3, 11, 15, 42, tzinfo=timezone.utc),
        ),
        SceneDescriptor(
            "LC08_L1TP_014033_20170320_20170329_01_T1",
            box(-75.1, 38.15, -72.4, 40.3),
            datetime(2017, 3, 20, 15, 49, tzinfo=timezone.utc),
        ),
    ]


@pytest.fixture
def mtl_path(tmp_path: Path) -> Path:
    p = tmp_path / "LC08_L1TP_014032_20170304_20170316_01_T1_MTL.txt"
    p.write_text(SAMPLE_MTL, encoding="utf-8")
    return p


@pytest.fixture
def mtl_text() -> str:
    return SAMPLE_MTL
