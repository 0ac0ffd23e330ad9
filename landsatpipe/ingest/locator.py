# landsatpipe/ingest/locator.py
"""
LOCATOR: which Landsat scenes make up an ingestion batch
--------------------------------------------------------
• ``SceneDescriptor`` – product id, WGS84 footprint, acquisition time
• ``ImageLocator``    – immutable batch of descriptors handed to every stage
• Batches can be built from MTL files or from an Earth-Search STAC query
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, Iterator, Optional, Sequence, Tuple

from shapely.geometry import Polygon, shape
from shapely.geometry.base import BaseGeometry

from landsatpipe.ingest.mtl import MTL

__all__ = ["SceneDescriptor", "ImageLocator", "STAC_API", "COLLECTION"]

logger = logging.getLogger(__name__)

STAC_API = os.environ.get("LANDSATPIPE_STAC_API", "https://earth-search.aws.element84.com/v1")
COLLECTION = "landsat-c2-l2"

# LC08_L1TP_139045_20170304_20170316_01_T1   (collection product id)
# LC81390452017063LGN00                       (pre-collection scene id)
_PRODUCT_ID = re.compile(r"^L[COTEM]\d{2}_\w{4}_(?P<path>\d{3})(?P<row>\d{3})_")
_SCENE_ID = re.compile(r"^L[COTEM]\d(?P<path>\d{3})(?P<row>\d{3})\d{7}")


@dataclass(frozen=True)
class SceneDescriptor:
    scene_id: str
    footprint: BaseGeometry
    acquisition_date: datetime
    cloud_cover: Optional[float] = None

    @property
    def path_row(self) -> Tuple[int, int]:
        """WRS-2 (path, row) encoded in the product id."""
        m = _PRODUCT_ID.match(self.scene_id) or _SCENE_ID.match(self.scene_id)
        if m is None:
            raise ValueError(f"Cannot parse WRS path/row from scene id {self.scene_id!r}")
        return int(m["path"]), int(m["row"])

    @property
    def path(self) -> int:
        return self.path_row[0]

    @property
    def row(self) -> int:
        return self.path_row[1]

    @classmethod
    def from_mtl(cls, mtl: MTL) -> "SceneDescriptor":
        """Describe a scene from its MTL metadata (product id, corners, date)."""
        scene_id = mtl.find("LANDSAT_PRODUCT_ID") or mtl.find("LANDSAT_SCENE_ID")
        date = mtl.find("DATE_ACQUIRED")
        if scene_id is None or date is None:
            raise ValueError("MTL lacks LANDSAT_PRODUCT_ID/LANDSAT_SCENE_ID or DATE_ACQUIRED")

        corners = []
        for corner in ("UL", "UR", "LR", "LL"):
            lon = mtl.find(f"CORNER_{corner}_LON_PRODUCT")
            lat = mtl.find(f"CORNER_{corner}_LAT_PRODUCT")
            if lon is None or lat is None:
                raise ValueError(f"MTL lacks CORNER_{corner} coordinates")
            corners.append((float(lon), float(lat)))

        center = str(mtl.find("SCENE_CENTER_TIME", "00:00:00Z")).rstrip("Z")[:15]
        acquired = datetime.fromisoformat(f"{date}T{center}").replace(tzinfo=timezone.utc)

        cloud = mtl.find("CLOUD_COVER")
        return cls(
            scene_id=scene_id,
            footprint=Polygon(corners),
            acquisition_date=acquired,
            cloud_cover=None if cloud is None else float(cloud),
        )

    @classmethod
    def from_mtl_file(cls, path: Path | str) -> "SceneDescriptor":
        return cls.from_mtl(MTL.parse(Path(path).read_text()))


@dataclass(frozen=True)
class ImageLocator:
    """A fixed batch of scenes. Metadata and tiling must both use the same batch."""

    images: Tuple[SceneDescriptor, ...] = ()

    @classmethod
    def of(cls, images: Iterable[SceneDescriptor]) -> "ImageLocator":
        return cls(tuple(images))

    @classmethod
    def from_mtl_files(cls, paths: Sequence[Path | str]) -> "ImageLocator":
        return cls.of(SceneDescriptor.from_mtl_file(p) for p in paths)

    @classmethod
    def search(
        cls,
        bbox: Sequence[float],
        start: str,
        end: str,
        max_cloud_cover: Optional[float] = None,
        max_items: int = 50,
        platforms: Sequence[str] = ("landsat-8",),
    ) -> "ImageLocator":
        """Query the STAC catalog for scenes intersecting ``bbox`` in ``[start, end]``."""
        from pystac_client import Client

        query = {"platform": {"in": list(platforms)}}
        if max_cloud_cover is not None:
            query["eo:cloud_cover"] = {"lt": max_cloud_cover}

        stac = Client.open(STAC_API)
        items = stac.search(
            collections=[COLLECTION],
            bbox=list(bbox),
            datetime=f"{start}/{end}",
            query=query,
            max_items=max_items,
        ).items()

        images = []
        for item in items:
            images.append(
                SceneDescriptor(
                    scene_id=item.properties.get("landsat:product_id", item.id),
                    footprint=shape(item.geometry),
                    acquisition_date=item.datetime,
                    cloud_cover=item.properties.get("eo:cloud_cover"),
                )
            )
        logger.info("STAC search %s %s/%s → %d scenes", list(bbox), start, end, len(images))
        return cls(tuple(images))

    def __iter__(self) -> Iterator[SceneDescriptor]:
        return iter(self.images)

    def __len__(self) -> int:
        return len(self.images)
