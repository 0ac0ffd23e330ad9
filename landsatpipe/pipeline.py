# landsatpipe/pipeline.py
"""
PIPELINE: Landsat scenes → (TemporalProjectedExtent, MultibandTile) records
--------------------------------------------------------------------------
• One dask partition per scene so a slow download only stalls its own scene
• Each scene is fetched, reprojected to Web Mercator, then cut into 256 px chunks
• Records are repartitioned 16× so large scenes do not straggle downstream
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import partial
from typing import Iterable, List, Optional, Sequence, Tuple

import dask
import dask.bag as db

from landsatpipe.ingest.fetch import FetchSource, fetch_scene
from landsatpipe.ingest.locator import SceneDescriptor
from landsatpipe.job import EtlJob
from landsatpipe.preprocess.align import reproject_raster, split_raster
from landsatpipe.tiling.layout import TILE_SIZE, WEB_MERCATOR, TemporalProjectedExtent
from landsatpipe.tiling.tiles import MultibandTile

__all__ = ["ExecutionContext", "Record", "PARTITIONS_PER_SCENE", "tile_scenes", "fetch"]

logger = logging.getLogger(__name__)

Record = Tuple[TemporalProjectedExtent, MultibandTile]

PARTITIONS_PER_SCENE = 16


@dataclass(frozen=True)
class ExecutionContext:
    """Where and how bags are evaluated: a dask scheduler name plus worker count."""

    scheduler: str = "threads"
    num_workers: Optional[int] = None

    def parallelize(self, items: Sequence, npartitions: int) -> db.Bag:
        if not items:
            return db.from_sequence([])
        return db.from_sequence(items, npartitions=npartitions)

    def compute(self, bag: db.Bag) -> list:
        kwargs = {"scheduler": self.scheduler}
        if self.num_workers is not None:
            kwargs["num_workers"] = self.num_workers
        with dask.config.set(**kwargs):
            return bag.compute()


def tile_scenes(
    images: Iterable[SceneDescriptor],
    job: EtlJob,
    source: FetchSource,
) -> List[Record]:
    """Fetch, reproject and chunk every scene in ``images``; unfetchable scenes emit nothing."""
    records: List[Record] = []
    for img in images:
        raster = source(img, job)
        if raster is None:
            continue
        # reprojecting before chunking keeps nodata seams at the scene edge only
        reprojected = reproject_raster(raster, WEB_MERCATOR)
        chunks = split_raster(reprojected, TILE_SIZE, TILE_SIZE)
        logger.info("%s → %d chunks (%dx%d px)", img.scene_id, len(chunks),
                    reprojected.cols, reprojected.rows)
        for extent, tile in chunks:
            records.append((TemporalProjectedExtent(extent, WEB_MERCATOR, img.acquisition_date), tile))
    return records


def fetch(
    ctx: ExecutionContext,
    job: EtlJob,
    images: Sequence[SceneDescriptor],
    source: FetchSource = fetch_scene,
) -> db.Bag:
    """
    Transform Landsat scene descriptions into a bag of multiband chunks.

    Each scene is downloaded, reprojected and split into 256x256 chunks.
    Chunking allows for greater parallelism and reduces the memory pressure of
    processing each partition.

    Parameters
    ----------
    ctx
        Execution context owning the dask scheduler choice.
    job
        Band selection and cache hook forwarded to ``source``.
    images
        The batch. Layer metadata must be computed over this same batch for
        the records to fall within its key bounds.
    source
        ``(scene, job) → ProjectedRaster | None``; defaults to the S3 → Google
        fallback.

    Returns
    -------
    dask.bag.Bag
        Lazy bag of ``(TemporalProjectedExtent, MultibandTile)`` with
        ``16 * len(images)`` partitions.
    """
    images = list(images)
    if not images:
        return ctx.parallelize([], npartitions=0)

    # each image gets its own partition
    bag = ctx.parallelize(images, npartitions=len(images))
    tiled = bag.map_partitions(partial(tile_scenes, job=job, source=source))
    return tiled.repartition(npartitions=len(images) * PARTITIONS_PER_SCENE)
