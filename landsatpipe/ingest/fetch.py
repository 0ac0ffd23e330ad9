# landsatpipe/ingest/fetch.py
"""Default scene fetch strategy: primary source, then secondary, else nothing."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from landsatpipe.ingest.base import AbstractSource
from landsatpipe.ingest.google import GoogleSource
from landsatpipe.ingest.locator import SceneDescriptor
from landsatpipe.ingest.s3 import S3Source
from landsatpipe.job import EtlJob
from landsatpipe.tiling.tiles import ProjectedRaster

__all__ = ["FetchSource", "make_fallback_fetch", "fetch_scene"]

logger = logging.getLogger(__name__)

FetchSource = Callable[[SceneDescriptor, EtlJob], Optional[ProjectedRaster]]


def make_fallback_fetch(primary: AbstractSource, secondary: AbstractSource) -> FetchSource:
    """
    Build a fetch function trying ``primary`` then ``secondary``.

    Any failure of the primary triggers the secondary; a secondary failure
    yields ``None`` so the scene is skipped instead of failing the batch.
    """

    def fetch(scene: SceneDescriptor, job: EtlJob) -> Optional[ProjectedRaster]:
        try:
            return primary.fetch(scene, job)
        except Exception as err:
            logger.info("%s: %s failed (%s), falling back to %s",
                        scene.scene_id, primary.name, err, secondary.name)
        try:
            return secondary.fetch(scene, job)
        except Exception as err:
            logger.warning("%s: dropped, no source could provide it (%s: %s)",
                           scene.scene_id, secondary.name, err)
            return None

    return fetch


fetch_scene: FetchSource = make_fallback_fetch(S3Source(), GoogleSource())
