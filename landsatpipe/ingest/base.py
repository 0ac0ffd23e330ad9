# landsatpipe/ingest/base.py

from __future__ import annotations

import logging
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Sequence

import numpy as np
import rasterio
import requests
from tqdm import tqdm

from landsatpipe.ingest.locator import SceneDescriptor
from landsatpipe.ingest.mtl import MTL
from landsatpipe.job import CacheHook, EtlJob
from landsatpipe.tiling.tiles import ProjectedRaster

logger = logging.getLogger(__name__)


def _download(url: str, dst: Path, desc: str) -> None:
    """Stream ``url`` into ``dst``; a failed transfer leaves no file behind."""
    r = requests.get(url, stream=True, timeout=60)
    r.raise_for_status()
    total = int(r.headers.get("content-length", 0))
    try:
        with open(dst, "wb") as f, tqdm(
            total=total, unit="B", unit_scale=True, unit_divisor=1024, desc=desc, leave=False
        ) as bar:
            for chunk in r.iter_content(chunk_size=1 << 20):
                f.write(chunk)
                bar.update(len(chunk))
    except BaseException:
        dst.unlink(missing_ok=True)
        raise
    logger.debug("Downloaded %s (%d bytes) → %s", url, dst.stat().st_size, dst)


class AbstractSource(ABC):
    """A public bucket serving Landsat scenes as one GeoTIFF per band."""

    name = "abstract"

    @abstractmethod
    def scene_url(self, scene: SceneDescriptor) -> str:
        """Base URL of the scene's directory (no trailing slash)."""

    def band_url(self, scene: SceneDescriptor, band: str) -> str:
        return f"{self.scene_url(scene)}/{scene.scene_id}_B{band}.TIF"

    def mtl_url(self, scene: SceneDescriptor) -> str:
        return f"{self.scene_url(scene)}/{scene.scene_id}_MTL.txt"

    def download(
        self,
        scene: SceneDescriptor,
        bands: Sequence[str],
        dst_dir: Path,
        hook: Optional[CacheHook] = None,
    ) -> Dict[str, Path]:
        """Download the requested bands into ``dst_dir`` and return band → local path."""
        files: Dict[str, Path] = {}
        for band in bands:
            path = dst_dir / f"{scene.scene_id}_B{band}.TIF"
            _download(self.band_url(scene, band), path, f"{self.name}:B{band}")
            if hook is not None:
                hook(scene.scene_id, band, path)
            files[band] = path
        return files

    def to_raster(self, local_paths: Dict[str, Path]) -> ProjectedRaster:
        """Stack single-band files (in insertion order) into one projected raster."""
        arrays = []
        transform = crs = nodata = None
        for band, path in local_paths.items():
            with rasterio.open(path) as src:
                if transform is None:
                    transform, crs, nodata = src.transform, src.crs, src.nodata
                    shape = (src.height, src.width)
                elif (src.height, src.width) != shape:
                    raise ValueError(f"Band {band} is {src.height}x{src.width}, expected {shape[0]}x{shape[1]}")
                arrays.append(src.read(1))
        if not arrays:
            raise ValueError("No bands to stack")
        return ProjectedRaster(np.stack(arrays), transform, crs.to_string(), nodata)

    def fetch(self, scene: SceneDescriptor, job: EtlJob) -> ProjectedRaster:
        """End-to-end retrieval: download the job's bands and decode them."""
        with tempfile.TemporaryDirectory(prefix=f"{self.name}_{scene.scene_id}_") as tmp:
            local = self.download(scene, job.bands_wanted, Path(tmp), job.cache_hook)
            raster = self.to_raster(local)
        logger.info("Fetched %s from %s: %d bands %dx%d", scene.scene_id, self.name,
                    raster.band_count, raster.cols, raster.rows)
        return raster

    def fetch_mtl(self, scene: SceneDescriptor) -> MTL:
        r = requests.get(self.mtl_url(scene), timeout=60)
        r.raise_for_status()
        return MTL.parse(r.text)
