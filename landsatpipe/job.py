# landsatpipe/job.py
"""Job configuration shared by every stage of an ingestion run."""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional, Tuple

from landsatpipe.tiling.layout import WEB_MERCATOR

__all__ = ["CacheHook", "EtlJob", "copy_to_directory"]

logger = logging.getLogger(__name__)

# (scene_id, band, downloaded_file) → None
CacheHook = Callable[[str, str, Path], None]


@dataclass(frozen=True)
class EtlJob:
    bands_wanted: Tuple[str, ...] = ("4", "3", "2")
    cache_hook: Optional[CacheHook] = None
    max_zoom: int = 13
    dest_crs: str = WEB_MERCATOR


def copy_to_directory(cache_dir: Path | str) -> CacheHook:
    """Cache hook keeping a copy of every downloaded band under ``cache_dir/<scene_id>/``."""
    cache_dir = Path(cache_dir)

    def hook(scene_id: str, band: str, local_path: Path) -> None:
        dst = cache_dir / scene_id / Path(local_path).name
        dst.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(local_path, dst)
        logger.debug("Cached band %s of %s → %s", band, scene_id, dst)

    return hook
