# landsatpipe/ingest/s3.py
"""Primary source: the AWS ``landsat-pds`` public bucket."""

from landsatpipe.ingest.base import AbstractSource
from landsatpipe.ingest.locator import SceneDescriptor

S3_BASE = "https://landsat-pds.s3.amazonaws.com"


class S3Source(AbstractSource):
    name = "s3"

    def __init__(self, base_url: str = S3_BASE) -> None:
        self.base_url = base_url.rstrip("/")

    def scene_url(self, scene: SceneDescriptor) -> str:
        path, row = scene.path_row
        if "_" in scene.scene_id:  # collection-1 product id
            return f"{self.base_url}/c1/L8/{path:03d}/{row:03d}/{scene.scene_id}"
        return f"{self.base_url}/L8/{path:03d}/{row:03d}/{scene.scene_id}"
