# landsatpipe/ingest/google.py
"""Secondary source: the Google Cloud ``gcp-public-data-landsat`` bucket."""

from landsatpipe.ingest.base import AbstractSource
from landsatpipe.ingest.locator import SceneDescriptor

GOOGLE_BASE = "https://storage.googleapis.com/gcp-public-data-landsat"


class GoogleSource(AbstractSource):
    name = "google"

    def __init__(self, base_url: str = GOOGLE_BASE) -> None:
        self.base_url = base_url.rstrip("/")

    def scene_url(self, scene: SceneDescriptor) -> str:
        path, row = scene.path_row
        sid = scene.scene_id
        if "_" in sid:  # LC08_L1TP_... → LC08/01
            sensor, collection = sid[:4], "01"
        else:  # LC8... → LC08/PRE
            sensor, collection = f"{sid[:2]}0{sid[2]}", "PRE"
        return f"{self.base_url}/{sensor}/{collection}/{path:03d}/{row:03d}/{sid}"
