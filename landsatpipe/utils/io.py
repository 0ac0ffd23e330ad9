# landsatpipe/utils/io.py

import hashlib
from pathlib import Path

import rasterio
from rasterio.transform import from_bounds

from landsatpipe.tiling.layout import TemporalProjectedExtent
from landsatpipe.tiling.tiles import MultibandTile


def compute_record_hash(key: TemporalProjectedExtent) -> str:
    meta = key.crs + key.time.isoformat() + ",".join(f"{v:.6f}" for v in key.extent)
    return hashlib.sha256(meta.encode()).hexdigest()


def write_geotiff(key: TemporalProjectedExtent, tile: MultibandTile, out_dir: Path) -> Path:
    """Write one chunk as ``<out_dir>/<date>_<hash[:16]>.tif``; same record, same file."""
    out_dir = Path(out_dir)
    out_dir.mkdir(parents=True, exist_ok=True)
    path = out_dir / f"{key.time:%Y%m%d}_{compute_record_hash(key)[:16]}.tif"
    transform = from_bounds(*key.extent, width=tile.cols, height=tile.rows)
    with rasterio.open(
        path, "w", driver="GTiff",
        width=tile.cols, height=tile.rows, count=tile.band_count,
        dtype=tile.cell_type, crs=key.crs, transform=transform, nodata=tile.nodata,
    ) as dst:
        dst.write(tile.bands)
        dst.update_tags(acquisition_date=key.time.isoformat())
    return path
