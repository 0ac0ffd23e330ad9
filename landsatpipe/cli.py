# landsatpipe/cli.py
"""Project-wide CLI entry-points.

Usage examples
--------------
# Find Landsat 8 scenes over an area
landsatpipe search --bbox -75.2 39.8 -74.9 40.1 --start 2017-03-01 --end 2017-03-31

# Layer metadata for scenes described by MTL files
landsatpipe metadata data/mtl/LC08_L1TP_014032_20170304_20170316_01_T1_MTL.txt --max-zoom 13

# Fetch, reproject and chunk the scenes, writing chunks as GeoTIFFs
landsatpipe ingest data/mtl/*_MTL.txt --bands 4,3,2 --output data/tiles
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

import click
import mlflow

from landsatpipe.ingest.fetch import fetch_scene
from landsatpipe.ingest.locator import ImageLocator
from landsatpipe.job import EtlJob, copy_to_directory
from landsatpipe.pipeline import ExecutionContext, fetch
from landsatpipe.tiling.layout import WEB_MERCATOR
from landsatpipe.tiling.metadata import calculate_tile_layer_metadata
from landsatpipe.utils.io import write_geotiff

logger = logging.getLogger(__name__)


@click.group()
@click.option("--log-level", default="INFO", show_default=True,
              type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"]))
def cli(log_level: str) -> None:  # noqa: D401
    """Top-level command group for *landsatpipe*."""
    logging.basicConfig(level=log_level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


# --------------------------------------------------------------------------- #
#                               SEARCH COMMAND                                #
# --------------------------------------------------------------------------- #
@cli.command()
@click.option("--bbox", nargs=4, type=float, required=True, help="west south east north")
@click.option("--start", required=True, help="ISO date")
@click.option("--end", required=True, help="ISO date")
@click.option("--max-cloud-cover", type=float, default=None)
@click.option("--max-items", type=int, default=50, show_default=True)
def search(bbox: Tuple[float, ...], start: str, end: str,
           max_cloud_cover: Optional[float], max_items: int) -> None:
    """List catalog scenes intersecting BBOX between START and END."""
    locator = ImageLocator.search(bbox, start, end, max_cloud_cover=max_cloud_cover, max_items=max_items)
    for img in locator:
        click.echo(f"{img.scene_id}\t{img.acquisition_date:%Y-%m-%dT%H:%M:%S}\t{img.cloud_cover}")


# --------------------------------------------------------------------------- #
#                              METADATA COMMAND                               #
# --------------------------------------------------------------------------- #
@cli.command()
@click.argument("mtl_files", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--max-zoom", type=int, default=13, show_default=True)
@click.option("--dest-crs", default=WEB_MERCATOR, show_default=True)
def metadata(mtl_files: List[Path], max_zoom: int, dest_crs: str) -> None:
    """Print the layer metadata of the scenes described by MTL_FILES."""
    locator = ImageLocator.from_mtl_files(mtl_files)
    md = calculate_tile_layer_metadata(locator, max_zoom=max_zoom, dest_crs=dest_crs)
    lo, hi = md.bounds
    click.echo(f"crs:       {md.crs}")
    click.echo(f"cell_type: {md.cell_type}")
    click.echo(f"extent:    {md.extent.xmin:.3f} {md.extent.ymin:.3f} {md.extent.xmax:.3f} {md.extent.ymax:.3f}")
    click.echo(f"cols:      {lo.col}..{hi.col}")
    click.echo(f"rows:      {lo.row}..{hi.row}")
    click.echo(f"time:      {lo.time.isoformat()}..{hi.time.isoformat()}")


# --------------------------------------------------------------------------- #
#                               INGEST COMMAND                                #
# --------------------------------------------------------------------------- #
@cli.command()
@click.argument("mtl_files", nargs=-1, required=True, type=click.Path(exists=True, path_type=Path))
@click.option("--bands", default="4,3,2", show_default=True, help="Comma separated band numbers")
@click.option("--max-zoom", type=int, default=13, show_default=True)
@click.option("--scheduler", type=click.Choice(["threads", "synchronous"]), default="threads", show_default=True)
@click.option("--output", type=click.Path(path_type=Path), default=None, help="Write chunks as GeoTIFFs here")
@click.option("--cache-dir", type=click.Path(path_type=Path), default=None, help="Keep downloaded bands here")
def ingest(mtl_files: List[Path], bands: str, max_zoom: int, scheduler: str,
           output: Optional[Path], cache_dir: Optional[Path]) -> None:
    """Fetch, reproject and chunk the scenes described by MTL_FILES (logged in MLflow)."""
    locator = ImageLocator.from_mtl_files(mtl_files)
    job = EtlJob(
        bands_wanted=tuple(b.strip() for b in bands.split(",") if b.strip()),
        cache_hook=copy_to_directory(cache_dir) if cache_dir else None,
        max_zoom=max_zoom,
    )

    dropped: List[str] = []

    def counted_fetch(scene, job):
        raster = fetch_scene(scene, job)
        if raster is None:
            dropped.append(scene.scene_id)
        return raster

    mlflow.set_tracking_uri("file:./mlruns")
    with mlflow.start_run(run_name=f"landsat_ingest_{len(locator)}_scenes"):
        mlflow.log_params({"n_scenes": len(locator), "bands": ",".join(job.bands_wanted),
                           "max_zoom": max_zoom, "scheduler": scheduler})

        md = calculate_tile_layer_metadata(locator, max_zoom=job.max_zoom, dest_crs=job.dest_crs)
        ctx = ExecutionContext(scheduler=scheduler)
        records = ctx.compute(fetch(ctx, job, locator.images, source=counted_fetch))

        outside = sum(1 for key, _ in records if not md.extent.contains(key.extent))
        if dropped:
            logger.warning("%d of %d scenes produced no data: %s", len(dropped), len(locator), ", ".join(dropped))
        if outside:
            logger.info("%d chunks extend beyond the footprint-derived layer extent", outside)

        mlflow.log_metric("n_tiles", len(records))
        mlflow.log_metric("n_scenes_dropped", len(dropped))
        mlflow.log_metric("n_tiles_outside_extent", outside)

        if output is not None:
            for key, tile in records:
                write_geotiff(key, tile, output)
            logger.info("Wrote %d chunks to %s", len(records), output)

    click.echo(f"{len(records)} chunks from {len(locator) - len(dropped)}/{len(locator)} scenes")


if __name__ == "__main__":
    cli()
