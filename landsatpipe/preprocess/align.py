# landsatpipe/preprocess/align.py
"""Reprojection of whole scenes and splitting them into fixed-size chunks."""

from __future__ import annotations

import logging
import math
from typing import List, Tuple

import numpy as np
from rasterio.warp import Resampling, calculate_default_transform, reproject
from rasterio.windows import Window, bounds as window_bounds

from landsatpipe.tiling.layout import TILE_SIZE, Extent
from landsatpipe.tiling.tiles import MultibandTile, ProjectedRaster

__all__ = ["reproject_raster", "chunk_grid", "split_raster"]

logger = logging.getLogger(__name__)


def reproject_raster(
    raster: ProjectedRaster,
    dst_crs: str,
    resampling: Resampling = Resampling.nearest,
) -> ProjectedRaster:
    """
    Warp every band of ``raster`` into ``dst_crs``.

    The output grid is rasterio's default for the source bounds. Cells outside
    the source footprint are filled with the raster's nodata value, or 0 when
    it has none; the result always declares that fill as its nodata.
    """
    src = raster
    west, south, east, north = src.extent
    dst_transform, width, height = calculate_default_transform(
        src.crs, dst_crs, src.cols, src.rows, left=west, bottom=south, right=east, top=north
    )
    fill = src.nodata if src.nodata is not None else 0
    dst_arr = np.full((src.band_count, height, width), fill, dtype=src.data.dtype)
    reproject(
        source=src.data,
        destination=dst_arr,
        src_transform=src.transform,
        src_crs=src.crs,
        src_nodata=src.nodata,
        dst_transform=dst_transform,
        dst_crs=dst_crs,
        dst_nodata=fill,
        resampling=resampling,
    )
    logger.debug("Reprojected %dx%d %s → %dx%d %s", src.cols, src.rows, src.crs, width, height, dst_crs)
    return ProjectedRaster(dst_arr, dst_transform, dst_crs, fill)


def chunk_grid(cols: int, rows: int, tile_cols: int = TILE_SIZE, tile_rows: int = TILE_SIZE) -> Tuple[int, int]:
    """Number of chunk columns and rows needed to cover ``cols`` x ``rows`` pixels."""
    return math.ceil(cols / tile_cols), math.ceil(rows / tile_rows)


def split_raster(
    raster: ProjectedRaster,
    tile_cols: int = TILE_SIZE,
    tile_rows: int = TILE_SIZE,
) -> List[Tuple[Extent, MultibandTile]]:
    """
    Cut ``raster`` into a grid of ``tile_cols`` x ``tile_rows`` chunks, row-major.

    Edge chunks keep only the pixels the raster has: they are neither padded
    out to full size nor clipped further. Every chunk owns a copy of its
    pixels and carries the extent of exactly those pixels.
    """
    layout_cols, layout_rows = chunk_grid(raster.cols, raster.rows, tile_cols, tile_rows)
    chunks = []
    for r in range(layout_rows):
        for c in range(layout_cols):
            window = Window(
                c * tile_cols,
                r * tile_rows,
                min(tile_cols, raster.cols - c * tile_cols),
                min(tile_rows, raster.rows - r * tile_rows),
            )
            (row_start, row_stop), (col_start, col_stop) = window.toranges()
            pixels = raster.data[:, row_start:row_stop, col_start:col_stop].copy()
            west, south, east, north = window_bounds(window, raster.transform)
            chunks.append((Extent(west, south, east, north), MultibandTile(pixels, raster.nodata)))
    return chunks
