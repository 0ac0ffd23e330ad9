# landsatpipe/tiling/metadata.py
"""Layer metadata for a batch of Landsat scenes, computed without reading pixels."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from functools import reduce
from typing import Iterable

from landsatpipe.ingest.locator import SceneDescriptor
from landsatpipe.tiling.layout import (
    LATLNG,
    TILE_SIZE,
    WEB_MERCATOR,
    Extent,
    KeyBounds,
    LayoutDefinition,
    SpaceTimeKey,
    layout_for_zoom,
    world_extent,
)

__all__ = ["TileLayerMetadata", "calculate_tile_layer_metadata"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TileLayerMetadata:
    cell_type: str
    layout: LayoutDefinition
    extent: Extent
    crs: str
    bounds: KeyBounds


def calculate_tile_layer_metadata(
    images: Iterable[SceneDescriptor],
    max_zoom: int = 13,
    dest_crs: str = WEB_MERCATOR,
) -> TileLayerMetadata:
    """
    Calculate the layer metadata for incoming Landsat scenes.

    Without prior knowledge the metadata would have to be collected from the
    tiled rasters themselves, which means reading the data twice or keeping it
    in memory. The catalog query already gives footprints and dates, which is
    enough to derive layout, extent and key bounds up front.

    The result only describes ``images``: tiles produced from any other batch
    may fall outside ``bounds``.

    Raises
    ------
    ValueError
        If ``images`` is empty.
    """
    images = list(images)
    if not images:
        raise ValueError("Cannot calculate layer metadata for an empty scene collection")

    layout = layout_for_zoom(max_zoom, world_extent(dest_crs), TILE_SIZE)
    envelopes = (Extent(*img.footprint.bounds) for img in images)
    extent = reduce(Extent.combine, envelopes).reproject(LATLNG, dest_crs)
    date_min = min(img.acquisition_date for img in images)
    date_max = max(img.acquisition_date for img in images)
    col_min, row_min, col_max, row_max = layout.extent_to_bounds(extent)

    logger.info("Layer metadata: %d scenes, zoom %d, cols %d..%d, rows %d..%d, %s..%s",
                len(images), max_zoom, col_min, col_max, row_min, row_max, date_min, date_max)
    return TileLayerMetadata(
        cell_type="uint16",
        layout=layout,
        extent=extent,
        crs=dest_crs,
        bounds=KeyBounds(
            SpaceTimeKey(col_min, row_min, date_min),
            SpaceTimeKey(col_max, row_max, date_max),
        ),
    )
