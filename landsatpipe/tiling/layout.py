# landsatpipe/tiling/layout.py
"""Tiling layout primitives: extents, zoomed layouts and space-time keys."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, NamedTuple

from rasterio.crs import CRS
from rasterio.warp import transform_bounds

__all__ = [
    "LATLNG",
    "WEB_MERCATOR",
    "TILE_SIZE",
    "Extent",
    "GridBounds",
    "SpaceTimeKey",
    "KeyBounds",
    "TemporalProjectedExtent",
    "TileLayout",
    "LayoutDefinition",
    "world_extent",
    "layout_for_zoom",
]

LATLNG = "EPSG:4326"
WEB_MERCATOR = "EPSG:3857"
TILE_SIZE = 256

_MERC_MAX = 20037508.342789244

_WORLD_EXTENTS: Dict[str, tuple] = {
    WEB_MERCATOR: (-_MERC_MAX, -_MERC_MAX, _MERC_MAX, _MERC_MAX),
    LATLNG: (-180.0, -90.0, 180.0, 90.0),
}


class Extent(NamedTuple):
    xmin: float
    ymin: float
    xmax: float
    ymax: float

    @property
    def width(self) -> float:
        return self.xmax - self.xmin

    @property
    def height(self) -> float:
        return self.ymax - self.ymin

    def combine(self, other: "Extent") -> "Extent":
        """Smallest extent covering both ``self`` and ``other``."""
        return Extent(
            min(self.xmin, other.xmin),
            min(self.ymin, other.ymin),
            max(self.xmax, other.xmax),
            max(self.ymax, other.ymax),
        )

    def contains(self, other: "Extent") -> bool:
        return (
            self.xmin <= other.xmin
            and self.ymin <= other.ymin
            and self.xmax >= other.xmax
            and self.ymax >= other.ymax
        )

    def reproject(self, src_crs: str, dst_crs: str) -> "Extent":
        """Envelope of this extent's outline after reprojection."""
        if CRS.from_user_input(src_crs) == CRS.from_user_input(dst_crs):
            return self
        return Extent(*transform_bounds(src_crs, dst_crs, *self, densify_pts=21))


class GridBounds(NamedTuple):
    col_min: int
    row_min: int
    col_max: int
    row_max: int


class SpaceTimeKey(NamedTuple):
    col: int
    row: int
    time: datetime


class KeyBounds(NamedTuple):
    min_key: SpaceTimeKey
    max_key: SpaceTimeKey

    def includes(self, key: SpaceTimeKey) -> bool:
        return (
            self.min_key.col <= key.col <= self.max_key.col
            and self.min_key.row <= key.row <= self.max_key.row
            and self.min_key.time <= key.time <= self.max_key.time
        )


class TemporalProjectedExtent(NamedTuple):
    """Key of one ingested chunk: where it is, in which CRS, and when."""

    extent: Extent
    crs: str
    time: datetime


@dataclass(frozen=True)
class TileLayout:
    layout_cols: int
    layout_rows: int
    tile_cols: int
    tile_rows: int


@dataclass(frozen=True)
class LayoutDefinition:
    """A regular grid of tiles laid over ``extent``.

    Columns grow eastward from ``extent.xmin``, rows grow southward from
    ``extent.ymax``.
    """

    extent: Extent
    tile_layout: TileLayout

    @property
    def tile_width(self) -> float:
        return self.extent.width / self.tile_layout.layout_cols

    @property
    def tile_height(self) -> float:
        return self.extent.height / self.tile_layout.layout_rows

    @property
    def cell_size(self) -> tuple:
        return (
            self.tile_width / self.tile_layout.tile_cols,
            self.tile_height / self.tile_layout.tile_rows,
        )

    def point_to_key(self, x: float, y: float) -> tuple:
        col = math.floor((x - self.extent.xmin) / self.tile_width)
        row = math.floor((self.extent.ymax - y) / self.tile_height)
        return col, row

    def key_to_extent(self, col: int, row: int) -> Extent:
        xmin = self.extent.xmin + col * self.tile_width
        ymax = self.extent.ymax - row * self.tile_height
        return Extent(xmin, ymax - self.tile_height, xmin + self.tile_width, ymax)

    def extent_to_bounds(self, other: Extent) -> GridBounds:
        """Inclusive grid bounds of every tile touched by ``other``.

        The ``xmax`` and ``ymin`` edges are exclusive: an extent ending exactly
        on a tile boundary does not claim the next tile.
        """
        col_min, row_min = self.point_to_key(other.xmin, other.ymax)

        d = (other.xmax - self.extent.xmin) / self.tile_width
        col_max = int(d) - 1 if d == math.floor(d) and int(d) != col_min else math.floor(d)

        d = (self.extent.ymax - other.ymin) / self.tile_height
        row_max = int(d) - 1 if d == math.floor(d) and int(d) != row_min else math.floor(d)

        return GridBounds(col_min, row_min, col_max, row_max)


def world_extent(crs: str) -> Extent:
    """World extent of a supported destination CRS."""
    for name, bounds in _WORLD_EXTENTS.items():
        if CRS.from_user_input(crs) == CRS.from_user_input(name):
            return Extent(*bounds)
    raise ValueError(f"No world extent known for CRS {crs!r}, use one of {list(_WORLD_EXTENTS)}")


def layout_for_zoom(zoom: int, extent: Extent, tile_size: int = TILE_SIZE) -> LayoutDefinition:
    """Power-of-two layout: ``2**zoom`` tiles per side of ``extent``."""
    if zoom < 0:
        raise ValueError(f"zoom must be >= 0, got {zoom}")
    n = 2 ** zoom
    return LayoutDefinition(extent, TileLayout(n, n, tile_size, tile_size))
