# landsatpipe/tiling/tiles.py
"""In-memory raster containers: projected rasters, multiband tiles, tile features."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Union

import numpy as np
from affine import Affine
from rasterio.transform import array_bounds

from landsatpipe.ingest.mtl import MTL
from landsatpipe.tiling.layout import Extent

__all__ = ["CELL_TYPES", "nodata_for", "ProjectedRaster", "MultibandTile", "TileFeature"]

# cell type name → nodata value used when a tile is created empty
CELL_TYPES: Dict[str, Union[int, float]] = {
    "uint8": 0,
    "uint16": 0,
    "int16": np.iinfo(np.int16).min,
    "int32": np.iinfo(np.int32).min,
    "float32": float("nan"),
    "float64": float("nan"),
}


def nodata_for(cell_type: str) -> Union[int, float]:
    try:
        return CELL_TYPES[cell_type]
    except KeyError:
        raise ValueError(f"Unknown cell type {cell_type!r}, expected one of {list(CELL_TYPES)}") from None


def _default_nodata(dtype: np.dtype) -> Union[int, float]:
    """Nodata for any numeric dtype: the table value, else 0 / type minimum / NaN by kind."""
    if dtype.name in CELL_TYPES:
        return CELL_TYPES[dtype.name]
    if dtype.kind == "f":
        return float("nan")
    if dtype.kind == "i":
        return int(np.iinfo(dtype).min)
    return 0


@dataclass
class ProjectedRaster:
    """Band stack ``(bands, rows, cols)`` georeferenced by ``transform`` in ``crs``."""

    data: np.ndarray
    transform: Affine
    crs: str
    nodata: Optional[Union[int, float]] = None

    def __post_init__(self) -> None:
        if self.data.ndim == 2:
            self.data = self.data[np.newaxis, ...]
        if self.data.ndim != 3:
            raise ValueError(f"Expected (bands, rows, cols) array, got shape {self.data.shape}")

    @property
    def band_count(self) -> int:
        return self.data.shape[0]

    @property
    def rows(self) -> int:
        return self.data.shape[1]

    @property
    def cols(self) -> int:
        return self.data.shape[2]

    @property
    def extent(self) -> Extent:
        west, south, east, north = array_bounds(self.rows, self.cols, self.transform)
        return Extent(west, south, east, north)


@dataclass
class MultibandTile:
    bands: np.ndarray
    nodata: Optional[Union[int, float]] = None

    @classmethod
    def empty(
        cls,
        cell_type: Union[str, np.dtype],
        band_count: int,
        cols: int,
        rows: int,
        nodata: Optional[Union[int, float]] = None,
    ) -> "MultibandTile":
        """All-nodata tile of ``band_count`` bands; ``nodata`` defaults per cell type."""
        if cols <= 0 or rows <= 0:
            raise ValueError(f"Tile dimensions must be positive, got cols={cols} rows={rows}")
        if band_count <= 0:
            raise ValueError(f"band_count must be positive, got {band_count}")
        dtype = np.dtype(cell_type)
        if nodata is None:
            nodata = _default_nodata(dtype)
        return cls(np.full((band_count, rows, cols), nodata, dtype=dtype), nodata)

    @property
    def cell_type(self) -> str:
        return self.bands.dtype.name

    @property
    def band_count(self) -> int:
        return self.bands.shape[0]

    @property
    def rows(self) -> int:
        return self.bands.shape[1]

    @property
    def cols(self) -> int:
        return self.bands.shape[2]


@dataclass
class TileFeature:
    """A tile carrying the Landsat metadata record it was cut from."""

    tile: MultibandTile
    data: MTL = field(default_factory=MTL)

    @property
    def cell_type(self) -> str:
        return self.tile.cell_type

    def prototype_cell_type(self, cell_type: str, cols: int, rows: int) -> "TileFeature":
        """
        Given a cell type and numbers of columns and rows, produce a new empty
        tile feature of the given size with the same band count as this one.
        """
        nodata = nodata_for(cell_type)
        return TileFeature(MultibandTile.empty(cell_type, self.tile.band_count, cols, rows, nodata), MTL())

    def prototype(self, cols: int, rows: int) -> "TileFeature":
        """
        Same as :meth:`prototype_cell_type`, keeping this feature's dtype and
        its nodata value when it declares one.
        """
        tile = MultibandTile.empty(self.tile.bands.dtype, self.tile.band_count, cols, rows, self.tile.nodata)
        return TileFeature(tile, MTL())
