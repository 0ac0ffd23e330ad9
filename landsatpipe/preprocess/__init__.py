# landsatpipe/preprocess/__init__.py
"""
landsatpipe.preprocess
======================

Pre-processing pipeline components:
-----------------------------------
* :pymod:`landsatpipe.preprocess.align` – reprojection to the destination CRS and 256 px chunking
"""

from .align import chunk_grid, reproject_raster, split_raster  # noqa: F401
