# landsatpipe/tiling/__init__.py
"""
landsatpipe.tiling
==================

* :pymod:`landsatpipe.tiling.layout`   – extents, zoomed layouts, space-time keys
* :pymod:`landsatpipe.tiling.tiles`    – projected rasters, multiband tiles, prototypes
* :pymod:`landsatpipe.tiling.metadata` – batch layer metadata
"""
