# landsatpipe/__init__.py
"""Landsat scenes → spatio-temporally keyed 256 px chunks for tiled layers."""

__version__ = "0.1.0"
