# landsatpipe/ingest/__init__.py
"""
landsatpipe.ingest
==================

Scene description and retrieval:
--------------------------------
* :pymod:`landsatpipe.ingest.locator` – scene descriptors and immutable batches
* :pymod:`landsatpipe.ingest.mtl`     – Landsat MTL metadata parsing
* :pymod:`landsatpipe.ingest.s3`      – primary source (AWS public bucket)
* :pymod:`landsatpipe.ingest.google`  – secondary source (Google public bucket)
* :pymod:`landsatpipe.ingest.fetch`   – primary → secondary fallback strategy
"""
