# deepzoom_ingest/core/use_cases/__init__.py
"""
Core Use Cases (Application Logic).

The "Interactors" of the system. They orchestrate the flow of data between
the Domain Entities and the Infrastructure Ports:
- ResolveTileInfo: artwork page -> pyramid geometry.
- UploadTiles: batch download/decrypt/upload/record of a tile set.
- IngestArtwork: the two above plus job bookkeeping.
"""

from .resolve_tile_info import ResolveTileInfo, ResolvedArtwork
from .upload_tiles import UploadTiles
from .ingest_artwork import IngestArtwork

__all__ = [
    "ResolveTileInfo",
    "ResolvedArtwork",
    "UploadTiles",
    "IngestArtwork",
]
