# deepzoom_ingest/adapters/http/__init__.py
from .tile_source import HttpTileSource

__all__ = ["HttpTileSource"]
