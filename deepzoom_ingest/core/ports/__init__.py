# deepzoom_ingest/core/ports/__init__.py
"""
Core Ports (Interfaces).

Protocols the Infrastructure Adapters must implement. They let the use cases
talk to the tile service, the blob store and the CMS without knowing the
implementation details.
"""

from .tile_source import ITileSource
from .blob_store import IBlobStore
from .metadata_store import IMetadataStore
from .retry_policy import IRetryPolicy

__all__ = [
    "ITileSource",
    "IBlobStore",
    "IMetadataStore",
    "IRetryPolicy",
]
