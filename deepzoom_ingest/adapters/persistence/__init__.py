# deepzoom_ingest/adapters/persistence/__init__.py
"""
Persistence Adapters.

Implement IMetadataStore: tile records, tile-info summaries, pyramid levels
and job progress.

Components:
- StrapiMetadataStore: the CMS REST API.
- FileSystemMetadataStore: a local JSON document.
"""

from .strapi_metadata_store import StrapiMetadataStore
from .filesystem_metadata_store import FileSystemMetadataStore

__all__ = [
    "StrapiMetadataStore",
    "FileSystemMetadataStore",
]
