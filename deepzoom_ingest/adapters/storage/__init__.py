# deepzoom_ingest/adapters/storage/__init__.py
"""
Blob Store Adapters.

- S3BlobStore: public-read objects in an S3-compatible bucket.
- FileSystemBlobStore: files under a local directory.
"""

from .s3_blob_store import S3BlobStore
from .filesystem_blob_store import FileSystemBlobStore

__all__ = [
    "S3BlobStore",
    "FileSystemBlobStore",
]
