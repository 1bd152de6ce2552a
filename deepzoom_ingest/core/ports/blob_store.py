# deepzoom_ingest/core/ports/blob_store.py
from typing import Protocol

class IBlobStore(Protocol):
    """
    Port for the public object store that serves decrypted tiles.
    """

    async def exists(self, key: str) -> bool:
        """Returns True if an object is already stored under `key`."""
        ...

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Stores `data` under `key` and returns its public URL.

        Must be idempotent: when the object already exists the existing URL is
        returned without re-uploading.

        Raises:
            StorageError: the object could not be checked or written.
        """
        ...
