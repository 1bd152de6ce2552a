# deepzoom_ingest/adapters/storage/filesystem_blob_store.py
import aiofiles
import structlog
from pathlib import Path
from typing import Optional

from deepzoom_ingest.core.domain.exceptions import StorageError

logger = structlog.get_logger()

class FileSystemBlobStore:
    """
    Blob store backed by a local directory, for development and for hosts
    that serve the directory themselves.
    """

    def __init__(self, root: str, public_base_url: Optional[str] = None):
        self.root = Path(root)
        self.root.mkdir(parents=True, exist_ok=True)
        self.public_base_url = public_base_url.rstrip("/") if public_base_url else None

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise StorageError(key, "key escapes the blob root")
        return path

    def public_url(self, key: str) -> str:
        if self.public_base_url:
            return f"{self.public_base_url}/{key}"
        return self._path(key).as_uri()

    async def exists(self, key: str) -> bool:
        return self._path(key).is_file()

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        path = self._path(key)
        if path.is_file():
            return self.public_url(key)

        path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = path.with_name(path.name + ".part")
        try:
            async with aiofiles.open(tmp_path, mode="wb") as f:
                await f.write(data)
            tmp_path.replace(path)
        except OSError as e:
            logger.error("blob_write_failed", key=key, error=str(e))
            raise StorageError(key, str(e))

        logger.debug("blob_written", key=key, size=len(data), content_type=content_type)
        return self.public_url(key)
