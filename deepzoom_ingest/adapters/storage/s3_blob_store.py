# deepzoom_ingest/adapters/storage/s3_blob_store.py
import asyncio
import boto3
import structlog
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError
from typing import Optional

from deepzoom_ingest.core.domain.exceptions import StorageError
from deepzoom_ingest.shared.observability import get_tracer

logger = structlog.get_logger()
tracer = get_tracer(__name__)

NOT_FOUND_CODES = {"404", "NoSuchKey", "NotFound"}

class S3BlobStore:
    """
    Production Blob Store Adapter.
    Stores decrypted tiles as public-read objects in any S3-compatible bucket
    (AWS, OVH, MinIO). Path-style addressing is forced because several of
    those providers do not serve virtual-hosted bucket names.
    """

    def __init__(
        self,
        bucket: str,
        public_base_url: str,
        endpoint_url: Optional[str] = None,
        region_name: Optional[str] = None,
        aws_access_key_id: Optional[str] = None,
        aws_secret_access_key: Optional[str] = None,
        s3_client=None,
    ):
        # Credentials fall back to the standard AWS env/config chain when not given.
        self.s3_client = s3_client or boto3.client(
            "s3",
            endpoint_url=endpoint_url,
            region_name=region_name,
            aws_access_key_id=aws_access_key_id,
            aws_secret_access_key=aws_secret_access_key,
            config=Config(s3={"addressing_style": "path"}),
        )
        self.bucket = bucket
        self.public_base_url = public_base_url.rstrip("/")

    def public_url(self, key: str) -> str:
        return f"{self.public_base_url}/{key}"

    async def exists(self, key: str) -> bool:
        return await asyncio.to_thread(self._exists_sync, key)

    async def put(self, key: str, data: bytes, content_type: str) -> str:
        """
        Uploads the object unless it is already there.
        Non-blocking (runs in thread pool).
        """
        with tracer.start_as_current_span("s3_upload") as span:
            span.set_attribute("s3.bucket", self.bucket)
            span.set_attribute("s3.key", key)

            if await self.exists(key):
                span.set_attribute("s3.skipped", True)
                logger.debug("s3_object_exists", key=key)
                return self.public_url(key)

            await asyncio.to_thread(self._upload_sync, key, data, content_type)
            logger.debug("s3_object_uploaded", key=key, size=len(data))
            return self.public_url(key)

    # --- Synchronous Helpers (executed in thread pool) ---

    def _exists_sync(self, key: str) -> bool:
        try:
            self.s3_client.head_object(Bucket=self.bucket, Key=key)
            return True
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") in NOT_FOUND_CODES:
                return False
            raise StorageError(key, f"head_object failed: {e}")
        except BotoCoreError as e:
            raise StorageError(key, f"head_object failed: {e}")

    def _upload_sync(self, key: str, data: bytes, content_type: str) -> None:
        try:
            self.s3_client.put_object(
                Bucket=self.bucket,
                Key=key,
                Body=data,
                ContentType=content_type,
                ACL="public-read",
            )
        except (ClientError, BotoCoreError) as e:
            raise StorageError(key, f"put_object failed: {e}")
