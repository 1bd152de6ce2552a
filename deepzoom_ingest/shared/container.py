# deepzoom_ingest/shared/container.py
from dependency_injector import containers, providers

from deepzoom_ingest.shared.config import settings
from deepzoom_ingest.shared.resilience import build_retry_policy
from deepzoom_ingest.adapters.http.tile_source import HttpTileSource
from deepzoom_ingest.adapters.storage.s3_blob_store import S3BlobStore
from deepzoom_ingest.adapters.storage.filesystem_blob_store import FileSystemBlobStore
from deepzoom_ingest.adapters.persistence.strapi_metadata_store import StrapiMetadataStore
from deepzoom_ingest.adapters.persistence.filesystem_metadata_store import FileSystemMetadataStore

from deepzoom_ingest.core.domain.decryption import TileDecryptor
from deepzoom_ingest.core.domain.signing import UrlSigner
from deepzoom_ingest.core.use_cases.resolve_tile_info import ResolveTileInfo
from deepzoom_ingest.core.use_cases.upload_tiles import UploadTiles
from deepzoom_ingest.core.use_cases.ingest_artwork import IngestArtwork

class Container(containers.DeclarativeContainer):
    """
    Dependency Injection Container.

    This declarative container defines the assembly instructions for one
    ingestion process.
    """

    # 1. Configuration
    # We load settings directly, but wrapping them allows overriding in tests.
    config = providers.Configuration(pydantic_settings=[settings])

    # 2. Domain services (pure, keyed by secrets)
    signer = providers.Singleton(
        UrlSigner,
        key_hex=config.URL_SIGNING_KEY_HEX,
    )

    decryptor = providers.Singleton(
        TileDecryptor,
        key_hex=config.TILE_AES_KEY_HEX,
        iv_hex=config.TILE_AES_IV_HEX,
    )

    retry_policy = providers.Singleton(
        build_retry_policy,
        enabled=config.RETRY_ENABLED,
        attempts=config.RETRY_ATTEMPTS,
        delay_seconds=config.RETRY_DELAY_SECONDS,
    )

    # 3. Gateways (Infrastructure Adapters)

    # Tile service client (Singleton: one connection pool per job)
    tile_source = providers.Singleton(
        HttpTileSource,
        timeout_seconds=config.HTTP_TIMEOUT_SECONDS,
        max_bytes=config.MAX_TILE_BYTES,
    )

    # Backends are selected on the enum's value; the str-Enum members
    # themselves do not hash like their values.
    blob_store = providers.Selector(
        providers.Callable(lambda: settings.STORAGE_BACKEND.value),
        filesystem=providers.Singleton(
            FileSystemBlobStore,
            root=config.FILESYSTEM_BLOB_ROOT,
            public_base_url=config.FILESYSTEM_PUBLIC_BASE_URL,
        ),
        s3=providers.Singleton(
            S3BlobStore,
            bucket=config.S3_BUCKET_NAME,
            public_base_url=providers.Callable(lambda: settings.s3_public_base_url),
            endpoint_url=config.S3_ENDPOINT_URL,
            region_name=config.S3_REGION,
            aws_access_key_id=config.S3_ACCESS_KEY_ID,
            aws_secret_access_key=config.S3_SECRET_ACCESS_KEY,
        ),
    )

    metadata_store = providers.Selector(
        providers.Callable(lambda: settings.METADATA_BACKEND.value),
        filesystem=providers.Singleton(
            FileSystemMetadataStore,
            path=config.METADATA_FILE_PATH,
        ),
        strapi=providers.Singleton(
            StrapiMetadataStore,
            base_url=config.CMS_BASE_URL,
            api_token=config.CMS_API_TOKEN,
            timeout_seconds=config.HTTP_TIMEOUT_SECONDS,
        ),
    )

    # 4. Use Cases (Application Logic)

    # Factory: New instance created for every job (stateless logic),
    # but with Singleton dependencies injected.

    resolve_tile_info = providers.Factory(
        ResolveTileInfo,
        source=tile_source,
    )

    upload_tiles = providers.Factory(
        UploadTiles,
        source=tile_source,
        blob_store=blob_store,
        metadata_store=metadata_store,
        decryptor=decryptor,
        retry_policy=retry_policy,
        tile_extension=config.TILE_EXTENSION,
        content_type=config.TILE_CONTENT_TYPE,
        default_batch_size=config.TILE_UPLOAD_BATCH_SIZE,
    )

    ingest_artwork = providers.Factory(
        IngestArtwork,
        resolver=resolve_tile_info,
        uploader=upload_tiles,
        metadata_store=metadata_store,
        signer=signer,
    )

# Instantiate the container for global access (e.g. by the job entrypoint)
container = Container()
