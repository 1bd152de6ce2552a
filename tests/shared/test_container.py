# tests/shared/test_container.py
import httpx
import pytest
from dependency_injector import providers

from deepzoom_ingest.adapters.http.tile_source import HttpTileSource
from deepzoom_ingest.core.domain.exceptions import NetworkError
from deepzoom_ingest.core.use_cases import IngestArtwork, ResolveTileInfo, UploadTiles
from deepzoom_ingest.main import ingest_artwork

class TestContainerWiring:
    def test_use_cases_are_assembled(self, container, mock_tile_source, mock_metadata_store):
        ingest = container.ingest_artwork()

        assert isinstance(ingest, IngestArtwork)
        assert isinstance(ingest.resolver, ResolveTileInfo)
        assert isinstance(ingest.uploader, UploadTiles)
        assert ingest.resolver.source is mock_tile_source
        assert ingest.metadata_store is mock_metadata_store

    def test_singletons_are_shared(self, container):
        assert container.signer() is container.signer()
        assert container.decryptor() is container.decryptor()
        assert container.upload_tiles().decryptor is container.decryptor()

@pytest.mark.asyncio
class TestEntryPoint:

    async def test_ingest_artwork_closes_tile_source(self, container, mock_tile_source):
        """
        Scenario: The library entry point runs a job on an overridden container.
        Expected: Returns the summary and closes the shared HTTP client.
        """
        # Act
        summary = await ingest_artwork("https://artsandculture.example/asset/x", "img-42", container=container)

        # Assert
        assert summary.processed == 14
        mock_tile_source.aclose.assert_awaited_once()

    async def test_repeated_jobs_share_one_container(self, container, mock_tile_source, mock_metadata_store):
        """
        Scenario: Two jobs for the same artwork run back to back on one container.
        Expected: The second job skips every tile; the client is closed after each job.
        """
        # Act
        first = await ingest_artwork("https://artsandculture.example/asset/x", "img-42", container=container)
        second = await ingest_artwork("https://artsandculture.example/asset/x", "img-42", container=container)

        # Assert
        assert first.processed == 14
        assert second.processed == 0
        assert second.skipped == 14
        assert mock_tile_source.aclose.await_count == 2

    async def test_http_client_is_rebuilt_after_a_job(self, container):
        """
        Scenario: A real HTTP tile source answers 404; the job is run twice.
        Expected: Both runs fail with the HTTP status, never on a closed client.
        """
        # Arrange
        transport = httpx.MockTransport(lambda request: httpx.Response(404))
        container.tile_source.override(
            providers.Singleton(
                HttpTileSource,
                client=providers.Factory(httpx.AsyncClient, transport=transport),
            )
        )
        first_source = container.tile_source()

        # Act & Assert
        for _ in range(2):
            with pytest.raises(NetworkError) as excinfo:
                await ingest_artwork("https://artsandculture.example/asset/x", "img-42", container=container)
            assert excinfo.value.status_code == 404
            assert "closed" not in str(excinfo.value)

        assert first_source.client.is_closed
        assert container.tile_source() is not first_source
