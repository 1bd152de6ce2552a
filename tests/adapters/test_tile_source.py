# tests/adapters/test_tile_source.py
import httpx
import pytest

from deepzoom_ingest.adapters.http.tile_source import HttpTileSource
from deepzoom_ingest.core.domain.exceptions import NetworkError

def make_source(handler, max_bytes=1024):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return HttpTileSource(max_bytes=max_bytes, client=client)

@pytest.mark.asyncio
class TestHttpTileSource:

    async def test_fetch_bytes_success(self):
        """
        Scenario: The tile service returns 200 with a body under the cap.
        Expected: The raw body is returned.
        """
        # Arrange
        source = make_source(lambda request: httpx.Response(200, content=b"\x0a\x0a\x0a\x0abody"))

        # Act
        async with source:
            body = await source.fetch_bytes("https://lh3.ggpht.com/ci/A=x0-y0-z0-tsig")

        # Assert
        assert body == b"\x0a\x0a\x0a\x0abody"

    async def test_fetch_text_decodes(self):
        source = make_source(lambda request: httpx.Response(200, text="<TileInfo tiler_version_number=\"é\"/>"))

        text = await source.fetch_text("https://lh3.ggpht.com/ci/A=g")

        assert text == "<TileInfo tiler_version_number=\"é\"/>"

    async def test_non_2xx_raises_with_status(self):
        source = make_source(lambda request: httpx.Response(403, content=b"denied"))

        with pytest.raises(NetworkError) as excinfo:
            await source.fetch_bytes("https://lh3.ggpht.com/ci/A=x0-y0-z0-tbad")

        assert excinfo.value.status_code == 403
        assert excinfo.value.url == "https://lh3.ggpht.com/ci/A=x0-y0-z0-tbad"

    async def test_oversized_body_raises(self):
        """
        Scenario: The body is larger than the configured cap.
        Expected: NetworkError instead of buffering the whole body.
        """
        # Arrange
        source = make_source(lambda request: httpx.Response(200, content=b"x" * 2048), max_bytes=1024)

        # Act & Assert
        with pytest.raises(NetworkError) as excinfo:
            await source.fetch_bytes("https://lh3.ggpht.com/ci/A=x0-y0-z0-t")
        assert "exceeds cap" in str(excinfo.value)

    async def test_timeout_raises(self):
        def handler(request):
            raise httpx.ReadTimeout("slow", request=request)

        source = make_source(handler)

        with pytest.raises(NetworkError) as excinfo:
            await source.fetch_bytes("https://lh3.ggpht.com/ci/A=x0-y0-z0-t")
        assert "timed out" in str(excinfo.value)

    async def test_connection_error_raises(self):
        def handler(request):
            raise httpx.ConnectError("refused", request=request)

        source = make_source(handler)

        with pytest.raises(NetworkError):
            await source.fetch_text("https://lh3.ggpht.com/ci/A=g")
