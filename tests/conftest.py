# tests/conftest.py
import pytest
from unittest.mock import AsyncMock, MagicMock

from deepzoom_ingest.shared.container import Container
from deepzoom_ingest.shared.resilience import NoRetry
from deepzoom_ingest.core.domain.exceptions import DuplicateError
from deepzoom_ingest.core.domain.models import TileRecord
from deepzoom_ingest.core.ports.tile_source import ITileSource
from deepzoom_ingest.core.ports.blob_store import IBlobStore
from deepzoom_ingest.core.ports.metadata_store import IMetadataStore

ARTWORK_URL = "https://artsandculture.example/asset/the-starry-night/bgEuwDxel93-Pg"
IMAGE_URL = "https://lh3.ggpht.com/ci/AF1QipN"
DESCRIPTOR_URL = IMAGE_URL + "=g"
PAGE_TOKEN = "abc123"

ARTWORK_PAGE_HTML = (
    '<html><head><script>window.INIT_data = [["Stg",[1,2,3]]\n'
    ',"//lh3.ggpht.com/ci/AF1QipN","abc123",null,false];</script></head>'
    "<body>The Starry Night</body></html>"
)

# 1x1, 2x2 and 3x3 tiles of 256px: 14 tiles, full resolution 656x576.
DESCRIPTOR_XML = """<?xml version="1.0" encoding="UTF-8"?>
<TileInfo tile_width="256" tile_height="256" full_pyramid_depth="3" origin="0" timestamp="1600000000" tiler_version_number="2">
  <pyramid_level num_tiles_x="1" num_tiles_y="1" inverse_scale="4" empty_pels_x="156" empty_pels_y="176"/>
  <pyramid_level num_tiles_x="2" num_tiles_y="2" inverse_scale="2" empty_pels_x="56" empty_pels_y="96"/>
  <pyramid_level num_tiles_x="3" num_tiles_y="3" inverse_scale="1" empty_pels_x="112" empty_pels_y="192"/>
</TileInfo>
"""

PLAIN_TILE = b"\xff\xd8\xff\xe0plain-jpeg-bytes"

@pytest.fixture(scope="function")
def mock_tile_source():
    """Returns a mock Tile Source serving the sample page and descriptor."""
    source = MagicMock(spec=ITileSource)

    async def fetch_text(url):
        return DESCRIPTOR_XML if url == DESCRIPTOR_URL else ARTWORK_PAGE_HTML

    source.fetch_text = AsyncMock(side_effect=fetch_text)
    source.fetch_bytes = AsyncMock(return_value=PLAIN_TILE)
    source.aclose = AsyncMock()
    return source

@pytest.fixture(scope="function")
def mock_blob_store():
    """Returns a mock Blob Store that hands back a CDN URL per key."""
    store = MagicMock(spec=IBlobStore)
    store.exists = AsyncMock(return_value=False)

    async def put(key, data, content_type):
        return f"https://cdn.test/tiles/{key}"

    store.put = AsyncMock(side_effect=put)
    return store

@pytest.fixture(scope="function")
def mock_metadata_store():
    """
    Returns a mock Metadata Store backed by a dict, so that recorded tiles
    are seen by later lookups (and by a second run).
    """
    records = {}
    store = MagicMock(spec=IMetadataStore)

    async def find_tile_by_id(tile_id):
        return records.get(tile_id)

    async def create_tile_record(tile_id, tile_url):
        if tile_id in records:
            raise DuplicateError(tile_id)
        records[tile_id] = TileRecord(tile_id=tile_id, tile_url=tile_url)
        return records[tile_id]

    store.find_tile_by_id = AsyncMock(side_effect=find_tile_by_id)
    store.create_tile_record = AsyncMock(side_effect=create_tile_record)
    store.update_progress = AsyncMock()
    store.create_tile_info = AsyncMock(return_value="job-1")
    store.create_pyramid_level = AsyncMock()
    store.records = records
    return store

@pytest.fixture(scope="function")
def container(mock_tile_source, mock_blob_store, mock_metadata_store):
    """
    Sets up the Dependency Injection Container for testing.
    It overrides real infrastructure providers with the mocks defined above.
    """
    container = Container()

    # Override dependencies with mocks
    container.tile_source.override(mock_tile_source)
    container.blob_store.override(mock_blob_store)
    container.metadata_store.override(mock_metadata_store)
    container.retry_policy.override(NoRetry())

    yield container

    # Clean up overrides after test
    container.reset_override()

@pytest.fixture
def tile_urls():
    """Ten tiles of a single 5x2 level."""
    return {
        f"{PAGE_TOKEN}/{x}/{y}/0": f"https://lh3.ggpht.com/ci/AF1QipN=x{x}-y{y}-z0-tsig"
        for x in range(5)
        for y in range(2)
    }

@pytest.fixture
def descriptor_xml():
    return DESCRIPTOR_XML

@pytest.fixture
def artwork_page_html():
    return ARTWORK_PAGE_HTML
