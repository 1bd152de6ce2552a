# tests/core/test_pyramid.py
import pytest
from pydantic import ValidationError

from deepzoom_ingest.core.domain.exceptions import DiscoveryError, FormatError
from deepzoom_ingest.core.domain.models import DescriptorLocation, TileCoordinate
from deepzoom_ingest.core.domain.pyramid import (
    build_tile_urls,
    find_descriptor_location,
    parse_descriptor,
    tile_id_for,
    tile_key,
)

ORIGIN = "https://lh3.ggpht.com/ci/AF1QipN=g"

class TestDiscovery:
    def test_finds_url_and_token(self, artwork_page_html):
        location = find_descriptor_location(artwork_page_html)

        assert location.image_url == "https://lh3.ggpht.com/ci/AF1QipN"
        assert location.token == "abc123"
        assert location.path == "ci/AF1QipN"
        assert location.descriptor_url == ORIGIN

    def test_null_token(self):
        page = '[[1]],"//lh3.ggpht.com/ci/XYZ",null,0]'
        location = find_descriptor_location(page)
        assert location.token == ""
        assert location.path == "ci/XYZ"

    def test_missing_literal_raises(self):
        with pytest.raises(DiscoveryError) as excinfo:
            find_descriptor_location("<html>no viewer here</html>", "https://example.test/asset/1")
        assert excinfo.value.source_url == "https://example.test/asset/1"

class TestParseDescriptor:
    def test_sample_descriptor(self, descriptor_xml):
        info = parse_descriptor(descriptor_xml, origin=ORIGIN)

        assert info.tile_size == 256
        assert info.max_zoom_level == 2
        assert info.num_tiles == 14
        assert (info.width, info.height) == (656, 576)
        assert info.full_pyramid_depth == 3
        assert info.timestamp == 1600000000
        assert info.tiler_version_number == "2"
        assert info.origin == ORIGIN

        coarsest = info.pyramid_levels[0]
        assert (coarsest.width, coarsest.height) == (100, 80)
        assert coarsest.inverse_scale == 4

    def test_missing_attributes_default_to_zero(self):
        info = parse_descriptor(
            '<TileInfo tile_width="512" tile_height="512"><pyramid_level num_tiles_x="1" num_tiles_y="1"/></TileInfo>',
            origin=ORIGIN,
        )
        level = info.pyramid_levels[0]
        assert level.empty_pels_x == 0
        assert level.inverse_scale == 0
        assert (info.width, info.height) == (512, 512)
        assert info.full_pyramid_depth == 0

    def test_nested_and_namespaced_tile_info(self):
        xml = (
            '<Envelope xmlns="urn:example"><TileInfo tile_width="256" tile_height="256">'
            '<pyramid_level num_tiles_x="2" num_tiles_y="1"/></TileInfo></Envelope>'
        )
        info = parse_descriptor(xml, origin=ORIGIN)
        assert info.num_tiles == 2

    @pytest.mark.parametrize(
        "xml",
        [
            "not xml at all",
            "<Other/>",
            '<TileInfo tile_width="256" tile_height="256"></TileInfo>',
            '<TileInfo tile_width="wide" tile_height="256"><pyramid_level num_tiles_x="1" num_tiles_y="1"/></TileInfo>',
        ],
    )
    def test_malformed_descriptor_raises(self, xml):
        with pytest.raises(FormatError):
            parse_descriptor(xml, origin=ORIGIN)

    def test_coordinates_order(self, descriptor_xml):
        info = parse_descriptor(descriptor_xml, origin=ORIGIN)
        coords = [(c.x, c.y, c.z) for c in info.coordinates()]

        assert len(coords) == info.num_tiles
        assert coords[:5] == [(0, 0, 0), (0, 0, 1), (0, 1, 1), (1, 0, 1), (1, 1, 1)]
        assert coords[-1] == (2, 2, 2)

class TestTileNaming:
    def test_tile_id(self):
        key = tile_key("abc123", TileCoordinate(x=2, y=3, z=4))
        assert key == "abc123/2/3/4"
        assert tile_id_for("img-42", key) == "img-42abc123_2_3_4"

    def test_negative_coordinate_rejected(self):
        with pytest.raises(ValidationError):
            TileCoordinate(x=-1, y=0, z=0)

    def test_build_tile_urls(self, descriptor_xml):
        info = parse_descriptor(descriptor_xml, origin=ORIGIN)
        location = DescriptorLocation(image_url="https://lh3.ggpht.com/ci/AF1QipN", token="abc123")

        urls = build_tile_urls(location, info)

        assert len(urls) == 14
        assert urls["abc123/1/2/2"].startswith("https://lh3.ggpht.com/ci/AF1QipN=x1-y2-z2-t")
        assert all(url.startswith("https://lh3.ggpht.com/ci/AF1QipN=x") for url in urls.values())
