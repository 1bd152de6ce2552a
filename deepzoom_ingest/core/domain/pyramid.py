# deepzoom_ingest/core/domain/pyramid.py
"""
Pure helpers around the deep-zoom pyramid: locating the tile service from an
artwork page, parsing the `=g` descriptor, and naming every tile.
"""
import re
import xml.etree.ElementTree as ET
from typing import Dict, Optional

from deepzoom_ingest.core.domain.exceptions import DiscoveryError, FormatError
from deepzoom_ingest.core.domain.models import (
    DescriptorLocation,
    PyramidLevel,
    SignedTileRequest,
    TileCoordinate,
    TileInfo,
)
from deepzoom_ingest.core.domain.signing import UrlSigner

# The artwork page embeds its viewer state as a JS array literal; the tile
# service URL is the protocol-relative string right after a closing bracket,
# followed by the page token (or null).
EMBEDDED_TILE_SERVICE_RE = re.compile(
    r'\]\n?,"(?P<url>//[a-zA-Z0-9./_\-]+)",(?:"(?P<token>[^"]+)"|null)'
)

TILE_INFO_TAG = "TileInfo"

def find_descriptor_location(page_html: str, source_url: str = "") -> DescriptorLocation:
    """
    Extracts the tile service URL and token from an artwork page.

    Raises:
        DiscoveryError: the embedded literal is not present.
    """
    match = EMBEDDED_TILE_SERVICE_RE.search(page_html)
    if not match:
        raise DiscoveryError(source_url)
    return DescriptorLocation(
        image_url="https:" + match.group("url"),
        token=match.group("token") or "",
    )

def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]

def _int_attr(element: ET.Element, name: str) -> int:
    raw = element.get(name)
    if raw is None or raw.strip() == "":
        return 0
    try:
        return int(raw.strip())
    except ValueError:
        raise FormatError(f"attribute {name}={raw!r} on <{_local_name(element.tag)}> is not an integer")

def _find_tile_info(root: ET.Element) -> Optional[ET.Element]:
    if _local_name(root.tag) == TILE_INFO_TAG:
        return root
    for element in root.iter():
        if _local_name(element.tag) == TILE_INFO_TAG:
            return element
    return None

def parse_descriptor(xml_text: str, origin: str) -> TileInfo:
    """
    Parses a pyramid descriptor document into a TileInfo.

    Missing numeric attributes default to 0. Every element child of
    <TileInfo> is one level, coarsest first.

    Raises:
        FormatError: unparseable XML, no TileInfo element, non-integer
            attribute, or no levels.
    """
    try:
        root = ET.fromstring(xml_text)
    except ET.ParseError as e:
        raise FormatError(f"descriptor is not valid XML ({e})")

    info = _find_tile_info(root)
    if info is None:
        raise FormatError(f"descriptor has no <{TILE_INFO_TAG}> element")

    tile_width = _int_attr(info, "tile_width")
    tile_height = _int_attr(info, "tile_height")

    levels = tuple(
        PyramidLevel.from_descriptor(
            num_tiles_x=_int_attr(child, "num_tiles_x"),
            num_tiles_y=_int_attr(child, "num_tiles_y"),
            inverse_scale=_int_attr(child, "inverse_scale"),
            empty_pels_x=_int_attr(child, "empty_pels_x"),
            empty_pels_y=_int_attr(child, "empty_pels_y"),
            tile_width=tile_width,
            tile_height=tile_height,
        )
        for child in info
    )
    if not levels:
        raise FormatError("descriptor declares no pyramid levels")

    return TileInfo.from_levels(
        levels,
        tile_size=tile_width,
        origin=origin,
        full_pyramid_depth=_int_attr(info, "full_pyramid_depth"),
        timestamp=_int_attr(info, "timestamp"),
        tiler_version_number=info.get("tiler_version_number") or "",
    )

def tile_key(token: str, coord: TileCoordinate) -> str:
    return f"{token}/{coord.x}/{coord.y}/{coord.z}"

def tile_id_for(image_id: str, key: str) -> str:
    """
    Canonical tile id: the image id followed by the key with slashes made
    filesystem safe, e.g. ("img-42", "abc123/2/3/4") -> "img-42abc123_2_3_4".
    """
    return f"{image_id}{key.replace('/', '_')}"

def build_tile_urls(
    location: DescriptorLocation,
    tile_info: TileInfo,
    signer: Optional[UrlSigner] = None,
) -> Dict[str, str]:
    """Signed download URL for every tile, keyed by `tile_key`."""
    signer = signer or UrlSigner()
    urls: Dict[str, str] = {}
    for coord in tile_info.coordinates():
        request = SignedTileRequest(
            base_path=location.path,
            token=location.token,
            x=coord.x,
            y=coord.y,
            z=coord.z,
        )
        urls[tile_key(location.token, coord)] = request.url(tile_info.origin, signer)
    return urls
