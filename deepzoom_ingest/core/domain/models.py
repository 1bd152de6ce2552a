# deepzoom_ingest/core/domain/models.py
from enum import Enum
from typing import Iterator, Optional, Tuple
from urllib.parse import urljoin, urlparse
from pydantic import BaseModel, ConfigDict, Field

from deepzoom_ingest.core.domain.signing import UrlSigner

# --- Enums ---

class TileState(str, Enum):
    """Lifecycle of a single tile inside an upload job."""
    PENDING = "pending"
    SKIPPED = "skipped"         # Already recorded, or lost a uniqueness race
    DOWNLOADING = "downloading"
    DECRYPTING = "decrypting"
    UPLOADING = "uploading"
    RECORDED = "recorded"       # Uploaded and registered in the metadata store
    FAILED = "failed"

# --- Geometry ---

class PyramidLevel(BaseModel):
    """
    One zoom resolution of the deep-zoom pyramid.
    Pixel dimensions are derived from the tile grid, see `from_descriptor`.
    """
    model_config = ConfigDict(frozen=True)

    num_tiles_x: int
    num_tiles_y: int
    inverse_scale: int = 0
    empty_pels_x: int = 0
    empty_pels_y: int = 0
    width: int
    height: int

    @classmethod
    def from_descriptor(
        cls,
        *,
        num_tiles_x: int,
        num_tiles_y: int,
        inverse_scale: int,
        empty_pels_x: int,
        empty_pels_y: int,
        tile_width: int,
        tile_height: int,
    ) -> "PyramidLevel":
        return cls(
            num_tiles_x=num_tiles_x,
            num_tiles_y=num_tiles_y,
            inverse_scale=inverse_scale,
            empty_pels_x=empty_pels_x,
            empty_pels_y=empty_pels_y,
            width=num_tiles_x * tile_width - empty_pels_x,
            height=num_tiles_y * tile_height - empty_pels_y,
        )

    @property
    def tile_count(self) -> int:
        return self.num_tiles_x * self.num_tiles_y

class TileCoordinate(BaseModel):
    """Grid position of a tile; `z` indexes `TileInfo.pyramid_levels`."""
    model_config = ConfigDict(frozen=True)

    x: int = Field(..., ge=0)
    y: int = Field(..., ge=0)
    z: int = Field(..., ge=0)

class TileInfo(BaseModel):
    """
    Parsed pyramid descriptor. The last level is full resolution.
    """
    model_config = ConfigDict(frozen=True)

    width: int
    height: int
    tile_size: int
    num_tiles: int
    max_zoom_level: int
    origin: str = Field(..., description="URL the descriptor was fetched from")
    full_pyramid_depth: int = 0
    timestamp: int = 0
    tiler_version_number: str = ""
    pyramid_levels: Tuple[PyramidLevel, ...]

    @classmethod
    def from_levels(
        cls,
        levels: Tuple[PyramidLevel, ...],
        *,
        tile_size: int,
        origin: str,
        full_pyramid_depth: int = 0,
        timestamp: int = 0,
        tiler_version_number: str = "",
    ) -> "TileInfo":
        top = levels[-1]
        return cls(
            width=top.width,
            height=top.height,
            tile_size=tile_size,
            num_tiles=sum(level.tile_count for level in levels),
            max_zoom_level=len(levels) - 1,
            origin=origin,
            full_pyramid_depth=full_pyramid_depth,
            timestamp=timestamp,
            tiler_version_number=tiler_version_number,
            pyramid_levels=tuple(levels),
        )

    def coordinates(self) -> Iterator[TileCoordinate]:
        """Every tile of every level: level by level, then column, then row."""
        for z, level in enumerate(self.pyramid_levels):
            for x in range(level.num_tiles_x):
                for y in range(level.num_tiles_y):
                    yield TileCoordinate(x=x, y=y, z=z)

# --- Discovery & Requests ---

class DescriptorLocation(BaseModel):
    """Tile service coordinates embedded in an artwork page."""
    model_config = ConfigDict(frozen=True)

    image_url: str = Field(..., description="Absolute tile service URL, e.g. https://lh3.ggpht.com/abc")
    token: str = ""

    @property
    def path(self) -> str:
        """Image path without the leading slash; the signing base."""
        return urlparse(self.image_url).path[1:]

    @property
    def descriptor_url(self) -> str:
        return f"{self.image_url}=g"

class SignedTileRequest(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_path: str
    token: str
    x: int
    y: int
    z: int

    def signed_path(self, signer: Optional[UrlSigner] = None) -> str:
        return (signer or UrlSigner()).compute_signed_path(self.base_path, self.token, self.x, self.y, self.z)

    def url(self, origin: str, signer: Optional[UrlSigner] = None) -> str:
        """Resolves the signed path against the root of the descriptor origin."""
        return urljoin(origin, "/" + self.signed_path(signer))

# --- Persistence ---

class TileRecord(BaseModel):
    """A decrypted tile that has been uploaded; unique by tile_id."""
    tile_id: str
    tile_url: str

# --- Job Results ---

class TileResult(BaseModel):
    """Tagged outcome of one tile task. Tasks return these instead of raising."""
    key: str
    tile_id: str
    state: TileState
    failed_stage: Optional[TileState] = None
    error_kind: Optional[str] = None
    error: Optional[str] = None
    tile_url: Optional[str] = None

class JobSummary(BaseModel):
    job_id: Optional[str] = None
    processed: int = 0
    failed: int = 0
    skipped: int = 0
    total: int = 0
    cancelled: bool = False
