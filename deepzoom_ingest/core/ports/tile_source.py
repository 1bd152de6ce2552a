# deepzoom_ingest/core/ports/tile_source.py
from typing import Protocol

class ITileSource(Protocol):
    """
    Port for reading from the tile service over the network.

    Implementations must bound every call (timeout, body size) and raise
    NetworkError for timeouts, connection failures and non-2xx responses.
    """

    async def fetch_text(self, url: str) -> str:
        """Fetches a text document (artwork page, pyramid descriptor)."""
        ...

    async def fetch_bytes(self, url: str) -> bytes:
        """Fetches a raw tile payload."""
        ...

    async def aclose(self) -> None:
        """Releases pooled connections."""
        ...
