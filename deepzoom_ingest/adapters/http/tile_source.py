# deepzoom_ingest/adapters/http/tile_source.py
import httpx
import structlog
from typing import Optional, Tuple

from deepzoom_ingest import __version__
from deepzoom_ingest.core.domain.exceptions import NetworkError

logger = structlog.get_logger()

DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_BYTES = 10 * 1024 * 1024

class HttpTileSource:
    """
    Adapter for the tile service over HTTP(S).

    Responsibilities:
    1. Bound every request (timeout and response size cap).
    2. Translate transport failures and non-2xx responses into NetworkError.
    3. Share one connection pool across all tiles of a job.
    """

    def __init__(
        self,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
        max_bytes: int = DEFAULT_MAX_BYTES,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.max_bytes = max_bytes
        self.client = client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
            follow_redirects=True,
            headers={"User-Agent": f"deepzoom-ingest/{__version__}"},
        )

    async def fetch_text(self, url: str) -> str:
        body, encoding = await self._get(url)
        return body.decode(encoding or "utf-8", errors="replace")

    async def fetch_bytes(self, url: str) -> bytes:
        body, _ = await self._get(url)
        return body

    async def aclose(self) -> None:
        await self.client.aclose()

    async def __aenter__(self) -> "HttpTileSource":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _get(self, url: str) -> Tuple[bytes, Optional[str]]:
        try:
            async with self.client.stream("GET", url) as response:
                if not response.is_success:
                    raise NetworkError(url, f"HTTP {response.status_code}", status_code=response.status_code)

                declared = response.headers.get("content-length")
                if declared and declared.isdigit() and int(declared) > self.max_bytes:
                    raise NetworkError(url, f"declared body of {declared} bytes exceeds cap of {self.max_bytes}")

                body = bytearray()
                async for chunk in response.aiter_bytes():
                    body.extend(chunk)
                    if len(body) > self.max_bytes:
                        raise NetworkError(url, f"body exceeds cap of {self.max_bytes} bytes")

                logger.debug("http_fetch_ok", url=url, status=response.status_code, size=len(body))
                return bytes(body), response.encoding
        except httpx.TimeoutException as e:
            raise NetworkError(url, f"timed out ({type(e).__name__})")
        except httpx.HTTPError as e:
            raise NetworkError(url, str(e) or type(e).__name__)
