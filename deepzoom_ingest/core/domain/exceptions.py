# deepzoom_ingest/core/domain/exceptions.py
from typing import Optional

class DomainError(Exception):
    """Base class for all domain-level exceptions."""
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)

# --- Resolution Errors (fatal to the whole job) ---

class DiscoveryError(DomainError):
    """Raised when the asset page does not embed the tile service URL/token literal."""
    def __init__(self, source_url: str, reason: str = "embedded tile metadata not found"):
        self.source_url = source_url
        super().__init__(f"Unable to discover tile service for '{source_url}': {reason}")

class FormatError(DomainError):
    """Raised for a malformed pyramid descriptor or an out-of-bounds tile container."""
    def __init__(self, reason: str):
        super().__init__(f"Malformed payload: {reason}")

# --- Per-Tile Errors (counted, never fatal) ---

class NetworkError(DomainError):
    """Raised on timeout, connection failure, oversized body, or non-2xx response."""
    def __init__(self, url: str, reason: str, status_code: Optional[int] = None):
        self.url = url
        self.status_code = status_code
        super().__init__(f"Request to '{url}' failed: {reason}")

class DuplicateError(DomainError):
    """Raised by a metadata store when a tile record with the same tileID already exists."""
    def __init__(self, tile_id: str):
        self.tile_id = tile_id
        super().__init__(f"Tile record '{tile_id}' already exists.")

class StorageError(DomainError):
    """Raised when the blob store cannot check or write an object."""
    def __init__(self, key: str, reason: str):
        self.key = key
        super().__init__(f"Blob store operation on '{key}' failed: {reason}")
