# deepzoom_ingest/core/domain/signing.py
"""
Tile request signing.

The tile service only serves a tile when its path carries an HMAC-SHA1
signature of the unsigned path. The encoding is NOT base64url: both '+' and
'/' map to '_' and the '=' padding is dropped. The server validates the exact
bytes, so this must not be "corrected".
"""
import base64
import hashlib
import hmac

# 8-byte key used by the tile service's own web client.
DEFAULT_SIGNING_KEY_HEX = "7b2b4e23de2cc5c5"

def make_path(path: str, token: str, x: int, y: int, z: int) -> str:
    return f"{path}=x{x}-y{y}-z{z}-t{token}"

def encode_signature(digest: bytes) -> str:
    encoded = base64.b64encode(digest).decode("ascii")
    return encoded.replace("+", "_").replace("/", "_").rstrip("=")

class UrlSigner:
    """Computes signed tile paths. Stateless apart from the key."""

    def __init__(self, key_hex: str = DEFAULT_SIGNING_KEY_HEX):
        self._key = bytes.fromhex(key_hex)

    def sign(self, unsigned_path: str) -> str:
        digest = hmac.new(self._key, unsigned_path.encode("utf-8"), hashlib.sha1).digest()
        return encode_signature(digest)

    def compute_signed_path(self, path: str, token: str, x: int, y: int, z: int) -> str:
        """
        Returns `{path}=x{x}-y{y}-z{z}-t{signature}` where the signature is
        computed over the same template holding the page token.
        """
        signature = self.sign(make_path(path, token, x, y, z))
        return make_path(path, signature, x, y, z)

def compute_signed_path(path: str, token: str, x: int, y: int, z: int) -> str:
    """Signs with the default key."""
    return UrlSigner().compute_signed_path(path, token, x, y, z)
