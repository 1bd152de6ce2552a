# deepzoom_ingest/core/domain/decryption.py
"""
Tile container decoding.

Some tiles arrive wrapped in a container whose middle section is AES-128-CBC
encrypted:

    marker (u32 BE) | clear prefix (index bytes) | replace count (u32 LE)
    | encrypted (replace count bytes) | clear suffix | index (u32 LE)

Tiles without the marker are plain images and pass through untouched.
"""
import struct

from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from deepzoom_ingest.core.domain.exceptions import FormatError

CONTAINER_MARKER = 0x0A0A0A0A

# Lifted from the tile service's web client; no known rotation policy.
DEFAULT_AES_KEY_HEX = "5b63db113b7af3e0b1435556c8f9530c"
DEFAULT_AES_IV_HEX = "71e70405353a778bfa6fbc30321b9592"

PAD_PLAINTEXT = bytes([16]) * 32
PAD_LENGTH = len(PAD_PLAINTEXT)

_U32_BE = struct.Struct(">I")
_U32_LE = struct.Struct("<I")

class TileDecryptor:
    """
    Strips the encrypted container from a tile payload.

    The web client this mirrors can only call a PKCS#7-padded CBC primitive,
    so it appends a fixed block (the encryption of 32 bytes of 0x10) to the
    ciphertext and throws away the last 32 bytes of the result. The same
    construction is reproduced here with raw CBC so outputs match byte for
    byte.
    """

    def __init__(self, key_hex: str = DEFAULT_AES_KEY_HEX, iv_hex: str = DEFAULT_AES_IV_HEX):
        self._key = bytes.fromhex(key_hex)
        self._iv = bytes.fromhex(iv_hex)
        self.pad = self._encrypt_raw(PAD_PLAINTEXT)

    def _cipher(self) -> Cipher:
        return Cipher(algorithms.AES(self._key), modes.CBC(self._iv))

    def _encrypt_raw(self, data: bytes) -> bytes:
        encryptor = self._cipher().encryptor()
        return encryptor.update(data) + encryptor.finalize()

    def decrypt_block(self, encrypted: bytes) -> bytes:
        """Decrypts `encrypted || PAD` and drops the trailing PAD_LENGTH bytes."""
        decryptor = self._cipher().decryptor()
        try:
            decrypted = decryptor.update(encrypted + self.pad) + decryptor.finalize()
        except ValueError as e:
            raise FormatError(f"encrypted section of {len(encrypted)} bytes is not block aligned ({e})")
        return decrypted[:len(decrypted) - PAD_LENGTH]

    @staticmethod
    def is_container(buffer: bytes) -> bool:
        return len(buffer) >= 4 and _U32_BE.unpack_from(buffer, 0)[0] == CONTAINER_MARKER

    def decrypt(self, buffer: bytes) -> bytes:
        """
        Returns the plain image bytes for a tile payload.

        Raises:
            FormatError: the marker is present but an offset points outside
                the buffer, or the encrypted section is not block aligned.
        """
        if not self.is_container(buffer):
            return bytes(buffer)

        size = len(buffer)
        # marker + trailing index word
        if size < 8:
            raise FormatError(f"container of {size} bytes has no room for its trailer")
        trailer_start = size - 4

        index = _U32_LE.unpack_from(buffer, trailer_start)[0]
        count_start = 4 + index
        if count_start + 4 > trailer_start:
            raise FormatError(f"clear prefix length {index} exceeds container of {size} bytes")

        replace_count = _U32_LE.unpack_from(buffer, count_start)[0]
        encrypted_start = count_start + 4
        suffix_start = encrypted_start + replace_count
        if suffix_start > trailer_start:
            raise FormatError(f"encrypted length {replace_count} exceeds container of {size} bytes")

        clear_prefix = buffer[4:count_start]
        encrypted = buffer[encrypted_start:suffix_start]
        clear_suffix = buffer[suffix_start:trailer_start]
        return bytes(clear_prefix) + self.decrypt_block(bytes(encrypted)) + bytes(clear_suffix)
