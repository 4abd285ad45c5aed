"""
Authenticated encryption for PII columns.

Every sealed value is a single blob::

    key_id (1 byte) || nonce (12 bytes) || ciphertext || tag (16 bytes)

The key id is bound to the ciphertext as associated data, so a blob can
later be routed to the key that sealed it once more than one key is loaded.
Only one process-wide key is loaded today.
"""

import base64
import binascii
import logging
import os
from functools import lru_cache

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from core.exceptions import ConfigurationError, DecryptionFailed
from core.settings import settings

logger = logging.getLogger(__name__)

KEY_BYTES = 32
NONCE_BYTES = 12
TAG_BYTES = 16
HEADER_BYTES = 1


class FieldCipher:
    def __init__(self, key: bytes, key_id: int = 1):
        if len(key) != KEY_BYTES:
            raise ConfigurationError(f"Master key must be exactly {KEY_BYTES} bytes")
        if not 0 < key_id < 256:
            raise ConfigurationError("Master key id must be between 1 and 255")
        self.key_id = key_id
        self._keys = {key_id: AESGCM(key)}

    @classmethod
    def from_settings(cls) -> "FieldCipher":
        if not settings.MASTER_KEY:
            raise ConfigurationError("MASTER_KEY is not configured")
        try:
            key = base64.urlsafe_b64decode(settings.MASTER_KEY.encode("ascii"))
        except (binascii.Error, UnicodeEncodeError) as e:
            raise ConfigurationError("MASTER_KEY must be url-safe base64") from e
        cipher = cls(key, key_id=settings.MASTER_KEY_ID)
        logger.info(f"Field cipher initialised with key id {cipher.key_id}")
        return cipher

    def encrypt(self, plaintext: str) -> bytes:
        header = bytes([self.key_id])
        nonce = os.urandom(NONCE_BYTES)
        sealed = self._keys[self.key_id].encrypt(nonce, plaintext.encode("utf-8"), header)
        return header + nonce + sealed

    def decrypt(self, blob: bytes) -> str:
        if blob is None or len(blob) < HEADER_BYTES + NONCE_BYTES + TAG_BYTES:
            raise DecryptionFailed("Sealed value is truncated")

        header = blob[:HEADER_BYTES]
        aead = self._keys.get(header[0])
        if aead is None:
            raise DecryptionFailed(f"No key loaded for key id {header[0]}")

        nonce = blob[HEADER_BYTES : HEADER_BYTES + NONCE_BYTES]
        try:
            plaintext = aead.decrypt(nonce, blob[HEADER_BYTES + NONCE_BYTES :], header)
        except InvalidTag as e:
            raise DecryptionFailed() from e

        return plaintext.decode("utf-8")


@lru_cache(maxsize=1)
def get_field_cipher() -> FieldCipher:
    return FieldCipher.from_settings()
