import hashlib
import hmac
from functools import lru_cache

from core.exceptions import ConfigurationError
from core.settings import settings

SCHEMES = ("sha256", "hmac-sha256")


def normalize(value: str) -> str:
    return " ".join(value.split()).casefold()


class BlindIndexer:
    """Deterministic lookup digest for sealed PII.

    Equal plaintexts always give equal digests, which is what lets a row be
    found without decrypting every candidate. The unkeyed scheme is open to
    offline guessing of low-entropy values; switching ``BLIND_INDEX_SCHEME``
    to ``hmac-sha256`` closes that without touching callers (existing
    digests must then be recomputed).
    """

    def __init__(self, scheme: str = "sha256", key: str | None = None):
        if scheme not in SCHEMES:
            raise ConfigurationError(f"Unknown blind index scheme: {scheme}")
        if scheme == "hmac-sha256" and not key:
            raise ConfigurationError("BLIND_INDEX_KEY is required for hmac-sha256")
        self.scheme = scheme
        self._key = key.encode("utf-8") if scheme == "hmac-sha256" else None

    def digest(self, value: str) -> str:
        payload = normalize(value).encode("utf-8")
        if self._key is not None:
            return hmac.new(self._key, payload, hashlib.sha256).hexdigest()
        return hashlib.sha256(payload).hexdigest()


@lru_cache(maxsize=1)
def get_blind_indexer() -> BlindIndexer:
    return BlindIndexer(settings.BLIND_INDEX_SCHEME, settings.BLIND_INDEX_KEY)


def blind_index(value: str) -> str:
    return get_blind_indexer().digest(value)
