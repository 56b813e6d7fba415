"""
Per-family key derivation using HMAC-SHA256.

Every family chat is encrypted with a passphrase derived from the family id
and a fixed application salt, so all members derive the same key without
exchanging anything.
"""

from functools import lru_cache
from typing import Optional

from cryptography.hazmat.primitives import hashes, hmac

from config import config


class FamilyKeyDeriver:
    """Derives chat passphrases from family ids."""

    def __init__(self, salt: Optional[str] = None, cache_size: Optional[int] = None):
        """
        Initialize the deriver.

        Args:
            salt: Application salt used as the HMAC key. Defaults to config.CHAT_SALT.
            cache_size: Maximum number of cached family keys. Defaults to config.KEY_CACHE_SIZE.
        """
        self._salt = (salt if salt is not None else config.CHAT_SALT).encode("utf-8")
        if cache_size is None:
            cache_size = config.KEY_CACHE_SIZE
        # Derivation is pure, so cached entries never go stale
        self._cached_derive = lru_cache(maxsize=cache_size)(self._compute)

    def _compute(self, family_id: str) -> str:
        h = hmac.HMAC(self._salt, hashes.SHA256())
        h.update(family_id.encode("utf-8"))
        return h.finalize().hex()

    def derive(self, family_id: str) -> str:
        """
        Derive the chat passphrase for a family.

        Args:
            family_id: The family's id. Callers must reject empty ids.

        Returns:
            The HMAC-SHA256 digest as a 64 character lowercase hex string
        """
        if not isinstance(family_id, str):
            raise TypeError(f"family_id must be str, not {type(family_id).__name__}")
        return self._cached_derive(family_id)

    def cache_info(self):
        """Cache statistics (hits, misses, maxsize, currsize)."""
        return self._cached_derive.cache_info()

    def clear_cache(self) -> None:
        """Drop all cached keys from memory."""
        self._cached_derive.cache_clear()
