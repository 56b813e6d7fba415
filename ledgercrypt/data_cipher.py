"""
Backup export encryption.

Exports are encrypted with a fixed application secret. Unlike chat messages,
any failure here is raised: restoring a corrupted or foreign backup would
overwrite the user's ledger with garbage.
"""

import json
import logging
from typing import Any, Optional

from config import config

from .envelope import SaltedEnvelope
from .errors import InvalidEncryptedPayload

logger = logging.getLogger(__name__)


class DataCipher:
    """Encrypts and decrypts JSON-serializable application state."""

    def __init__(self, secret: Optional[str] = None):
        """
        Initialize the cipher.

        Args:
            secret: Export passphrase. Defaults to config.EXPORT_SECRET.
        """
        self._secret = secret if secret is not None else config.EXPORT_SECRET

    @staticmethod
    def serialize(value: Any) -> str:
        """Serialize to compact JSON (same form as JSON.stringify)."""
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))

    def encrypt(self, value: Any) -> str:
        """
        Encrypt a value for export.

        Args:
            value: Any JSON-serializable value

        Returns:
            Base64 envelope text

        Raises:
            TypeError: If the value is not JSON-serializable
        """
        return SaltedEnvelope.seal(self.serialize(value).encode("utf-8"), self._secret)

    def decrypt(self, cipher_text: str) -> Any:
        """
        Decrypt an exported value.

        Args:
            cipher_text: Envelope text as read from the backup file

        Returns:
            The original value

        Raises:
            InvalidEncryptedPayload: If the text cannot be decrypted or decoded
        """
        try:
            plaintext = SaltedEnvelope.open(cipher_text, self._secret)
            return json.loads(plaintext.decode("utf-8"))
        except (ValueError, TypeError) as e:
            logger.error(f"Backup decryption failed: {e}")
            raise InvalidEncryptedPayload() from e
