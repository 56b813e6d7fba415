"""
Family chat message encryption.

Chat history contains messages written before encryption was introduced, so
decryption is tolerant: anything that does not decrypt cleanly is returned
unchanged and rendered as-is. Encryption is tolerant too - a crypto fault must
never block a message from being sent.
"""

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, Union

from .envelope import SaltedEnvelope
from .errors import DecryptionAmbiguous, EncryptionSoftFailure
from .key_derivation import FamilyKeyDeriver

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Decrypted:
    """The value was an envelope and decrypted to text."""
    text: str


@dataclass(frozen=True)
class PassThrough:
    """The value could not be decrypted and is returned as-is (legacy plaintext)."""
    original: str
    reason: str = ""


OpenResult = Union[Decrypted, PassThrough]


class MessageCipher:
    """Encrypts and decrypts chat messages with a per-family key."""

    def __init__(self, deriver: Optional[FamilyKeyDeriver] = None):
        """
        Initialize the cipher.

        Args:
            deriver: Key deriver to use. Defaults to one built from config.
        """
        self.deriver = deriver or FamilyKeyDeriver()

    def encrypt(self, message: str, family_id: str) -> str:
        """
        Encrypt a chat message for a family.

        Args:
            message: The plaintext message
            family_id: The family the message belongs to

        Returns:
            The envelope text, "" for an empty message, or the message
            itself if encryption failed
        """
        if not message:
            return ""

        try:
            key = self.deriver.derive(family_id)
            return SaltedEnvelope.seal(message.encode("utf-8"), key)
        except Exception as e:
            failure = EncryptionSoftFailure(f"Message encryption failed, storing plaintext: {e}")
            logger.warning(str(failure), exc_info=True)
            return message

    def open(self, value: str, family_id: str) -> OpenResult:
        """
        Try to decrypt a stored chat value.

        Args:
            value: Envelope text or legacy plaintext
            family_id: The family the message belongs to

        Returns:
            Decrypted(text) on success, otherwise PassThrough(value)
        """
        try:
            key = self.deriver.derive(family_id)
            text = SaltedEnvelope.open(value, key).decode("utf-8")
        except Exception as e:
            logger.debug(str(DecryptionAmbiguous(f"Treating value as plaintext: {e}")))
            return PassThrough(value, reason=str(e))

        # An envelope of nothing is indistinguishable from a miss; keep the input
        if not text:
            logger.debug(str(DecryptionAmbiguous("Decrypted to empty text, treating value as plaintext")))
            return PassThrough(value, reason="empty plaintext")

        return Decrypted(text)

    def decrypt(self, value: str, family_id: str) -> str:
        """
        Decrypt a stored chat value. Never raises.

        Args:
            value: Envelope text or legacy plaintext
            family_id: The family the message belongs to

        Returns:
            The decrypted message, or the value unchanged if it was not an envelope
        """
        if not value:
            return ""

        result = self.open(value, family_id)
        if isinstance(result, Decrypted):
            return result.text
        return result.original

    def decrypt_many(self, values: Iterable[str], family_id: str) -> list[str]:
        """Decrypt a chat history, preserving order."""
        return [self.decrypt(value, family_id) for value in values]
