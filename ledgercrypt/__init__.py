"""
Cryptographic module for Budglio Companion.

Handles:
- Per-family key derivation (HMAC-SHA256)
- OpenSSL-compatible salted envelopes (AES-256-CBC)
- Family chat message encryption (tolerant of legacy plaintext)
- Backup export encryption (strict)
"""

from .errors import (
    CryptoError,
    EncryptionSoftFailure,
    DecryptionAmbiguous,
    InvalidEncryptedPayload,
    MalformedEnvelope,
)
from .key_derivation import FamilyKeyDeriver
from .envelope import SaltedEnvelope
from .message_cipher import MessageCipher, Decrypted, PassThrough
from .data_cipher import DataCipher

__all__ = [
    "CryptoError",
    "EncryptionSoftFailure",
    "DecryptionAmbiguous",
    "InvalidEncryptedPayload",
    "MalformedEnvelope",
    "FamilyKeyDeriver",
    "SaltedEnvelope",
    "MessageCipher",
    "Decrypted",
    "PassThrough",
    "DataCipher",
]
