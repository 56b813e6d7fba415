"""
Exceptions raised (or logged) by the encryption layer.

Chat messages and backups follow opposite failure policies:
- Chat failures are logged as EncryptionSoftFailure / DecryptionAmbiguous
  and the caller gets the input back.
- Backup failures raise InvalidEncryptedPayload so a restore can be aborted.
"""


class CryptoError(Exception):
    """Base class for encryption layer errors."""


class EncryptionSoftFailure(CryptoError):
    """A chat message could not be encrypted; the plaintext is stored instead."""


class DecryptionAmbiguous(CryptoError):
    """A chat value could not be decrypted; it is treated as legacy plaintext."""


class MalformedEnvelope(CryptoError, ValueError):
    """The value is not a well-formed salted envelope."""


class InvalidEncryptedPayload(CryptoError, ValueError):
    """A backup file could not be decrypted or decoded."""

    DEFAULT_MESSAGE = "Invalid encrypted file or wrong key"

    def __init__(self, message: str = DEFAULT_MESSAGE):
        super().__init__(message)
