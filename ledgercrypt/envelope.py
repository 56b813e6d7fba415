"""
OpenSSL-compatible passphrase encryption.

Layout (base64 encoded as a single string):
    b"Salted__" (8) + salt (8) + AES-256-CBC ciphertext (PKCS#7 padded)

The key and IV are derived from the passphrase and salt with OpenSSL's
EVP_BytesToKey (MD5, one iteration). This is the format produced by
`openssl enc -aes-256-cbc -md md5 -a` and by CryptoJS.AES.encrypt with a
passphrase, so backups and chat history written by older clients stay
readable.
"""

import os
import base64

from cryptography.hazmat.primitives import hashes, padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from .errors import MalformedEnvelope


class SaltedEnvelope:
    """Seals and opens salted AES-256-CBC envelopes."""

    MAGIC = b"Salted__"
    SALT_LEN = 8
    KEY_LEN = 32  # AES-256
    IV_LEN = 16
    BLOCK_SIZE = 16

    @classmethod
    def derive_key_iv(cls, passphrase: bytes, salt: bytes) -> tuple[bytes, bytes]:
        """
        Stretch a passphrase and salt into an AES key and IV (EVP_BytesToKey).

        Args:
            passphrase: Passphrase bytes
            salt: The 8-byte envelope salt

        Returns:
            Tuple of (key, iv)
        """
        derived = b""
        block = b""
        while len(derived) < cls.KEY_LEN + cls.IV_LEN:
            digest = hashes.Hash(hashes.MD5())
            digest.update(block + passphrase + salt)
            block = digest.finalize()
            derived += block
        return derived[:cls.KEY_LEN], derived[cls.KEY_LEN:cls.KEY_LEN + cls.IV_LEN]

    @classmethod
    def seal(cls, plaintext: bytes, passphrase: str) -> str:
        """
        Encrypt bytes under a passphrase with a fresh random salt.

        Args:
            plaintext: Data to encrypt
            passphrase: The passphrase

        Returns:
            Base64 text of the salted envelope
        """
        salt = os.urandom(cls.SALT_LEN)
        key, iv = cls.derive_key_iv(passphrase.encode("utf-8"), salt)

        padder = padding.PKCS7(cls.BLOCK_SIZE * 8).padder()
        padded = padder.update(plaintext) + padder.finalize()

        encryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()

        return base64.b64encode(cls.MAGIC + salt + ciphertext).decode("ascii")

    @classmethod
    def open(cls, blob: str, passphrase: str) -> bytes:
        """
        Decrypt a salted envelope.

        Args:
            blob: Base64 text of the envelope. Line breaks (as written by openssl -a) are ignored.
            passphrase: The passphrase

        Returns:
            The decrypted bytes

        Raises:
            MalformedEnvelope: If the blob is not an envelope, or the padding is
                wrong (usually the wrong passphrase)
        """
        if not isinstance(blob, str):
            raise MalformedEnvelope(f"Envelope must be text, not {type(blob).__name__}")

        compact = "".join(blob.split())
        try:
            raw = base64.b64decode(compact, validate=True)
        except ValueError as e:
            raise MalformedEnvelope(f"Not base64: {e}") from e
        # b64decode ignores the unused bits of the last character, so an edited blob can decode unchanged
        if base64.b64encode(raw).decode("ascii") != compact:
            raise MalformedEnvelope("Non-canonical base64")

        header_len = len(cls.MAGIC) + cls.SALT_LEN
        if not raw.startswith(cls.MAGIC):
            raise MalformedEnvelope("Missing salted header")
        ciphertext = raw[header_len:]
        if not ciphertext or len(ciphertext) % cls.BLOCK_SIZE:
            raise MalformedEnvelope(f"Ciphertext length {len(ciphertext)} is not a positive multiple of {cls.BLOCK_SIZE}")

        salt = raw[len(cls.MAGIC):header_len]
        key, iv = cls.derive_key_iv(passphrase.encode("utf-8"), salt)

        decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()

        unpadder = padding.PKCS7(cls.BLOCK_SIZE * 8).unpadder()
        try:
            return unpadder.update(padded) + unpadder.finalize()
        except ValueError as e:
            raise MalformedEnvelope("Bad padding (wrong passphrase or corrupted data)") from e
