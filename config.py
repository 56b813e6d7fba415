"""
Configuration for Budglio Companion.
"""

import os
from dataclasses import dataclass

# Application version - update this for each release
VERSION = "1.0.0"


@dataclass
class Config:
    """Application configuration."""

    # Server settings
    HOST: str = "127.0.0.1"
    PORT: int = int(os.getenv("BUDGLIO_PORT", "18422"))

    # Cryptographic settings
    # Salt for deriving per-family chat keys. Changing it makes existing chat history unreadable.
    CHAT_SALT: str = os.getenv("BUDGLIO_CHAT_SALT", "BUDGLIO_FAMILY_CHAT_SECURE_SALT_2025")
    # Passphrase for backup files. Must stay stable so old exports remain importable.
    EXPORT_SECRET: str = os.getenv("BUDGLIO_EXPORT_SECRET", "finance-quest-secure-export-key-v1")
    KEY_CACHE_SIZE: int = int(os.getenv("BUDGLIO_KEY_CACHE_SIZE", "256"))

    # Logging
    LOG_LEVEL: str = os.getenv("BUDGLIO_LOG_LEVEL", "INFO")

    def __post_init__(self):
        """Validate settings that would otherwise fail much later."""
        if not self.CHAT_SALT:
            raise ValueError("CHAT_SALT must not be empty")
        if not self.EXPORT_SECRET:
            raise ValueError("EXPORT_SECRET must not be empty")
        if self.KEY_CACHE_SIZE < 0:
            raise ValueError("KEY_CACHE_SIZE must be zero or positive")


# Global config instance
config = Config()
