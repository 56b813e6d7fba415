"""
Shared fixtures for Budglio Companion tests.

Ciphers are built with test-only salts and secrets so the tests never
depend on the environment.
"""

import pytest

from ledgercrypt import DataCipher, FamilyKeyDeriver, MessageCipher

TEST_SALT = "test-chat-salt"
TEST_SECRET = "test-export-secret"


@pytest.fixture
def deriver():
    return FamilyKeyDeriver(salt=TEST_SALT, cache_size=16)


@pytest.fixture
def message_cipher(deriver):
    return MessageCipher(deriver)


@pytest.fixture
def data_cipher():
    return DataCipher(secret=TEST_SECRET)
