"""
Tests for per-family key derivation.
"""

import hashlib
import hmac

import pytest

from ledgercrypt import FamilyKeyDeriver


class TestFamilyKeyDeriver:
    """Tests for FamilyKeyDeriver."""

    def test_matches_hmac_sha256_hex(self, deriver):
        """The derived key is HMAC-SHA256(salt, family_id) in hex."""
        expected = hmac.new(b"test-chat-salt", b"family-1", hashlib.sha256).hexdigest()
        assert deriver.derive("family-1") == expected

    def test_is_deterministic_across_instances(self):
        a = FamilyKeyDeriver(salt="s", cache_size=0)
        b = FamilyKeyDeriver(salt="s", cache_size=0)
        assert a.derive("family-1") == b.derive("family-1")

    def test_output_is_64_hex_chars(self, deriver):
        key = deriver.derive("family-1")
        assert len(key) == 64
        assert all(c in "0123456789abcdef" for c in key)

    def test_different_families_get_different_keys(self, deriver):
        assert deriver.derive("family-A") != deriver.derive("family-B")

    def test_salt_changes_key(self):
        assert FamilyKeyDeriver(salt="one").derive("f") != FamilyKeyDeriver(salt="two").derive("f")

    def test_unicode_family_id(self, deriver):
        expected = hmac.new(b"test-chat-salt", "famille-é".encode("utf-8"), hashlib.sha256).hexdigest()
        assert deriver.derive("famille-é") == expected

    def test_rejects_non_string(self, deriver):
        with pytest.raises(TypeError):
            deriver.derive(42)

    def test_cache_reuses_keys(self, deriver):
        deriver.derive("family-1")
        deriver.derive("family-1")
        info = deriver.cache_info()
        assert info.hits == 1
        assert info.misses == 1

    def test_clear_cache(self, deriver):
        key = deriver.derive("family-1")
        deriver.clear_cache()
        assert deriver.cache_info().currsize == 0
        assert deriver.derive("family-1") == key

    def test_defaults_come_from_config(self):
        from config import config
        expected = hmac.new(config.CHAT_SALT.encode(), b"family-1", hashlib.sha256).hexdigest()
        assert FamilyKeyDeriver().derive("family-1") == expected

    def test_concurrent_derive(self, deriver):
        """Parallel callers sharing one cache all get the uncached result."""
        from concurrent.futures import ThreadPoolExecutor

        family_ids = [f"family-{i % 10}" for i in range(200)]
        with ThreadPoolExecutor(max_workers=8) as pool:
            keys = list(pool.map(deriver.derive, family_ids))

        reference = FamilyKeyDeriver(salt="test-chat-salt", cache_size=0)
        assert keys == [reference.derive(family_id) for family_id in family_ids]
        assert deriver.cache_info().currsize == 10
