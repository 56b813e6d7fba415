"""
Tests for family chat message handling.
"""

import pytest

from chat import ChatMessage, open_incoming, seal_outgoing


class TestSealOutgoing:
    """Tests for seal_outgoing."""

    def test_encrypts_trimmed_text(self, message_cipher):
        sealed = seal_outgoing("  hello family  ", "family-1", "user-1", cipher=message_cipher)
        assert sealed.message != "hello family"
        assert message_cipher.decrypt(sealed.message, "family-1") == "hello family"

    def test_row_layout(self, message_cipher):
        sealed = seal_outgoing("hi", "family-1", "user-1", reply_to_id="m-9", cipher=message_cipher)
        row = sealed.to_row()
        assert set(row) == {"family_id", "user_id", "message", "reply_to_id"}
        assert row["family_id"] == "family-1"
        assert row["reply_to_id"] == "m-9"

    @pytest.mark.parametrize("text", ["", "   ", None])
    def test_blank_message_rejected(self, message_cipher, text):
        with pytest.raises(ValueError, match="empty"):
            seal_outgoing(text, "family-1", "user-1", cipher=message_cipher)

    def test_family_required(self, message_cipher):
        with pytest.raises(ValueError, match="family_id"):
            seal_outgoing("hi", "", "user-1", cipher=message_cipher)


class TestOpenIncoming:
    """Tests for open_incoming."""

    def test_decrypts_history_with_legacy_rows(self, message_cipher):
        rows = [
            {"id": "1", "family_id": "family-1", "user_id": "u1", "message": "old plain message",
             "created_at": "2024-12-01T10:00:00Z"},
            {"id": "2", "family_id": "family-1", "user_id": "u2",
             "message": message_cipher.encrypt("new secret message", "family-1"), "reply_to_id": "1"},
            {"id": "3", "family_id": "family-1", "user_id": "u1", "message": None},
        ]
        messages = open_incoming(rows, "family-1", cipher=message_cipher)

        assert [m.message for m in messages] == ["old plain message", "new secret message", ""]
        assert messages[0].created_at == "2024-12-01T10:00:00Z"
        assert messages[1].reply_to_id == "1"
        assert all(isinstance(m, ChatMessage) for m in messages)

    def test_sealed_round_trip(self, message_cipher):
        sealed = seal_outgoing("see you at 6", "family-1", "u1", cipher=message_cipher)
        [opened] = open_incoming([sealed.to_row()], "family-1", cipher=message_cipher)
        assert opened.message == "see you at 6"
        assert opened.user_id == "u1"

    def test_row_keeps_server_fields(self):
        message = ChatMessage("f", "u", "m", id="42", created_at="2025-01-01")
        assert message.to_row()["id"] == "42"
