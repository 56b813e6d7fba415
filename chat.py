"""
Family chat message handling for Budglio Companion.

Messages are encrypted with the family's derived key before they are
stored, and decrypted when a history is loaded. Rows written before
encryption existed come back unchanged.
"""

from dataclasses import dataclass, asdict
from typing import Any, Iterable, Mapping, Optional

from ledgercrypt import MessageCipher


@dataclass
class ChatMessage:
    """A family chat row."""
    family_id: str
    user_id: str
    message: str
    reply_to_id: Optional[str] = None
    id: Optional[str] = None
    created_at: Optional[str] = None

    def to_row(self) -> dict[str, Any]:
        """Convert to an insertable row (unset server-side fields are dropped)."""
        row = asdict(self)
        for key in ("id", "created_at"):
            if row[key] is None:
                del row[key]
        return row


def seal_outgoing(
    text: str,
    family_id: str,
    user_id: str,
    reply_to_id: Optional[str] = None,
    cipher: Optional[MessageCipher] = None,
) -> ChatMessage:
    """
    Prepare a message for sending.

    Args:
        text: Message typed by the user
        family_id: The family chat it is sent to
        user_id: The sender
        reply_to_id: Id of the message being replied to
        cipher: Cipher to use. Defaults to one built from config.

    Returns:
        ChatMessage with the encrypted message body

    Raises:
        ValueError: If the message is blank or family_id is missing
    """
    text = (text or "").strip()
    if not text:
        raise ValueError("Message cannot be empty")
    if not family_id:
        raise ValueError("family_id is required")

    cipher = cipher or MessageCipher()
    return ChatMessage(
        family_id=family_id,
        user_id=user_id,
        message=cipher.encrypt(text, family_id),
        reply_to_id=reply_to_id,
    )


def open_incoming(
    rows: Iterable[Mapping[str, Any]],
    family_id: str,
    cipher: Optional[MessageCipher] = None,
) -> list[ChatMessage]:
    """Decrypt fetched chat rows for display."""
    cipher = cipher or MessageCipher()
    messages = []
    for row in rows:
        messages.append(ChatMessage(
            family_id=row.get("family_id", family_id),
            user_id=row.get("user_id", ""),
            message=cipher.decrypt(row.get("message") or "", family_id),
            reply_to_id=row.get("reply_to_id"),
            id=row.get("id"),
            created_at=row.get("created_at"),
        ))
    return messages
