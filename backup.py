"""
Backup export and restore for Budglio Companion.

Manages:
- Building the versioned backup document from application state
- Encrypting it for download
- Decrypting and validating an uploaded backup before it is restored
"""

from datetime import date, datetime, timezone
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from ledgercrypt import DataCipher

BACKUP_VERSION = "1.0"


class InvalidBackupFormat(ValueError):
    """Raised when a decrypted backup is not a backup document."""

    def __init__(self, message: str = "Invalid backup file format"):
        super().__init__(message)


@dataclass
class RestoredBackup:
    """A validated backup, ready to be written back to local storage."""
    version: str
    expenses: list
    budgets: list = field(default_factory=list)
    subscriptions: list = field(default_factory=list)
    gamification: Optional[dict] = None
    settings: dict = field(default_factory=dict)
    purchased_themes: Optional[list] = None
    purchased_cards: Optional[list] = None
    exported_at: Optional[str] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert back to the backup document layout."""
        document = {
            "version": self.version,
            "exportedAt": self.exported_at,
            "expenses": self.expenses,
            "budgets": self.budgets,
            "subscriptions": self.subscriptions,
            "settings": self.settings,
        }
        if self.gamification is not None:
            document["gamification"] = self.gamification
        if self.purchased_themes is not None:
            document["purchasedThemes"] = self.purchased_themes
        if self.purchased_cards is not None:
            document["purchasedCards"] = self.purchased_cards
        return document


def build_backup(
    expenses: list,
    budgets: Optional[list] = None,
    subscriptions: Optional[list] = None,
    gamification: Optional[dict] = None,
    settings: Optional[dict] = None,
    purchased_themes: Optional[list] = None,
    purchased_cards: Optional[list] = None,
) -> dict[str, Any]:
    """
    Build a backup document from application state.

    Args:
        expenses: Expense records
        budgets: Budget records
        subscriptions: Subscription records
        gamification: Gamification state (omitted when None)
        settings: User settings
        purchased_themes: Unlocked app themes (omitted when None)
        purchased_cards: Unlocked card themes (omitted when None)

    Returns:
        The backup document
    """
    settings = dict(settings or {})
    settings["userName"] = settings.get("userName") or ""
    settings["hasCompletedOnboarding"] = settings.get("hasCompletedOnboarding") or False

    document = {
        "version": BACKUP_VERSION,
        "exportedAt": datetime.now(timezone.utc).isoformat(),
        "expenses": list(expenses),
        "budgets": list(budgets or []),
        "subscriptions": list(subscriptions or []),
        "settings": settings,
    }
    if gamification is not None:
        document["gamification"] = gamification
    if purchased_themes is not None:
        document["purchasedThemes"] = list(purchased_themes)
    if purchased_cards is not None:
        document["purchasedCards"] = list(purchased_cards)
    return document


def backup_filename(today: Optional[date] = None) -> str:
    """Download filename for a backup made on the given day."""
    today = today or date.today()
    return f"financequest-backup-{today.isoformat()}.json"


def export_backup(document: Mapping[str, Any], cipher: Optional[DataCipher] = None) -> str:
    """Encrypt a backup document for download."""
    cipher = cipher or DataCipher()
    return cipher.encrypt(dict(document))


def restore_backup(blob: str, cipher: Optional[DataCipher] = None) -> RestoredBackup:
    """
    Decrypt and validate an uploaded backup.

    Args:
        blob: File content exactly as uploaded
        cipher: Cipher to use. Defaults to one built from config.

    Returns:
        The validated backup

    Raises:
        InvalidEncryptedPayload: If the file cannot be decrypted
        InvalidBackupFormat: If it decrypts but is not a backup document
    """
    cipher = cipher or DataCipher()
    data = cipher.decrypt(blob)

    if not isinstance(data, dict) or not data.get("version") or "expenses" not in data:
        raise InvalidBackupFormat()
    if not isinstance(data["expenses"], list):
        raise InvalidBackupFormat("Backup expenses must be a list")

    return RestoredBackup(
        version=str(data["version"]),
        expenses=data["expenses"],
        budgets=data.get("budgets") or [],
        subscriptions=data.get("subscriptions") or [],
        gamification=data.get("gamification"),
        settings=data.get("settings") or {},
        purchased_themes=data.get("purchasedThemes"),
        purchased_cards=data.get("purchasedCards"),
        exported_at=data.get("exportedAt"),
    )


def merge_settings(current: Mapping[str, Any], restored: Mapping[str, Any], user_name: str = "") -> dict[str, Any]:
    """
    Layer restored settings over the current ones.

    The restored user name wins unless it is blank, and onboarding is always
    marked complete since the user just restored their data.
    """
    merged = {**current, **restored}
    merged["userName"] = restored.get("userName") or user_name or current.get("userName", "")
    merged["hasCompletedOnboarding"] = True
    return merged
