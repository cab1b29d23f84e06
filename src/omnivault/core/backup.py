"""Backup export and restore for a single identity's vault."""

import json
import logging
import re
from datetime import date
from pathlib import Path
from typing import Any, Protocol

from pydantic import ValidationError

from omnivault.core.config import BACKUP_DIR, PRODUCT_NAME
from omnivault.core.errors import BackupFormatError
from omnivault.core.types import (
    STORED_RECORD,
    BackupDocument,
    Identity,
    UserSettings,
    VaultData,
)
from omnivault.storage.repos.settings_repo import SettingsRepo
from omnivault.storage.repos.vault_repo import VaultRepo

logger = logging.getLogger(__name__)

# Only this much of the identity appears in a backup filename
IDENTITY_FRAGMENT_LENGTH = 6

_UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_-]")


class BackupDelivery(Protocol):
    """Hands a finished backup document to the user."""

    def deliver(self, document: BackupDocument, filename: str) -> Any:
        pass


class DirectoryDelivery:
    """Writes backups as pretty-printed JSON files into a directory."""

    def __init__(self, directory: Path | str | None = None):
        self.directory = Path(directory) if directory else BACKUP_DIR

    def deliver(self, document: BackupDocument, filename: str) -> Path:
        self.directory.mkdir(parents=True, exist_ok=True)
        # Never write outside the backup directory
        path = self.directory / Path(filename).name
        path.write_text(
            json.dumps(document.to_document(), ensure_ascii=False, indent=2),
            encoding="utf-8",
        )
        logger.info("Backup written to %s", path)
        return path


def backup_filename(identity: Identity, day: date | None = None) -> str:
    """Name a backup without exposing the full identity."""
    stamp = (day or date.today()).isoformat()
    fragment = _UNSAFE_FILENAME_CHARS.sub("_", identity[:IDENTITY_FRAGMENT_LENGTH])
    return f"{PRODUCT_NAME}_backup_{fragment}_{stamp}.json"


def import_document(raw: str | bytes | dict) -> tuple[VaultData, UserSettings]:
    """
    Parse a backup document back into its two halves.

    Args:
        raw: JSON text or an already-decoded mapping

    Returns:
        (data, settings)

    Raises:
        BackupFormatError: If the document is not a valid backup
    """
    if isinstance(raw, (str, bytes)):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise BackupFormatError(f"Backup is not valid JSON: {exc}") from exc

    if not isinstance(raw, dict) or "data" not in raw:
        raise BackupFormatError("Backup must be an object with a 'data' section")

    try:
        document = BackupDocument.model_validate(
            {"data": raw["data"], "settings": raw.get("settings") or {}},
            context=STORED_RECORD,
        )
    except (ValidationError, TypeError) as exc:
        raise BackupFormatError(f"Backup does not match the vault schema: {exc}") from exc

    return document.data, document.settings


class BackupCodec:
    """Builds backup documents from the stores and restores them."""

    def __init__(
        self,
        vault_repo: VaultRepo,
        settings_repo: SettingsRepo,
        delivery: BackupDelivery | None = None,
    ):
        self.vault_repo = vault_repo
        self.settings_repo = settings_repo
        self.delivery = delivery

    def build(self, identity: Identity) -> BackupDocument:
        """Snapshot the stored data and settings for an identity."""
        return BackupDocument(
            data=self.vault_repo.load(identity),
            settings=self.settings_repo.load(identity),
        )

    def export(self, identity: Identity, day: date | None = None) -> BackupDocument:
        """Build a backup and hand it to the delivery collaborator."""
        document = self.build(identity)
        if self.delivery is not None:
            self.delivery.deliver(document, backup_filename(identity, day))
        return document

    def restore(
        self, identity: Identity, raw: str | bytes | dict
    ) -> tuple[VaultData, UserSettings]:
        """Import a backup and store both halves for the identity."""
        data, settings = import_document(raw)
        self.save(identity, data, settings)
        logger.info("Restored backup for %s...", identity[:IDENTITY_FRAGMENT_LENGTH])
        return data, settings

    def save(self, identity: Identity, data: VaultData, settings: UserSettings) -> None:
        """Write both halves of an imported backup, data first."""
        self.vault_repo.save(identity, data)
        self.settings_repo.save(identity, settings)
