"""Document store adapter.

Reads and writes the whole shared document, either from JSONBin or from the
local cache. Every mutation elsewhere in the app is a fetch, modify, save
sequence against this adapter with no locking: concurrent writers overwrite
each other and the last save wins for the whole document.
"""

import json
import logging
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from streamguard.core.config import Settings
from streamguard.core.exceptions import CloudConnectionError, CloudSyncError
from streamguard.core.models import (
    AppDocument,
    CloudConfig,
    CloudMode,
    ConnectionCheck,
    resolve_cloud_mode,
)
from streamguard.services.jsonbin import JsonBinClient
from streamguard.services.local_cache import (
    ADMIN_PIN_KEY,
    CLOUD_CONFIG_KEY,
    SCHEDULE_KEY,
    SPOTIFY_ID_KEY,
    TRACKS_KEY,
    USERS_KEY,
    LocalCache,
)

logger = logging.getLogger(__name__)

# Document field -> cache key
DOCUMENT_KEYS = {
    "users": USERS_KEY,
    "tracks": TRACKS_KEY,
    "spotifyPlaylistId": SPOTIFY_ID_KEY,
    "weeklySchedule": SCHEDULE_KEY,
    "adminPin": ADMIN_PIN_KEY,
}

# Backup file field -> cache key
BACKUP_KEYS = {
    "users": USERS_KEY,
    "schedule": SCHEDULE_KEY,
    "adminPin": ADMIN_PIN_KEY,
    "playlist": TRACKS_KEY,
}


class DocumentStore:
    """Single read/write interface over the local and remote backends."""

    def __init__(
        self,
        settings: Settings,
        cache: LocalCache,
        remote: JsonBinClient | None = None,
    ):
        self.settings = settings
        self.cache = cache
        self.remote = remote or JsonBinClient(settings)

    # --- Connection config ---

    def cloud_config(self) -> CloudConfig | None:
        """Resolve the remote connection.

        A locally stored config wins over the injected default.
        """
        raw = self.cache.get(CLOUD_CONFIG_KEY)
        if raw is not None:
            try:
                return CloudConfig.model_validate_json(raw)
            except PydanticValidationError:
                logger.warning("Stored cloud config is malformed, ignoring it")
        return self.settings.default_cloud_config

    @property
    def mode(self) -> CloudMode:
        """Get the effective backend mode."""
        return resolve_cloud_mode(self.cloud_config())

    def _active_cloud(self) -> CloudConfig | None:
        config = self.cloud_config()
        if resolve_cloud_mode(config) is CloudMode.ENABLED:
            return config
        return None

    async def verify_connection(self, bin_id: str, api_key: str) -> ConnectionCheck:
        """Check remote credentials without storing them."""
        return await self.remote.verify(bin_id, api_key)

    async def connect(self, bin_id: str, api_key: str) -> CloudConfig:
        """Verify and store new remote credentials.

        Raises:
            CloudConnectionError: Verification failed; nothing was stored.
        """
        check = await self.verify_connection(bin_id, api_key)
        if not check.valid:
            raise CloudConnectionError(check.message or "Connection failed")

        config = CloudConfig(enabled=True, bin_id=bin_id, api_key=api_key)
        self.cache.set(CLOUD_CONFIG_KEY, config.model_dump_json(by_alias=True))
        logger.info(f"Cloud sync enabled for bin {bin_id}")
        return config

    def disconnect(self) -> CloudConfig:
        """Switch to local-only mode, keeping the credentials for later."""
        current = self.cloud_config() or CloudConfig()
        config = current.model_copy(update={"enabled": False})
        self.cache.set(CLOUD_CONFIG_KEY, config.model_dump_json(by_alias=True))
        logger.info("Cloud sync disabled")
        return config

    # --- Document ---

    async def fetch_document(self) -> AppDocument:
        """Read the whole document from the active backend.

        Local fields that fail to parse are defaulted. A remote document is
        returned whole or not at all.

        Raises:
            CloudSyncError: The remote document is malformed or unreachable.
        """
        config = self._active_cloud()
        if config is None:
            return self._read_local()

        logger.debug(f"Fetching document from bin {config.bin_id}")
        record = await self.remote.read(config.bin_id, config.api_key)
        try:
            return AppDocument.from_remote(record)
        except PydanticValidationError as e:
            logger.error(f"Bin {config.bin_id} holds a malformed document: {e.error_count()} error(s)")
            raise CloudSyncError("Remote document is malformed")

    async def save_document(self, document: AppDocument) -> None:
        """Write the whole document to the active backend.

        Remote writes are mirrored locally once the remote store accepted them.
        """
        config = self._active_cloud()
        if config is None:
            self._write_local(document)
            return

        logger.debug(f"Saving document to bin {config.bin_id}")
        await self.remote.write(config.bin_id, config.api_key, document.to_json())
        self._write_local(document)

    def _read_local(self) -> AppDocument:
        raw: dict[str, Any] = {}
        for field, key in DOCUMENT_KEYS.items():
            value = self.cache.get(key)
            if value is None:
                continue
            try:
                raw[field] = json.loads(value)
            except json.JSONDecodeError:
                logger.warning(f"Cache key '{key}' is not valid JSON, using default for '{field}'")
        return AppDocument.from_raw(raw)

    def _write_local(self, document: AppDocument) -> None:
        data = document.to_json()
        self.cache.set_many({key: json.dumps(data[field]) for field, key in DOCUMENT_KEYS.items()})

    # --- Backup ---

    def export_backup(self) -> dict[str, Any]:
        """Export the local cache as a backup object."""
        backup: dict[str, Any] = {}
        for field, key in BACKUP_KEYS.items():
            value = self.cache.get(key)
            if value is None:
                backup[field] = None
                continue
            try:
                backup[field] = json.loads(value)
            except json.JSONDecodeError:
                backup[field] = value
        return backup

    def import_backup(self, backup: dict[str, Any]) -> list[str]:
        """Overwrite local cache keys with the fields present in a backup.

        Returns:
            The backup fields that were imported.
        """
        imported = [field for field in BACKUP_KEYS if backup.get(field) is not None]
        self.cache.set_many({BACKUP_KEYS[field]: json.dumps(backup[field]) for field in imported})
        logger.info(f"Imported backup fields: {', '.join(imported) or 'none'}")
        return imported
