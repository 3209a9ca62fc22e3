"""JSONBin API client for the shared remote document."""

import logging
from typing import Any

import httpx

from streamguard.core.config import Settings
from streamguard.core.exceptions import (
    CloudAuthError,
    CloudNotFoundError,
    CloudSaveError,
    CloudSyncError,
    NetworkError,
)
from streamguard.core.models import ConnectionCheck

logger = logging.getLogger(__name__)


class JsonBinClient:
    """Client for whole-document reads and writes against JSONBin.

    The store has no partial update API: every read returns the full
    document and every write replaces it.
    """

    KEY_HEADER = "X-Master-Key"

    def __init__(self, settings: Settings):
        self.settings = settings
        self.api_base = settings.jsonbin_api_base.rstrip("/")
        self.timeout = settings.http_timeout

    def _headers(self, api_key: str) -> dict[str, str]:
        return {self.KEY_HEADER: api_key, "Content-Type": "application/json"}

    async def read(self, bin_id: str, api_key: str) -> dict[str, Any]:
        """Fetch the latest version of a document.

        Returns:
            The document with the `record` envelope removed.

        Raises:
            CloudAuthError: Access key rejected (401/403).
            CloudNotFoundError: Unknown document id (404).
            CloudSyncError: Any other failure.
            NetworkError: No response.
        """
        url = f"{self.api_base}/{bin_id}/latest"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(url, headers=self._headers(api_key))
        except httpx.HTTPError as e:
            raise NetworkError("JSONBin", f"Failed to connect: {e}")

        if response.status_code in (401, 403):
            raise CloudAuthError("Invalid API key", response.status_code)
        if response.status_code == 404:
            raise CloudNotFoundError(f"Bin '{bin_id}' not found", response.status_code)
        if not 200 <= response.status_code < 300:
            raise CloudSyncError(f"Fetch failed with status {response.status_code}", response.status_code)

        try:
            data = response.json()
        except ValueError:
            raise CloudSyncError("Response was not valid JSON", response.status_code)

        record = data.get("record") if isinstance(data, dict) else None
        if not isinstance(record, dict):
            logger.error(f"Bin {bin_id} returned no record")
            raise CloudSyncError("Response has no record", response.status_code)
        return record

    async def write(self, bin_id: str, api_key: str, document: dict[str, Any]) -> None:
        """Replace the whole document.

        Raises:
            CloudSaveError: The store did not accept the write.
            NetworkError: No response.
        """
        url = f"{self.api_base}/{bin_id}"

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.put(url, headers=self._headers(api_key), json=document)
        except httpx.HTTPError as e:
            raise NetworkError("JSONBin", f"Failed to connect: {e}")

        if not 200 <= response.status_code < 300:
            raise CloudSaveError(f"Save failed with status {response.status_code}", response.status_code)

    async def verify(self, bin_id: str, api_key: str) -> ConnectionCheck:
        """Check that credentials can read the document. Nothing is stored."""
        if not bin_id or not api_key:
            return ConnectionCheck(valid=False, message="Bin ID and API key are required")

        try:
            await self.read(bin_id, api_key)
        except CloudAuthError:
            return ConnectionCheck(valid=False, message="Invalid API key")
        except CloudNotFoundError:
            return ConnectionCheck(valid=False, message="Bin ID not found")
        except (CloudSyncError, NetworkError) as e:
            return ConnectionCheck(valid=False, message=str(e))

        return ConnectionCheck(valid=True, message="Connected")
