"""Last.fm API client for StreamGuard."""

import logging
from typing import Any

import httpx

from streamguard.core.config import Settings
from streamguard.core.exceptions import HistoryApiError, NetworkError
from streamguard.core.models import ListenEvent

logger = logging.getLogger(__name__)

# Returned when a user has no API key, so the app can be tried without one
PLACEHOLDER_HISTORY: list[ListenEvent] = [
    ListenEvent(artist="NewJeans", title="Super Shy", album="Get Up"),
    ListenEvent(artist="The Weeknd", title="Blinding Lights", album="After Hours"),
    ListenEvent(artist="Random Artist", title="Random Song", album="Random Album"),
]


def normalize_tracks(payload: Any) -> list[dict[str, Any]]:
    """Coerce `recenttracks.track` into a list.

    Last.fm returns a bare object instead of a list when there is exactly
    one track.
    """
    if isinstance(payload, dict):
        return [payload]
    if isinstance(payload, list):
        return [item for item in payload if isinstance(item, dict)]
    return []


class LastFmClient:
    """Client for Last.fm listening history."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.api_base = settings.lastfm_api_base
        self.limit = settings.history_limit
        self.timeout = settings.http_timeout

    async def fetch_recent_history(self, username: str, api_key: str) -> list[ListenEvent]:
        """Get a user's most recent scrobbles, newest first.

        Args:
            username: Last.fm username.
            api_key: The user's Last.fm API key. When empty, a fixed
                placeholder history is returned without any request.

        Raises:
            HistoryApiError: Last.fm reported an error.
            NetworkError: No response.
        """
        if not api_key:
            logger.warning("No Last.fm API key, using placeholder history")
            return [event.model_copy() for event in PLACEHOLDER_HISTORY]

        data = await self._api_request(
            "user.getrecenttracks",
            {"user": username, "limit": self.limit},
            api_key,
        )

        recent = data.get("recenttracks")
        if not isinstance(recent, dict):
            return []
        return [ListenEvent.from_lastfm(track) for track in normalize_tracks(recent.get("track"))]

    async def _api_request(self, method: str, params: dict[str, Any], api_key: str) -> dict[str, Any]:
        """Make an API request to Last.fm."""
        request_params = {
            "method": method,
            "api_key": api_key,
            "format": "json",
            **params,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.api_base, params=request_params)
        except httpx.HTTPError as e:
            raise NetworkError("Last.fm", f"Failed to connect: {e}")

        try:
            data = response.json()
        except ValueError:
            data = None

        # Last.fm returns errors in the response body, sometimes with a 200
        if isinstance(data, dict) and "error" in data:
            raise HistoryApiError(f"{data.get('message', 'Unknown error')}")

        if not 200 <= response.status_code < 300:
            raise HistoryApiError(f"API error: {response.status_code}")

        if not isinstance(data, dict):
            return {}
        return data
