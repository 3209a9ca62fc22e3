"""Core data models for StreamGuard.

Persisted models serialize with the camelCase keys used by the shared JSON
document; Python code uses the snake_case field names.
"""

import logging
from collections.abc import Mapping
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

logger = logging.getLogger(__name__)


class DocumentModel(BaseModel):
    """Base for models stored in the shared document."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict[str, Any]:
        """Dump with document (camelCase) keys."""
        return self.model_dump(mode="json", by_alias=True)


class TargetTrack(DocumentModel):
    """A track members must listen to."""

    id: str
    artist: str
    title: str


class DayConfig(DocumentModel):
    """Target tracks and playlist for one day of the week."""

    tracks: list[TargetTrack] = Field(default_factory=list)
    spotify_id: str | None = Field(default=None, alias="spotifyId")


DEFAULT_TRACKS: list[TargetTrack] = [
    TargetTrack(id="1", artist="NewJeans", title="Super Shy"),
    TargetTrack(id="2", artist="The Weeknd", title="Blinding Lights"),
    TargetTrack(id="3", artist="Arctic Monkeys", title="Do I Wanna Know?"),
]

DEFAULT_ADMIN_PIN = "1234"


def default_tracks() -> list[TargetTrack]:
    """Get a fresh copy of the built-in track list."""
    return [track.model_copy() for track in DEFAULT_TRACKS]


class User(DocumentModel):
    """Community member account."""

    id: str
    app_username: str = Field(alias="appUsername")
    password: str
    lastfm_username: str = Field(default="", alias="lastFmUsername")
    lastfm_api_key: str = Field(default="", alias="lastFmApiKey")
    last_check_in_date: str | None = Field(default=None, alias="lastCheckInDate")

    # Free-form profile fields
    personal_playlist_url: str | None = Field(default=None, alias="personalPlaylistUrl")
    personal_artist: str | None = Field(default=None, alias="personalArtist")
    personal_track: str | None = Field(default=None, alias="personalTrack")


class UserRegistration(DocumentModel):
    """Fields supplied when a member signs up."""

    app_username: str = Field(alias="appUsername")
    password: str
    lastfm_username: str = Field(default="", alias="lastFmUsername")
    lastfm_api_key: str = Field(default="", alias="lastFmApiKey")
    personal_playlist_url: str | None = Field(default=None, alias="personalPlaylistUrl")
    personal_artist: str | None = Field(default=None, alias="personalArtist")
    personal_track: str | None = Field(default=None, alias="personalTrack")


class ProfileUpdate(DocumentModel):
    """Partial user update. Only explicitly set fields are applied."""

    password: str | None = None
    lastfm_username: str | None = Field(default=None, alias="lastFmUsername")
    lastfm_api_key: str | None = Field(default=None, alias="lastFmApiKey")
    personal_playlist_url: str | None = Field(default=None, alias="personalPlaylistUrl")
    personal_artist: str | None = Field(default=None, alias="personalArtist")
    personal_track: str | None = Field(default=None, alias="personalTrack")

    def changes(self) -> dict[str, Any]:
        """Get the fields that were explicitly provided."""
        return self.model_dump(exclude_unset=True)


class AppDocument(DocumentModel):
    """The single document shared between all clients."""

    users: list[User] = Field(default_factory=list)
    tracks: list[TargetTrack] = Field(default_factory=default_tracks)
    spotify_playlist_id: str | None = Field(default=None, alias="spotifyPlaylistId")
    weekly_schedule: dict[int, DayConfig] = Field(default_factory=dict, alias="weeklySchedule")
    admin_pin: str = Field(default=DEFAULT_ADMIN_PIN, alias="adminPin")

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any] | None) -> "AppDocument":
        """Build a document field by field.

        A field that is missing or fails validation falls back to its default
        without affecting the others.
        """
        if not isinstance(raw, Mapping):
            raw = {}

        values: dict[str, Any] = {}
        for name, field in cls.model_fields.items():
            key = field.alias or name
            if raw.get(key) is None:
                continue
            try:
                values[name] = TypeAdapter(field.annotation).validate_python(raw[key])
            except PydanticValidationError as e:
                logger.warning(f"Ignoring malformed document field '{key}': {e.error_count()} error(s)")

        return cls(**values)

    @classmethod
    def from_remote(cls, raw: Mapping[str, Any]) -> "AppDocument":
        """Build a document, rejecting it whole if any field is malformed.

        Missing or null fields take their defaults.

        Raises:
            pydantic.ValidationError: A present field failed validation.
        """
        return cls.model_validate({key: value for key, value in raw.items() if value is not None})


class CloudMode(str, Enum):
    """Effective remote store mode."""

    DISABLED = "disabled"  # explicitly switched off
    UNCONFIGURED = "unconfigured"  # no usable credentials
    ENABLED = "enabled"


class CloudConfig(DocumentModel):
    """Remote document store connection."""

    enabled: bool = False
    bin_id: str = Field(default="", alias="binId")
    api_key: str = Field(default="", alias="apiKey")

    @property
    def mode(self) -> CloudMode:
        """Resolve the effective mode of this config."""
        if not self.enabled:
            return CloudMode.DISABLED
        if not self.bin_id or not self.api_key:
            return CloudMode.UNCONFIGURED
        return CloudMode.ENABLED


def resolve_cloud_mode(config: CloudConfig | None) -> CloudMode:
    """Resolve the effective mode, treating a missing config as unconfigured."""
    if config is None:
        return CloudMode.UNCONFIGURED
    return config.mode


class ConnectionCheck(BaseModel):
    """Result of verifying remote credentials."""

    valid: bool
    message: str | None = None


class ListenEvent(BaseModel):
    """A single scrobble from the listening-history service."""

    artist: str
    title: str
    album: str | None = None
    now_playing: bool = False
    played_at: int | None = None  # Unix timestamp
    played_at_text: str | None = None

    @classmethod
    def from_lastfm(cls, raw: Mapping[str, Any]) -> "ListenEvent":
        """Build an event from a Last.fm recent-track object."""
        attrs = raw.get("@attr")
        date = raw.get("date")

        played_at = None
        played_at_text = None
        if isinstance(date, Mapping):
            uts = date.get("uts")
            if uts is not None and str(uts).isdigit():
                played_at = int(uts)
            played_at_text = date.get("#text") or None

        return cls(
            artist=_text_value(raw.get("artist")),
            title=_text_value(raw.get("name")),
            album=_text_value(raw.get("album")) or None,
            now_playing=isinstance(attrs, Mapping) and str(attrs.get("nowplaying", "")).lower() == "true",
            played_at=played_at,
            played_at_text=played_at_text,
        )


def _text_value(value: Any) -> str:
    """Extract text from Last.fm's `{"#text": ...}` / `{"name": ...}` wrappers."""
    if isinstance(value, Mapping):
        value = value.get("#text") or value.get("name") or ""
    if value is None:
        return ""
    return str(value)


class TodaySelection(BaseModel):
    """Tracks and playlist a member should see today."""

    day_index: int
    tracks: list[TargetTrack]
    spotify_id: str
    from_schedule: bool = False


class DailyProgress(BaseModel):
    """Match result for one user and one day's tracks."""

    tracks: list[TargetTrack]
    matches: dict[str, str] = Field(default_factory=dict)  # track id -> match label
    percent: int = 0
    complete: bool = False

    def is_listened(self, track_id: str) -> bool:
        """Check whether a target track was matched."""
        return track_id in self.matches
