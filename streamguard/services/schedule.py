"""Schedule resolver and admin editing for the weekly track schedule."""

import logging
from datetime import date

from streamguard.core.config import Settings
from streamguard.core.exceptions import ValidationError
from streamguard.core.models import (
    AppDocument,
    DayConfig,
    TargetTrack,
    TodaySelection,
    default_tracks,
)
from streamguard.services.document_store import DocumentStore

logger = logging.getLogger(__name__)

DAY_NAMES = ["Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

MIN_PIN_LENGTH = 4


def day_index(day: date) -> int:
    """Convert a date to a day index (0 = Sunday ... 6 = Saturday)."""
    return (day.weekday() + 1) % 7


def current_day_index() -> int:
    """Get today's day index in local time."""
    return day_index(date.today())


def validate_day_index(index: int) -> int:
    """Ensure a day index is in range."""
    if not 0 <= index <= 6:
        raise ValidationError(f"Day index must be between 0 and 6, got {index}")
    return index


def validate_pin(pin: str) -> str:
    """Ensure an admin PIN is long enough."""
    if len(pin) < MIN_PIN_LENGTH:
        raise ValidationError(f"PIN must be at least {MIN_PIN_LENGTH} characters")
    return pin


class ScheduleService:
    """Resolves today's tracks and edits the weekly schedule."""

    def __init__(self, store: DocumentStore, settings: Settings):
        self.store = store
        self.settings = settings

    def resolve_today(self, document: AppDocument, index: int | None = None) -> TodaySelection:
        """Work out what members should listen to today.

        A day entry with at least one track overrides the legacy flat list.
        Empty or missing day entries fall back to the legacy tracks, then to
        the built-in defaults.
        """
        if index is None:
            index = current_day_index()

        day = document.weekly_schedule.get(index)
        if day is not None and day.tracks:
            spotify_id = day.spotify_id
            if spotify_id is None:
                spotify_id = document.spotify_playlist_id
            if spotify_id is None:
                spotify_id = self.settings.default_spotify_playlist_id
            return TodaySelection(day_index=index, tracks=day.tracks, spotify_id=spotify_id, from_schedule=True)

        return TodaySelection(
            day_index=index,
            tracks=document.tracks or default_tracks(),
            spotify_id=document.spotify_playlist_id or self.settings.default_spotify_playlist_id,
        )

    async def today(self) -> TodaySelection:
        """Fetch the document and resolve today's selection."""
        document = await self.store.fetch_document()
        return self.resolve_today(document)

    async def get_schedule(self) -> dict[int, DayConfig]:
        """Get the weekly schedule."""
        document = await self.store.fetch_document()
        return document.weekly_schedule

    async def save_schedule(self, schedule: dict[int, DayConfig]) -> None:
        """Replace the whole weekly schedule."""
        for index in schedule:
            validate_day_index(index)

        document = await self.store.fetch_document()
        document.weekly_schedule = dict(sorted(schedule.items()))
        await self.store.save_document(document)
        logger.info(f"Saved weekly schedule ({len(schedule)} day(s) configured)")

    async def set_day(self, index: int, day: DayConfig) -> None:
        """Replace one day's configuration."""
        validate_day_index(index)
        document = await self.store.fetch_document()
        document.weekly_schedule[index] = day
        await self.store.save_document(document)

    async def clear_day(self, index: int) -> None:
        """Remove one day's configuration so it falls back to the legacy list."""
        validate_day_index(index)
        document = await self.store.fetch_document()
        document.weekly_schedule.pop(index, None)
        await self.store.save_document(document)

    async def copy_from_day(self, source: int, target: int) -> None:
        """Copy one day's configuration over another.

        The target is overwritten entirely. Copying an unset day unsets the
        target.
        """
        validate_day_index(source)
        validate_day_index(target)

        document = await self.store.fetch_document()
        day = document.weekly_schedule.get(source)
        if day is None:
            document.weekly_schedule.pop(target, None)
        else:
            document.weekly_schedule[target] = day.model_copy(deep=True)
        await self.store.save_document(document)
        logger.info(f"Copied {DAY_NAMES[source]} schedule to {DAY_NAMES[target]}")

    async def save_tracks(self, tracks: list[TargetTrack]) -> None:
        """Replace the legacy flat track list."""
        document = await self.store.fetch_document()
        document.tracks = tracks
        await self.store.save_document(document)

    async def set_playlist_id(self, playlist_id: str | None) -> None:
        """Replace the legacy global playlist id."""
        document = await self.store.fetch_document()
        document.spotify_playlist_id = playlist_id
        await self.store.save_document(document)

    async def get_admin_pin(self) -> str:
        """Get the admin PIN."""
        document = await self.store.fetch_document()
        return document.admin_pin

    async def set_admin_pin(self, pin: str) -> None:
        """Store a new admin PIN. Length is checked by the caller."""
        document = await self.store.fetch_document()
        document.admin_pin = pin
        await self.store.save_document(document)
