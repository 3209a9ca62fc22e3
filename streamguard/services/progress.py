"""Match listening history against target tracks and gate check-ins."""

import logging
import math
from datetime import date

from streamguard.core.exceptions import CheckInError
from streamguard.core.models import DailyProgress, ListenEvent, TargetTrack, User
from streamguard.services.directory import DirectoryService
from streamguard.services.lastfm import LastFmClient
from streamguard.utils.text import fold, format_relative_time

logger = logging.getLogger(__name__)

NOW_PLAYING_LABEL = "Listening Now..."
JUST_NOW_LABEL = "Just now"


def today_string(day: date | None = None) -> str:
    """Get the date string stored on check-in."""
    return (day or date.today()).isoformat()


def match_label(event: ListenEvent, now: float | None = None) -> str:
    """Describe when a matched event was played."""
    if event.now_playing:
        return NOW_PLAYING_LABEL
    if event.played_at is not None:
        return format_relative_time(event.played_at, now)
    if event.played_at_text:
        return event.played_at_text
    return JUST_NOW_LABEL


def match_targets(
    history: list[ListenEvent],
    targets: list[TargetTrack],
    now: float | None = None,
) -> dict[str, str]:
    """Find which target tracks appear in the history.

    A target matches the first event whose artist contains the target artist
    and whose title contains the target title, ignoring case. So the target
    "The Weeknd" / "Blinding Lights" matches a played "The Weeknd (Remix)" /
    "Blinding Lights - Live", but not the other way round.

    Returns:
        Mapping of matched target id to a label. Unmatched targets are absent.
    """
    matches: dict[str, str] = {}
    for target in targets:
        artist = fold(target.artist)
        title = fold(target.title)
        for event in history:
            if artist in fold(event.artist) and title in fold(event.title):
                matches[target.id] = match_label(event, now)
                break
    return matches


def calculate_progress(matches: dict[str, str], targets: list[TargetTrack]) -> int:
    """Percentage of targets matched, rounded half up."""
    if not targets:
        return 0
    matched = sum(1 for target in targets if target.id in matches)
    return math.floor(100 * matched / len(targets) + 0.5)


def is_complete(percent: int, targets: list[TargetTrack]) -> bool:
    """An empty track list is never complete."""
    return percent == 100 and len(targets) > 0


def can_check_in(user: User, progress: DailyProgress, today: str) -> bool:
    """Check whether a user may claim today's check-in."""
    return progress.complete and user.last_check_in_date != today


class ProgressEngine:
    """Computes a user's progress against a day's tracks."""

    def __init__(self, lastfm: LastFmClient):
        self.lastfm = lastfm

    def evaluate_history(
        self,
        history: list[ListenEvent],
        tracks: list[TargetTrack],
        now: float | None = None,
    ) -> DailyProgress:
        """Build progress from an already fetched history."""
        matches = match_targets(history, tracks, now)
        percent = calculate_progress(matches, tracks)
        return DailyProgress(
            tracks=tracks,
            matches=matches,
            percent=percent,
            complete=is_complete(percent, tracks),
        )

    async def evaluate(self, user: User, tracks: list[TargetTrack]) -> DailyProgress:
        """Fetch a user's history and match it against the tracks."""
        history = await self.lastfm.fetch_recent_history(user.lastfm_username, user.lastfm_api_key)
        progress = self.evaluate_history(history, tracks)
        logger.info(f"{user.app_username}: {len(progress.matches)}/{len(tracks)} tracks, {progress.percent}%")
        return progress


async def claim_check_in(
    directory: DirectoryService,
    user: User,
    progress: DailyProgress,
    today: str | None = None,
) -> User:
    """Record today's check-in for a user who completed the goal.

    Raises:
        CheckInError: Goal not complete, or already claimed today.
    """
    today = today or today_string()

    if not progress.complete:
        raise CheckInError(f"Daily goal not complete ({progress.percent}%)")
    if user.last_check_in_date == today:
        raise CheckInError(f"Already checked in on {today}")

    updated = await directory.update_check_in(user.id, today)
    logger.info(f"{user.app_username} checked in on {today}")
    return updated
