"""Tests for matching and progress."""

from datetime import date
from unittest.mock import AsyncMock, MagicMock

import pytest

from streamguard.core.exceptions import CheckInError
from streamguard.core.models import DailyProgress, ListenEvent, TargetTrack, User, UserRegistration
from streamguard.services.directory import DirectoryService
from streamguard.services.lastfm import PLACEHOLDER_HISTORY
from streamguard.services.progress import (
    JUST_NOW_LABEL,
    NOW_PLAYING_LABEL,
    ProgressEngine,
    calculate_progress,
    can_check_in,
    claim_check_in,
    is_complete,
    match_label,
    match_targets,
    today_string,
)

NOW = 1_700_000_000

WEEKND = TargetTrack(id="w", artist="The Weeknd", title="Blinding Lights")


def complete_progress(tracks: list[TargetTrack]) -> DailyProgress:
    return DailyProgress(tracks=tracks, matches={t.id: JUST_NOW_LABEL for t in tracks}, percent=100, complete=True)


class TestMatchLabel:
    """Tests for match_label function."""

    def test_now_playing(self) -> None:
        event = ListenEvent(artist="a", title="b", now_playing=True, played_at=NOW - 600)
        assert match_label(event, now=NOW) == NOW_PLAYING_LABEL

    def test_relative_time(self) -> None:
        event = ListenEvent(artist="a", title="b", played_at=NOW - 600)
        assert match_label(event, now=NOW) == "10 minutes ago"

    def test_date_text_fallback(self) -> None:
        event = ListenEvent(artist="a", title="b", played_at_text="14 Nov 2023, 22:13")
        assert match_label(event, now=NOW) == "14 Nov 2023, 22:13"

    def test_just_now(self) -> None:
        assert match_label(ListenEvent(artist="a", title="b")) == JUST_NOW_LABEL


class TestMatchTargets:
    """Tests for match_targets function."""

    def test_substring_match(self) -> None:
        """Test history entries containing the target artist and title match."""
        history = [ListenEvent(artist="The Weeknd (Remix)", title="Blinding Lights - Live")]
        assert WEEKND.id in match_targets(history, [WEEKND])

    def test_case_insensitive(self) -> None:
        history = [ListenEvent(artist="THE WEEKND", title="blinding lights")]
        assert WEEKND.id in match_targets(history, [WEEKND])

    def test_containment_direction(self) -> None:
        """Test a history entry shorter than the target does not match."""
        history = [ListenEvent(artist="Weeknd Tribute Band", title="Blinding")]
        assert match_targets(history, [WEEKND]) == {}

    def test_artist_and_title_both_required(self) -> None:
        history = [
            ListenEvent(artist="The Weeknd", title="Save Your Tears"),
            ListenEvent(artist="Dua Lipa", title="Blinding Lights"),
        ]
        assert match_targets(history, [WEEKND]) == {}

    def test_first_match_labels(self) -> None:
        history = [
            ListenEvent(artist="The Weeknd", title="Blinding Lights", now_playing=True),
            ListenEvent(artist="The Weeknd", title="Blinding Lights", played_at=NOW - 3600),
        ]
        assert match_targets(history, [WEEKND], now=NOW) == {"w": NOW_PLAYING_LABEL}

    def test_unmatched_absent(self, sample_tracks: list[TargetTrack]) -> None:
        matches = match_targets(PLACEHOLDER_HISTORY, sample_tracks)
        assert set(matches) == {"a", "b"}
        assert "c" not in matches

    def test_empty_history(self, sample_tracks: list[TargetTrack]) -> None:
        assert match_targets([], sample_tracks) == {}


class TestCalculateProgress:
    """Tests for calculate_progress and is_complete."""

    def test_two_of_three(self, sample_tracks: list[TargetTrack]) -> None:
        assert calculate_progress({"a": "x", "b": "x"}, sample_tracks) == 67

    def test_no_targets(self) -> None:
        assert calculate_progress({}, []) == 0
        assert is_complete(0, []) is False

    def test_rounds_half_up(self) -> None:
        tracks = [TargetTrack(id=str(i), artist="a", title="t") for i in range(8)]
        assert calculate_progress({"0": "x"}, tracks) == 13

    def test_ignores_unknown_ids(self, sample_tracks: list[TargetTrack]) -> None:
        assert calculate_progress({"a": "x", "zzz": "x"}, sample_tracks) == 33

    def test_complete(self, sample_tracks: list[TargetTrack]) -> None:
        matches = {t.id: "x" for t in sample_tracks}
        percent = calculate_progress(matches, sample_tracks)
        assert percent == 100
        assert is_complete(percent, sample_tracks) is True

    def test_incomplete(self, sample_tracks: list[TargetTrack]) -> None:
        assert is_complete(67, sample_tracks) is False


class TestProgressEngine:
    """Tests for ProgressEngine."""

    @pytest.mark.asyncio
    async def test_evaluate_uses_user_credentials(self, sample_tracks: list[TargetTrack]) -> None:
        lastfm = MagicMock()
        lastfm.fetch_recent_history = AsyncMock(return_value=PLACEHOLDER_HISTORY)
        engine = ProgressEngine(lastfm)
        user = User(id="u", app_username="alice", password="pw", lastfm_username="alice_fm", lastfm_api_key="k")

        progress = await engine.evaluate(user, sample_tracks)

        lastfm.fetch_recent_history.assert_called_once_with("alice_fm", "k")
        assert progress.percent == 67
        assert progress.complete is False
        assert progress.is_listened("a")

    def test_evaluate_history_complete(self) -> None:
        engine = ProgressEngine(MagicMock())
        history = [ListenEvent(artist="The Weeknd", title="Blinding Lights")]

        progress = engine.evaluate_history(history, [WEEKND])

        assert progress.percent == 100
        assert progress.complete is True
        assert progress.matches == {"w": JUST_NOW_LABEL}

    def test_evaluate_history_no_tracks(self) -> None:
        progress = ProgressEngine(MagicMock()).evaluate_history(PLACEHOLDER_HISTORY, [])
        assert progress.percent == 0
        assert progress.complete is False


class TestCheckIn:
    """Tests for check-in gating."""

    def test_today_string(self) -> None:
        assert today_string(date(2024, 1, 1)) == "2024-01-01"

    def test_can_check_in(self) -> None:
        user = User(id="u", app_username="alice", password="pw")
        assert can_check_in(user, complete_progress([WEEKND]), "2024-01-01") is True

    def test_cannot_check_in_twice(self) -> None:
        user = User(id="u", app_username="alice", password="pw", last_check_in_date="2024-01-01")
        assert can_check_in(user, complete_progress([WEEKND]), "2024-01-01") is False
        assert can_check_in(user, complete_progress([WEEKND]), "2024-01-02") is True

    def test_cannot_check_in_incomplete(self) -> None:
        user = User(id="u", app_username="alice", password="pw")
        progress = DailyProgress(tracks=[WEEKND], percent=0, complete=False)
        assert can_check_in(user, progress, "2024-01-01") is False

    @pytest.mark.asyncio
    async def test_claim_check_in(self, directory: DirectoryService) -> None:
        user = await directory.register(UserRegistration(app_username="alice", password="pw"))

        updated = await claim_check_in(directory, user, complete_progress([WEEKND]), "2024-01-01")

        assert updated.last_check_in_date == "2024-01-01"

    @pytest.mark.asyncio
    async def test_second_claim_rejected(self, directory: DirectoryService) -> None:
        user = await directory.register(UserRegistration(app_username="alice", password="pw"))
        user = await claim_check_in(directory, user, complete_progress([WEEKND]), "2024-01-01")

        with pytest.raises(CheckInError):
            await claim_check_in(directory, user, complete_progress([WEEKND]), "2024-01-01")

        assert (await directory.get_user(user.id)).last_check_in_date == "2024-01-01"

    @pytest.mark.asyncio
    async def test_incomplete_claim_rejected(self, directory: DirectoryService) -> None:
        user = await directory.register(UserRegistration(app_username="alice", password="pw"))
        progress = DailyProgress(tracks=[WEEKND], percent=0, complete=False)

        with pytest.raises(CheckInError):
            await claim_check_in(directory, user, progress, "2024-01-01")

        assert (await directory.get_user(user.id)).last_check_in_date is None
