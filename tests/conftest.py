"""Shared test fixtures for StreamGuard."""

from collections.abc import Generator
from pathlib import Path

import pytest

from streamguard.core.config import Settings
from streamguard.core.models import TargetTrack, UserRegistration
from streamguard.services.directory import DirectoryService
from streamguard.services.document_store import DocumentStore
from streamguard.services.local_cache import LocalCache
from streamguard.services.schedule import ScheduleService


@pytest.fixture
def test_settings(tmp_path: Path) -> Settings:
    """Settings with no default remote config and a temporary cache."""
    return Settings(
        environment="development",
        cache_path=str(tmp_path / "cache.db"),
        cloud_enabled=False,
        cloud_bin_id="",
        cloud_api_key="",
    )


@pytest.fixture
def cache(test_settings: Settings) -> Generator[LocalCache, None, None]:
    """Empty local cache."""
    local = LocalCache(test_settings.resolved_cache_path)
    yield local
    local.close()


@pytest.fixture
def store(test_settings: Settings, cache: LocalCache) -> DocumentStore:
    """Local-only document store."""
    return DocumentStore(test_settings, cache)


@pytest.fixture
def directory(store: DocumentStore) -> DirectoryService:
    """Directory service on the local store."""
    return DirectoryService(store)


@pytest.fixture
def schedule_service(store: DocumentStore, test_settings: Settings) -> ScheduleService:
    """Schedule service on the local store."""
    return ScheduleService(store, test_settings)


@pytest.fixture
def sample_registration() -> UserRegistration:
    """Sample sign-up data."""
    return UserRegistration(
        app_username="Alice",
        password="hunter22",
        lastfm_username="alice_fm",
        lastfm_api_key="alice-key",
    )


@pytest.fixture
def sample_tracks() -> list[TargetTrack]:
    """Three target tracks."""
    return [
        TargetTrack(id="a", artist="NewJeans", title="Super Shy"),
        TargetTrack(id="b", artist="The Weeknd", title="Blinding Lights"),
        TargetTrack(id="c", artist="Arctic Monkeys", title="Do I Wanna Know?"),
    ]
