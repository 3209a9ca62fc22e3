"""Core modules for StreamGuard."""

from streamguard.core.config import Settings, get_settings
from streamguard.core.models import (
    AppDocument,
    CloudConfig,
    CloudMode,
    DailyProgress,
    DayConfig,
    ListenEvent,
    TargetTrack,
    User,
)

__all__ = [
    "Settings",
    "get_settings",
    "AppDocument",
    "CloudConfig",
    "CloudMode",
    "DailyProgress",
    "DayConfig",
    "ListenEvent",
    "TargetTrack",
    "User",
]
