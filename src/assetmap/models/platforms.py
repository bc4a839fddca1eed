"""Recon platform identifiers."""

from __future__ import annotations

from enum import StrEnum


class Platform(StrEnum):
    """Supported internet-asset search engines."""

    HUNTER = "hunter"
    FOFA = "fofa"
    QUAKE = "quake"
    DAYDAYMAP = "daydaymap"


ALL_PLATFORMS: tuple[Platform, ...] = tuple(Platform)

PLATFORM_LABELS: dict[Platform, str] = {
    Platform.HUNTER: "Hunter",
    Platform.FOFA: "FOFA",
    Platform.QUAKE: "Quake",
    Platform.DAYDAYMAP: "DayDayMap",
}


def parse_platform(value: str | Platform) -> Platform:
    """Return the Platform for a key, raising ValueError on unknown keys."""
    if isinstance(value, Platform):
        return value
    try:
        return Platform(value.strip().lower())
    except ValueError:
        msg = f"Unknown platform: {value!r}"
        raise ValueError(msg) from None
