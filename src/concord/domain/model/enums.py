"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class ReleaseGroupType(StrEnum):
    # primary types
    ALBUM = "Album"
    SINGLE = "Single"
    EP = "EP"
    BROADCAST = "Broadcast"
    OTHER = "Other"

    # secondary types
    AUDIO_DRAMA = "Audio drama"
    AUDIOBOOK = "Audiobook"
    COMPILATION = "Compilation"
    DEMO = "Demo"
    DJ_MIX = "DJ-mix"
    FIELD_RECORDING = "Field recording"
    INTERVIEW = "Interview"
    LIVE = "Live"
    MIXTAPE = "Mixtape/Street"
    REMIX = "Remix"
    SOUNDTRACK = "Soundtrack"
    SPOKENWORD = "Spokenword"

    @property
    def is_primary(self) -> bool:
        return self in PRIMARY_TYPES


PRIMARY_TYPES = frozenset(
    {
        ReleaseGroupType.ALBUM,
        ReleaseGroupType.SINGLE,
        ReleaseGroupType.EP,
        ReleaseGroupType.BROADCAST,
        ReleaseGroupType.OTHER,
    }
)


class ArtworkType(StrEnum):
    FRONT = "front"
    BACK = "back"
    BOOKLET = "booklet"
    MEDIUM = "medium"
    TRACK = "track"


class LinkType(StrEnum):
    FREE_DOWNLOAD = "free download"
    FREE_STREAMING = "free streaming"
    PAID_DOWNLOAD = "paid download"
    PAID_STREAMING = "paid streaming"
    MAIL_ORDER = "mail order"
    DISCOGRAPHY = "discography page"


class MessageType(StrEnum):
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LookupMethod(StrEnum):
    GTIN = "gtin"
    ID = "id"


class MediaType(StrEnum):
    AUDIO = "audio"
    VIDEO = "video"


class SnapshotFallback(StrEnum):
    """What to do when a snapshot ceiling has no matching snapshot."""

    STRICT = "strict"
    """Raise ``CacheMissError``."""
    REFETCH = "refetch"
    """Discard the ceiling and repeat the whole lookup with live data."""
    MIXED = "mixed"
    """Fetch only the missing responses live, accepting mixed freshness."""
