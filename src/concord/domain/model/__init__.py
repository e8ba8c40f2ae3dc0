"""Canonical release model."""

from __future__ import annotations

from .enums import (
    PRIMARY_TYPES,
    ArtworkType,
    LinkType,
    LookupMethod,
    MediaType,
    MessageType,
    ReleaseGroupType,
    SnapshotFallback,
)
from .primitives import (
    GTIN,
    CountryCode,
    DurationMs,
    Isrc,
    Language,
    Mbid,
    PartialDate,
    ScriptFrequency,
    UnixSeconds,
)
from .release import (
    ArtistCreditName,
    Artwork,
    ExternalEntityId,
    ExternalLink,
    Label,
    LookupParameters,
    Medium,
    ProviderInfo,
    ProviderMessage,
    Release,
    ReleaseInfo,
    Track,
    format_artist_credit,
)
from .special_entities import (
    NO_LABEL_MBID,
    NO_LABEL_NAME,
    VARIOUS_ARTISTS_MBID,
    VARIOUS_ARTISTS_NAME,
    no_label,
    various_artists,
)

__all__ = [
    "GTIN",
    "NO_LABEL_MBID",
    "NO_LABEL_NAME",
    "PRIMARY_TYPES",
    "VARIOUS_ARTISTS_MBID",
    "VARIOUS_ARTISTS_NAME",
    "ArtistCreditName",
    "Artwork",
    "ArtworkType",
    "CountryCode",
    "DurationMs",
    "ExternalEntityId",
    "ExternalLink",
    "Isrc",
    "Label",
    "Language",
    "LinkType",
    "LookupMethod",
    "LookupParameters",
    "Mbid",
    "MediaType",
    "Medium",
    "MessageType",
    "PartialDate",
    "ProviderInfo",
    "ProviderMessage",
    "Release",
    "ReleaseGroupType",
    "ReleaseInfo",
    "ScriptFrequency",
    "SnapshotFallback",
    "Track",
    "UnixSeconds",
    "format_artist_credit",
    "no_label",
    "various_artists",
]
