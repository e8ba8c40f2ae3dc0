"""Canonical release model which every provider converts into."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from .enums import ArtworkType, LinkType, LookupMethod, MediaType, MessageType, ReleaseGroupType
from .primitives import PartialDate

if TYPE_CHECKING:
    from .primitives import GTIN, CountryCode, DurationMs, Isrc, Language, Mbid, ScriptFrequency


@dataclass(frozen=True, slots=True)
class ExternalEntityId:
    """Identifier of an entity on a provider, e.g. ``("tidal", "artist", "123")``."""

    provider: str
    type: str
    id: str


@dataclass(kw_only=True)
class ArtistCreditName:
    name: str
    credited_name: str | None = None
    join_phrase: str | None = None
    external_ids: list[ExternalEntityId] = field(default_factory=list)
    mbid: Mbid | None = None

    def __post_init__(self) -> None:
        if self.credited_name is None:
            self.credited_name = self.name


def format_artist_credit(credits: list[ArtistCreditName]) -> str:
    """Join the credited names; the join phrase of the final credit is never rendered."""

    parts: list[str] = []
    for index, credit in enumerate(credits):
        parts.append(credit.credited_name or credit.name)
        if index < len(credits) - 1:
            parts.append(credit.join_phrase if credit.join_phrase is not None else ", ")
    return "".join(parts)


@dataclass(kw_only=True)
class Label:
    name: str | None = None
    catalog_number: str | None = None
    external_ids: list[ExternalEntityId] = field(default_factory=list)
    mbid: Mbid | None = None


@dataclass(kw_only=True)
class Artwork:
    url: str
    thumb_url: str | None = None
    types: list[ArtworkType] = field(default_factory=list)
    comment: str | None = None


@dataclass(kw_only=True)
class ExternalLink:
    url: str
    types: list[LinkType] = field(default_factory=list)


@dataclass(kw_only=True)
class Track:
    number: int | str | None = None
    title: str
    duration: DurationMs | None = None
    isrc: Isrc | None = None
    artists: list[ArtistCreditName] = field(default_factory=list)
    media_type: MediaType | None = None
    external_ids: list[ExternalEntityId] = field(default_factory=list)


@dataclass(kw_only=True)
class Medium:
    number: int = 1
    format: str | None = None
    title: str | None = None
    tracklist: list[Track] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class LookupParameters:
    method: LookupMethod
    value: str
    region: CountryCode | None = None


@dataclass(kw_only=True)
class ProviderInfo:
    """Lookup record of one provider which contributed to a release."""

    name: str
    internal_name: str
    id: str
    url: str
    api_url: str | None = None
    lookup: LookupParameters
    cache_time: int | None = None
    is_template: bool = False
    processing_time: float | None = None


@dataclass(frozen=True, slots=True)
class ProviderMessage:
    text: str
    type: MessageType = MessageType.INFO
    provider: str | None = None


@dataclass(kw_only=True)
class ReleaseInfo:
    providers: list[ProviderInfo] = field(default_factory=list)
    messages: list[ProviderMessage] = field(default_factory=list)
    # property name -> provider which supplied it during a merge
    source_map: dict[str, str] = field(default_factory=dict)

    @property
    def max_cache_time(self) -> int | None:
        """Time at which the newest piece of provider data was cached."""
        timestamps = [provider.cache_time for provider in self.providers if provider.cache_time]
        return max(timestamps) if timestamps else None


@dataclass(kw_only=True)
class Release:
    title: str
    artists: list[ArtistCreditName] = field(default_factory=list)
    gtin: GTIN | None = None
    external_links: list[ExternalLink] = field(default_factory=list)
    types: set[ReleaseGroupType] = field(default_factory=set)
    release_date: PartialDate = field(default_factory=PartialDate)
    copyright: str | None = None
    status: str | None = None
    packaging: str | None = None
    images: list[Artwork] = field(default_factory=list)
    labels: list[Label] = field(default_factory=list)
    language: Language | None = None
    script: ScriptFrequency | None = None
    media: list[Medium] = field(default_factory=list)
    info: ReleaseInfo = field(default_factory=ReleaseInfo)

    @property
    def tracks(self) -> list[Track]:
        return [track for medium in self.media for track in medium.tracklist]

    @property
    def all_titles(self) -> list[str]:
        """Track titles followed by the release title."""
        return [*(track.title for track in self.tracks), self.title]
