"""Merging of the releases which several providers returned for one lookup."""

from __future__ import annotations

from collections.abc import Mapping
from copy import deepcopy
from typing import TYPE_CHECKING, Final

from concord.domain.errors import ReleaseLookupError
from concord.domain.model import MessageType, PartialDate, ProviderMessage, Release, ReleaseInfo
from concord.domain.similarity import match_by_similar_name

from .compatibility import assert_release_compatibility, filter_errors
from .release_types import guess_types_for_release, merge_types

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from concord.domain.model import ArtistCreditName, ExternalEntityId, Label, ReleaseGroupType

    from .compatibility import ProviderReleaseMapping

type ProviderPreferences = Mapping[str, Sequence[str]]

# Taken from a single provider, they can not be combined from several ones.
IMMUTABLE_RELEASE_PROPERTIES: Final[tuple[str, ...]] = (
    "title",
    "artists",
    "gtin",
    "media",
    "language",
    "script",
    "status",
    "release_date",
    "labels",
    "packaging",
    "images",
    "copyright",
)
IMMUTABLE_TRACK_PROPERTIES: Final[tuple[str, ...]] = ("isrc", "duration")
# preference keys with a custom merge algorithm
MEDIA_PREFERENCE: Final = "media"
EXTERNAL_ID_PREFERENCE: Final = "external_id"


def is_filled(value: object) -> bool:
    if value is None:
        return False
    if isinstance(value, PartialDate):
        return not value.is_empty
    if isinstance(value, str | list | set | dict | tuple):
        return len(value) > 0
    return True


def order_by_preference(items: Iterable[str], preference: Sequence[str]) -> list[str]:
    """Preferred items in preference order first, the rest keeps its relative order."""

    ranks = {item: index for index, item in enumerate(preference)}
    return sorted(items, key=lambda item: ranks.get(item, len(ranks)))


def _copy_track_property(target: Release, source: Release, name: str) -> bool:
    for medium_index, medium in enumerate(target.media):
        if medium_index >= len(source.media):
            break
        source_tracks = source.media[medium_index].tracklist
        for track_index, track in enumerate(medium.tracklist):
            if track_index < len(source_tracks):
                value = getattr(source_tracks[track_index], name)
                if value is not None:
                    setattr(track, name, value)
    # assume that most tracks are filled once any of them is
    return any(is_filled(getattr(track, name)) for track in target.tracks)


def _entity_id_key(entity_id: ExternalEntityId) -> tuple[str, str, str]:
    return (entity_id.provider, entity_id.type, entity_id.id)


def merge_resolvable_entities[E: (ArtistCreditName, Label)](
    target: list[E],
    sources: Iterable[list[E]],
) -> None:
    """Collect the external IDs of source entities whose names match a target entity."""

    source_lists = [source for source in sources if source]
    for item in target:
        external_ids = {_entity_id_key(entity_id): entity_id for entity_id in item.external_ids}
        for source in source_lists:
            match = match_by_similar_name(item, source, lambda entity: entity.name)
            if match is not None:
                for entity_id in match.external_ids:
                    external_ids.setdefault(_entity_id_key(entity_id), entity_id)
        item.external_ids = list(external_ids.values())


def _merge_external_ids(merged: Release, sources: list[Release]) -> None:
    merge_resolvable_entities(merged.artists, (source.artists for source in sources))
    merge_resolvable_entities(merged.labels, (source.labels for source in sources))

    for medium_index, medium in enumerate(merged.media):
        for track_index, track in enumerate(medium.tracklist):
            source_tracks = [
                source.media[medium_index].tracklist[track_index]
                for source in sources
                if medium_index < len(source.media)
                and track_index < len(source.media[medium_index].tracklist)
            ]
            merge_resolvable_entities(
                track.artists, (source_track.artists for source_track in source_tracks)
            )
            # keep the recording IDs of all providers
            recording_ids = {
                _entity_id_key(entity_id): entity_id for entity_id in track.external_ids
            }
            for source_track in source_tracks:
                for entity_id in source_track.external_ids:
                    recording_ids.setdefault(_entity_id_key(entity_id), entity_id)
            track.external_ids = list(recording_ids.values())


def merge_release(
    release_map: ProviderReleaseMapping,
    preferences: ProviderPreferences | Sequence[str] = (),
) -> Release:
    """Merge the provider releases into a single release.

    ``preferences`` is either one provider order for all properties or a mapping from
    property name to provider order. The ``media`` entry of such a mapping also serves
    as the default order, ``external_id`` orders the providers whose entity IDs are kept.
    """

    releases = filter_errors(release_map)
    assert_release_compatibility(releases)

    errors = [
        (name, value) for name, value in release_map.items() if isinstance(value, Exception)
    ]
    if not releases:
        details = "; ".join(f"{name}: {error}" for name, error in errors) or "no provider queried"
        raise ReleaseLookupError(f"No provider returned a release ({details})")

    merged = Release(
        title="",
        info=ReleaseInfo(
            messages=[
                ProviderMessage(str(error), MessageType.ERROR, provider=name)
                for name, error in errors
            ]
        ),
    )

    if isinstance(preferences, Mapping):
        unknown = set(preferences) - {
            *IMMUTABLE_RELEASE_PROPERTIES,
            *IMMUTABLE_TRACK_PROPERTIES,
            MEDIA_PREFERENCE,
            EXTERNAL_ID_PREFERENCE,
        }
        if unknown:
            raise ValueError(f"Unsupported preference properties: {', '.join(sorted(unknown))}")
        preferred = list(preferences.get(MEDIA_PREFERENCE, ()))
        deferred = set(preferences) - {MEDIA_PREFERENCE}
    else:
        preferred = list(preferences)
        deferred = set()

    missing_release = [name for name in IMMUTABLE_RELEASE_PROPERTIES if name not in deferred]
    missing_track = [name for name in IMMUTABLE_TRACK_PROPERTIES if name not in deferred]
    type_lists: list[Iterable[ReleaseGroupType]] = []
    providers = order_by_preference(releases, preferred)

    # Phase 1: properties without a specific preference
    for provider_name in providers:
        source = releases[provider_name]
        for name in list(missing_release):
            value = getattr(source, name)
            if is_filled(value):
                setattr(merged, name, deepcopy(value))
                merged.info.source_map[name] = provider_name
                missing_release.remove(name)

        if merged.media and source.media:
            for name in list(missing_track):
                if _copy_track_property(merged, source, name):
                    merged.info.source_map[name] = provider_name
                    missing_track.remove(name)

        merged.external_links.extend(deepcopy(source.external_links))
        merged.info.providers.extend(deepcopy(source.info.providers))
        merged.info.messages.extend(source.info.messages)
        type_lists.append(source.types)

    type_lists.append(guess_types_for_release(merged))
    merged.types = set(merge_types(*type_lists))

    # Phase 2: properties from their preferred providers
    if isinstance(preferences, Mapping):
        for name, order in preferences.items():
            if name in {MEDIA_PREFERENCE, EXTERNAL_ID_PREFERENCE}:
                continue
            for provider_name in order_by_preference(providers, order):
                source = releases[provider_name]
                if name in IMMUTABLE_TRACK_PROPERTIES:
                    if source.media and _copy_track_property(merged, source, name):
                        merged.info.source_map[name] = provider_name
                        break
                else:
                    value = getattr(source, name)
                    if is_filled(value):
                        setattr(merged, name, deepcopy(value))
                        merged.info.source_map[name] = provider_name
                        break

    # Phase 3: entity IDs of all providers
    if isinstance(preferences, Mapping) and EXTERNAL_ID_PREFERENCE in preferences:
        providers = order_by_preference(providers, preferences[EXTERNAL_ID_PREFERENCE])
    _merge_external_ids(merged, [releases[name] for name in providers])

    return merged
