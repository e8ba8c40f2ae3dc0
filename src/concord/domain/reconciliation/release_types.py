"""Guessing of release group types from release and track titles."""

from __future__ import annotations

import re
from dataclasses import dataclass
from functools import reduce
from typing import TYPE_CHECKING, Final

from concord.domain.model import ReleaseGroupType

if TYPE_CHECKING:
    from collections.abc import Iterable

    from concord.domain.model import Medium, Release, Track


@dataclass(frozen=True, slots=True)
class _TypeMatcher:
    pattern: re.Pattern[str]
    # None means the first capture group names the type
    type: ReleaseGroupType | None = None


_I = re.IGNORECASE

RELEASE_TYPE_MATCHERS: Final[tuple[_TypeMatcher, ...]] = (
    # common for Bandcamp releases
    _TypeMatcher(re.compile(r"\s\((EP|Single|Live|Demo)\)(?:\s\(.*?\))?$", _I)),
    # iTunes singles and EPs
    _TypeMatcher(re.compile(r"\s- (EP|Single|Live)(?:\s\(.*?\))?$", _I)),
    # generic "EP" suffix
    _TypeMatcher(re.compile(r"\s(EP)(?:\s\(.*?\))?$", _I)),
    # "Remixed", "The Remixes" or "<Track> (<Remixer> remix)"
    _TypeMatcher(re.compile(r"\b(Remix)(?:e[sd])?\b", _I)),
    _TypeMatcher(
        re.compile(r"\bContinuous DJ[\s-]Mix\b|[(\[]DJ[\s-]mix[)\]]", _I),
        ReleaseGroupType.DJ_MIX,
    ),
    # "Official/Original <Medium> Soundtrack" and "Original Score"
    _TypeMatcher(
        re.compile(r"(?:Original|Official)(?:.*?)(?:Soundtrack|Score)", _I),
        ReleaseGroupType.SOUNDTRACK,
    ),
    # "Soundtrack from the <Medium>"
    _TypeMatcher(
        re.compile(
            r"(?:Soundtrack|Score|Music)\s(?:(?:from|to) the)\s(?:.+[\s-])?"
            r"(?:(?:Video\s)?Game|Motion Picture|Film|Movie|"
            r"(?:(?:TV|Television)[\s-]?)?(?:Mini[\s-]?)?Series|Musical)",
            _I,
        ),
        ReleaseGroupType.SOUNDTRACK,
    ),
    # leading or trailing O.S.T. / OST, case sensitive
    _TypeMatcher(
        re.compile(
            r"(?:^(?:\(O\.S\.T\.\)|O\.S\.T\.|OST|\(OST\))\s.+"
            r"|.+\s(?:\(O\.S\.T\.\)|O\.S\.T\.|OST|\(OST\))$)"
        ),
        ReleaseGroupType.SOUNDTRACK,
    ),
    _TypeMatcher(re.compile(r"Original (?:.+\s)?Cast Recording", _I), ReleaseGroupType.SOUNDTRACK),
    # German
    _TypeMatcher(
        re.compile(
            r"(?:Soundtrack|Musik)\s(?:zum|zur)\s(?:.+[\s-])?"
            r"(?:(?:Kino)?Film|Theaterstück|(?:TV[\s-]?)?Serie)",
            _I,
        ),
        ReleaseGroupType.SOUNDTRACK,
    ),
    # Swedish
    _TypeMatcher(
        re.compile(
            r"(?:Soundtrack|Musik(?:en)?)\s(?:från|till|ur)\s(?:.+[\s-])?"
            r"(?:Film(?:en)?|(?:TV[\s-]?)?(?:Mini[\s-]?)?Serien?|Musikalen)",
            _I,
        ),
        ReleaseGroupType.SOUNDTRACK,
    ),
    # Norwegian
    _TypeMatcher(
        re.compile(r"Musikk(?:en)? (?:fra) (?:Filmen|TV[\s-]serien|(?:teater)?forestillingen)", _I),
        ReleaseGroupType.SOUNDTRACK,
    ),
)

_DJ_MIX_TRACK_PATTERN: Final = re.compile(r"\s(?:- Mixed|\(Mixed\)|\[Mixed\])(?:\s\(.*?\))?$", _I)


def capitalize_release_type(source_type: str) -> ReleaseGroupType:
    """Map a provider type string such as ``"ALBUM"`` or ``"ep"`` to a release group type."""

    lowered = source_type.lower()
    for release_type in ReleaseGroupType:
        if release_type.value.lower() == lowered:
            return release_type
    raise ValueError(f"Unknown release group type: {source_type}")


def guess_types_from_title(title: str) -> set[ReleaseGroupType]:
    """Every matching pattern contributes its type, the first match per pattern wins."""

    types: set[ReleaseGroupType] = set()
    for matcher in RELEASE_TYPE_MATCHERS:
        if matcher.type is not None and matcher.type in types:
            continue
        match = matcher.pattern.search(title)
        if not match:
            continue
        if matcher.type is not None:
            types.add(matcher.type)
        else:
            types.add(capitalize_release_type(match.group(1)))
    return types


def guess_live_release(tracks: list[Track]) -> bool:
    """True if every track title indicates a live recording; never for zero tracks."""

    return bool(tracks) and all(
        ReleaseGroupType.LIVE in guess_types_from_title(track.title) for track in tracks
    )


def guess_dj_mix_release(media: list[Medium]) -> bool:
    """True if all tracks of at least one medium are marked as mixed.

    Some DJ-mix releases have a medium with the mix and another with the unmixed tracks.
    """

    return any(
        medium.tracklist
        and all(_DJ_MIX_TRACK_PATTERN.search(track.title) for track in medium.tracklist)
        for medium in media
    )


def guess_types_for_release(release: Release) -> set[ReleaseGroupType]:
    """Union of the existing types and those guessed from release and track titles."""

    types = set(release.types) | guess_types_from_title(release.title)
    if ReleaseGroupType.LIVE not in types and guess_live_release(release.tracks):
        types.add(ReleaseGroupType.LIVE)
    if ReleaseGroupType.DJ_MIX not in types and guess_dj_mix_release(release.media):
        types.add(ReleaseGroupType.DJ_MIX)
    return types


def sort_types(types: Iterable[ReleaseGroupType]) -> list[ReleaseGroupType]:
    """Primary types first, then secondary types, each group alphabetically."""

    return sorted(
        set(types), key=lambda release_type: (not release_type.is_primary, release_type.value)
    )


def _prefer_primary(previous: ReleaseGroupType, current: ReleaseGroupType) -> ReleaseGroupType:
    # Many providers use Album as their generic type.
    if previous in {ReleaseGroupType.ALBUM, ReleaseGroupType.OTHER}:
        return current
    if previous is ReleaseGroupType.SINGLE and current is ReleaseGroupType.EP:
        return current
    return previous


def merge_types(*type_lists: Iterable[ReleaseGroupType]) -> list[ReleaseGroupType]:
    """Combine type lists, reducing them to a single primary type."""

    primary: list[ReleaseGroupType] = []
    result: set[ReleaseGroupType] = set()
    for types in type_lists:
        for release_type in types:
            if release_type.is_primary:
                if release_type not in primary:
                    primary.append(release_type)
            else:
                result.add(release_type)
    if primary:
        result.add(reduce(_prefer_primary, primary))
    return sort_types(result)
