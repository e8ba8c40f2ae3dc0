"""Parsing and normalization of International Standard Recording Codes."""

from __future__ import annotations

import re
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from .errors import InvalidISRCError

if TYPE_CHECKING:
    from .model import Release

_ISRC: Final = re.compile(r"^([A-Z]{2})-?([A-Z0-9]{3})-?(\d{2})-?(\d{5})$")


@dataclass(frozen=True, slots=True)
class ISRC:
    country: str
    registrant: str
    year: str
    designation: str

    @classmethod
    def parse(cls, code: str) -> ISRC:
        match = _ISRC.match(code.strip().upper())
        if match is None:
            raise InvalidISRCError(f"ISRC '{code}' has an unrecognized format")
        return cls(*match.groups())

    def format(self, separator: str = "-") -> str:
        return separator.join((self.country, self.registrant, self.year, self.designation))

    def __str__(self) -> str:
        return self.format("")


def normalize_isrc(code: str) -> str | None:
    """Upper case ISRC without separators, ``None`` for unrecognized codes."""

    try:
        return str(ISRC.parse(code))
    except InvalidISRCError:
        return None


def normalize_release_isrcs(release: Release) -> tuple[Release, list[str]]:
    """Copy of the release with normalized track ISRCs; unrecognized codes are kept.

    Also returns the codes which could not be normalized.
    """

    invalid: list[str] = []
    media = []
    for medium in release.media:
        tracklist = []
        for track in medium.tracklist:
            normalized = normalize_isrc(track.isrc) if track.isrc else None
            if track.isrc and normalized is None:
                invalid.append(track.isrc)
            if normalized is not None and normalized != track.isrc:
                tracklist.append(replace(track, isrc=normalized))
            else:
                tracklist.append(track)
        media.append(replace(medium, tracklist=tracklist))
    return replace(release, media=media), invalid
