"""Tracklist summaries and repairs."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .model import Track

if TYPE_CHECKING:
    from .model import Medium, Release

UNKNOWN_TRACK_TITLE = "[unknown]"


def track_count_summary(release: Release) -> str:
    """Per medium track counts, e.g. ``"10+2 12 tracks"``."""

    counts = [len(medium.tracklist) for medium in release.media] or [0]
    total = sum(counts)
    noun = "track" if total == 1 else "tracks"
    return f"{'+'.join(str(count) for count in counts)} {total} {noun}"


def fill_tracklist_gaps(medium: Medium, track_count: int | None = None) -> None:
    """Insert placeholder tracks where the numbering of ``medium`` skips positions.

    Assumes consecutive numbers starting at 1. With ``track_count`` the tracklist is
    also padded at the end.
    """

    tracklist = medium.tracklist
    index = 0
    while index < len(tracklist):
        number = tracklist[index].number
        if isinstance(number, int):
            missing = number - index - 1
            for offset in range(max(missing, 0)):
                position = index + offset
                tracklist.insert(position, Track(number=position + 1, title=UNKNOWN_TRACK_TITLE))
        index += 1

    if track_count:
        while len(tracklist) < track_count:
            tracklist.append(Track(number=len(tracklist) + 1, title=UNKNOWN_TRACK_TITLE))


def fill_media_tracklist_gaps(media: list[Medium], total_track_count: int) -> None:
    """Fill gaps of every medium; trailing gaps are only fillable on the last medium."""

    for medium in media[:-1]:
        fill_tracklist_gaps(medium)
    known = sum(len(medium.tracklist) for medium in media[:-1])
    if media:
        last = media[-1]
        fill_tracklist_gaps(last, max(total_track_count - known, 0) or None)
