"""Special purpose entities of the target database."""

from __future__ import annotations

from typing import Final

from .release import ArtistCreditName, Label

NO_LABEL_NAME: Final[str] = "[no label]"
NO_LABEL_MBID: Final[str] = "157afde4-4bf5-4039-8ad2-5a15acc85176"

VARIOUS_ARTISTS_NAME: Final[str] = "Various Artists"
VARIOUS_ARTISTS_MBID: Final[str] = "89ad4ac3-39f7-470e-963a-56509c546377"


def no_label(*, catalog_number: str | None = None) -> Label:
    return Label(name=NO_LABEL_NAME, mbid=NO_LABEL_MBID, catalog_number=catalog_number)


def various_artists() -> ArtistCreditName:
    return ArtistCreditName(name=VARIOUS_ARTISTS_NAME, mbid=VARIOUS_ARTISTS_MBID)
