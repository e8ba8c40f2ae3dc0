"""Selection of cover art from provider image lists."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Final

from .model import Artwork

if TYPE_CHECKING:
    from collections.abc import Iterable

    from .model import ArtworkType

MIN_THUMBNAIL_WIDTH: Final[int] = 200


@dataclass(frozen=True, slots=True)
class ImageCandidate:
    url: str
    width: int
    height: int


def select_largest_image(
    images: Iterable[ImageCandidate],
    types: list[ArtworkType],
) -> Artwork | None:
    """Pick the widest image; the thumbnail is the narrowest one still wide enough."""

    largest: ImageCandidate | None = None
    thumbnail: ImageCandidate | None = None
    for image in images:
        if largest is None or image.width > largest.width:
            largest = image
        if image.width < MIN_THUMBNAIL_WIDTH:
            continue
        if thumbnail is None or image.width < thumbnail.width:
            thumbnail = image
    if largest is None:
        return None
    thumb_url = thumbnail.url if thumbnail else None
    return Artwork(url=largest.url, thumb_url=thumb_url, types=list(types))
