"""Cleanup of release labels which are no real imprints."""

from __future__ import annotations

import re
from dataclasses import replace
from typing import TYPE_CHECKING, Final

from concord.domain.model import NO_LABEL_MBID, NO_LABEL_NAME, Label

if TYPE_CHECKING:
    from collections.abc import Iterable

# Placeholder names of the DistroKid distributor, e.g. "Distro Kid" or "123456 Records DK2".
DISTRO_KID_PATTERN: Final = re.compile(r"^(Distro\s*Kid|\d+ Records DK\d*)$", re.IGNORECASE)

# only split at slashes with at least three other characters on both sides
_LABEL_SEPARATOR: Final = re.compile(r"(?<=[^/]{3})/(?=[^/]{3})")


def is_bogus_label_name(name: str | None) -> bool:
    return name is not None and DISTRO_KID_PATTERN.match(name) is not None


def cleanup_bogus_release_labels(labels: Iterable[Label]) -> list[Label]:
    """Replace distributor placeholders by the "no label" entity.

    Catalog numbers survive, external IDs are discarded as the placeholder has none.
    """

    cleaned: list[Label] = []
    for label in labels:
        if is_bogus_label_name(label.name):
            cleaned.append(
                replace(label, name=NO_LABEL_NAME, mbid=NO_LABEL_MBID, external_ids=[])
            )
        else:
            cleaned.append(label)
    return cleaned


def split_labels(names: str) -> list[Label]:
    """Split ``"Roc Nation / RocAFella / IDJ"`` into one label per name.

    Names such as ``"AC/DC Records"`` stay intact.
    """

    return [Label(name=name.strip()) for name in _LABEL_SEPARATOR.split(names) if name.strip()]
