"""Deduplication of resolvable entities (artists, labels)."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Iterable


class ResolvableEntity(Protocol):
    """Entity which can be resolved to a database entry by name or MBID."""

    @property
    def name(self) -> str | None: ...

    @property
    def mbid(self) -> str | None: ...


def dedupe[E: ResolvableEntity](entities: Iterable[E]) -> list[E]:
    """Keep the first entity per MBID, or per exact name for entities without MBID.

    Entities with neither MBID nor name are dropped; order of first appearance is kept.
    """

    result: list[E] = []
    mbids: set[str] = set()
    names: set[str] = set()
    for entity in entities:
        if entity.mbid:
            if entity.mbid not in mbids:
                mbids.add(entity.mbid)
                result.append(entity)
        elif entity.name:
            if entity.name not in names:
                names.add(entity.name)
                result.append(entity)
    return result
