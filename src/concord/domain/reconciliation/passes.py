"""Pure reconciliation passes over a single release."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from concord.domain.isrc import normalize_release_isrcs
from concord.domain.model import MessageType, ProviderMessage

from .deduplicate import dedupe
from .labels import cleanup_bogus_release_labels
from .release_types import guess_types_for_release

if TYPE_CHECKING:
    from collections.abc import Callable

    from concord.domain.model import Release


@dataclass(frozen=True, slots=True)
class PassResult:
    release: Release
    messages: tuple[ProviderMessage, ...] = ()


type ReleasePass = Callable[[Release], PassResult]


def cleanup_labels_pass(release: Release) -> PassResult:
    labels = cleanup_bogus_release_labels(release.labels)
    replaced = [
        original.name
        for original, cleaned in zip(release.labels, labels, strict=True)
        if original is not cleaned
    ]
    if not replaced:
        return PassResult(release)
    return PassResult(
        replace(release, labels=labels),
        (
            ProviderMessage(
                f"Replaced placeholder labels by [no label]: {', '.join(map(str, replaced))}",
                MessageType.INFO,
            ),
        ),
    )


def dedupe_labels_pass(release: Release) -> PassResult:
    labels = dedupe(release.labels)
    if len(labels) == len(release.labels):
        return PassResult(release)
    return PassResult(replace(release, labels=labels))


def guess_types_pass(release: Release) -> PassResult:
    types = guess_types_for_release(release)
    added = types - release.types
    if not added:
        return PassResult(release)
    return PassResult(
        replace(release, types=types),
        (
            ProviderMessage(
                f"Guessed release types from titles: {', '.join(sorted(added))}",
                MessageType.DEBUG,
            ),
        ),
    )


def normalize_isrcs_pass(release: Release) -> PassResult:
    normalized, invalid = normalize_release_isrcs(release)
    if not invalid:
        return PassResult(normalized)
    return PassResult(
        normalized,
        (
            ProviderMessage(
                f"Kept unrecognized ISRCs as they are: {', '.join(invalid)}",
                MessageType.WARNING,
            ),
        ),
    )
