"""Checks whether releases of different providers describe the same release."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from concord.domain.errors import CompatibilityError
from concord.domain.tracklist import track_count_summary

if TYPE_CHECKING:
    from collections.abc import Callable, Mapping

    from concord.domain.model import ProviderInfo, Release

type ProviderReleaseMapping = Mapping[str, Release | Exception]


@dataclass(slots=True)
class IncompatibleCluster:
    incompatible_value: str | int
    providers: list[ProviderInfo] = field(default_factory=list)


@dataclass(slots=True)
class Incompatibility:
    reason: str
    compatible_value: str | int | None = None
    clusters: list[IncompatibleCluster] = field(default_factory=list)


def filter_errors(release_map: ProviderReleaseMapping) -> dict[str, Release]:
    return {name: value for name, value in release_map.items() if not isinstance(value, Exception)}


def unique_mapped_values[V: (str, int)](
    release_map: Mapping[str, Release],
    accessor: Callable[[Release], V | None],
) -> list[tuple[V, list[str]]]:
    """Distinct accessor values with the names of the providers reporting them."""

    sources: dict[V, list[str]] = {}
    for name, release in release_map.items():
        value = accessor(release)
        if value is not None:
            sources.setdefault(value, []).append(name)
    return list(sources.items())


def _numeric_gtin(release: Release) -> int | None:
    return int(release.gtin) if release.gtin else None


_CHECKS: tuple[tuple[Callable[[Release], str | int | None], str], ...] = (
    (_numeric_gtin, "Providers have returned multiple different GTIN"),
    (track_count_summary, "Providers have returned incompatible track lists"),
)


def assert_release_compatibility(release_map: Mapping[str, Release]) -> None:
    """Raise ``CompatibilityError`` for differing GTINs or track counts."""

    for accessor, description in _CHECKS:
        values = unique_mapped_values(release_map, accessor)
        if len(values) > 1:
            raise CompatibilityError(description, values)


def make_releases_compatible(
    release_map: ProviderReleaseMapping,
    primary_provider: str | None = None,
) -> tuple[dict[str, Release | Exception], list[Incompatibility]]:
    """Drop providers whose release is incompatible with that of the primary provider.

    Returns the reduced mapping (errors are kept) and one record per failed check.
    Without a primary provider an incompatibility is raised as ``CompatibilityError``.
    """

    remaining: dict[str, Release | Exception] = dict(release_map)
    incompatibilities: list[Incompatibility] = []
    while True:
        releases = filter_errors(remaining)
        try:
            assert_release_compatibility(releases)
        except CompatibilityError as error:
            if primary_provider is None or primary_provider not in releases:
                raise
            incompatibility = Incompatibility(reason=str(error))
            for value, names in error.values_and_sources:
                if primary_provider in names:
                    incompatibility.compatible_value = value
                    continue
                incompatibility.clusters.append(
                    IncompatibleCluster(
                        incompatible_value=value,
                        providers=[
                            info for name in names for info in releases[name].info.providers
                        ],
                    )
                )
                for name in names:
                    del remaining[name]
            incompatibilities.append(incompatibility)
        else:
            return remaining, incompatibilities
