"""Defaults for release lookups."""

from __future__ import annotations

import os
from dataclasses import dataclass, field

from concord.domain.model.enums import SnapshotFallback

from .env import env_int, env_list
from .errors import ConfigurationError

DEFAULT_REGIONS = ("GB", "US", "DE", "JP")
DEFAULT_CONCURRENCY_LIMIT = 20
DEFAULT_SNAPSHOT_MAX_AGE_SECONDS = 60 * 60 * 24


@dataclass(frozen=True, slots=True)
class LookupConfig:
    regions: tuple[str, ...] = DEFAULT_REGIONS
    concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT
    snapshot_max_age_seconds: int = DEFAULT_SNAPSHOT_MAX_AGE_SECONDS
    snapshot_fallback: SnapshotFallback = SnapshotFallback.STRICT
    providers: tuple[str, ...] = field(default_factory=tuple)


def get_lookup_config() -> LookupConfig:
    regions = tuple(region.upper() for region in env_list("CONCORD_REGIONS", DEFAULT_REGIONS))
    fallback_name = os.getenv("CONCORD_SNAPSHOT_FALLBACK", SnapshotFallback.STRICT.value)
    try:
        fallback = SnapshotFallback(fallback_name.strip().lower())
    except ValueError as exc:
        choices = ", ".join(option.value for option in SnapshotFallback)
        raise ConfigurationError(
            f"CONCORD_SNAPSHOT_FALLBACK must be one of {choices}, got {fallback_name!r}",
            variable="CONCORD_SNAPSHOT_FALLBACK",
        ) from exc
    return LookupConfig(
        regions=regions,
        concurrency_limit=env_int("CONCORD_CONCURRENCY", DEFAULT_CONCURRENCY_LIMIT, minimum=1),
        snapshot_max_age_seconds=env_int(
            "CONCORD_SNAPSHOT_MAX_AGE", DEFAULT_SNAPSHOT_MAX_AGE_SECONDS, minimum=0
        ),
        snapshot_fallback=fallback,
        providers=env_list("CONCORD_PROVIDERS"),
    )
