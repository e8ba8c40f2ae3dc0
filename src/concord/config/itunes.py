"""iTunes Search API configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .http_resilience import CacheConfig, RateLimit, ResilienceConfig

ITUNES_API_BASE_URL = "https://itunes.apple.com/"


def _has_results(payload: object) -> bool:
    # empty lookup results are never cached
    return isinstance(payload, dict) and bool(payload.get("resultCount"))


@dataclass(frozen=True, slots=True)
class ITunesConfig:
    resilience: ResilienceConfig


def get_itunes_config(*, resilience: ResilienceConfig | None = None) -> ITunesConfig:
    # The public search API needs no credentials.
    return ITunesConfig(
        resilience=resilience
        or ResilienceConfig(
            name="itunes",
            ratelimit=RateLimit(max_calls=20, per_seconds=60.0),
            cache=CacheConfig(backend="memory", should_cache=_has_results),
        )
    )
