"""Tidal configuration values."""

from __future__ import annotations

from dataclasses import dataclass

from .env import require_env_vars
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy

TIDAL_API_BASE_URL = "https://openapi.tidal.com/v2/"
TIDAL_TOKEN_URL = "https://auth.tidal.com/v1/oauth2/token"


@dataclass(frozen=True, slots=True)
class TidalConfig:
    """Client credentials and transport settings for the Tidal API."""

    client_id: str
    client_secret: str
    resilience: ResilienceConfig
    token_url: str = TIDAL_TOKEN_URL


def get_tidal_config(*, resilience: ResilienceConfig | None = None) -> TidalConfig:
    values = require_env_vars(("TIDAL_CLIENT_ID", "TIDAL_CLIENT_SECRET"))
    return TidalConfig(
        client_id=values["TIDAL_CLIENT_ID"],
        client_secret=values["TIDAL_CLIENT_SECRET"],
        resilience=resilience
        or ResilienceConfig(
            name="tidal",
            # two requests per ten seconds are allowed for client credential apps
            ratelimit=RateLimit(max_calls=2, per_seconds=10.0),
            retry=RetryPolicy(total=3),
            cache=CacheConfig(backend="memory"),
            default_headers={"Accept": "application/vnd.api+json"},
        ),
    )
