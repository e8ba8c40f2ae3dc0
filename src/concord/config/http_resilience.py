"""Transport settings of the provider API clients."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final, Literal

import httpx

from concord import __version__

if TYPE_CHECKING:
    from collections.abc import Mapping

# decides on the decoded JSON payload whether a response may be cached
ShouldCacheHook = Callable[[object], bool]

DEFAULT_USER_AGENT: Final[str] = f"concord/{__version__}"


@dataclass(slots=True, frozen=True)
class RetryPolicy:
    """Retries of failed provider requests.

    Catalogue lookups are GET requests; POST is only used for client credential token
    requests, which can be repeated safely.
    """

    total: int = 3
    backoff_factor: float = 0.5
    max_backoff_wait: float = 30.0
    respect_retry_after_header: bool = True
    allowed_methods: frozenset[str] = frozenset({"GET", "POST"})
    # rate limited and transient server errors
    status_forcelist: frozenset[int] = frozenset({429, 500, 502, 503, 504})
    retry_on_exceptions: tuple[type[httpx.HTTPError], ...] = (
        httpx.TimeoutException,
        httpx.NetworkError,
        httpx.RemoteProtocolError,
    )
    backoff_jitter: float = 1.0


@dataclass(slots=True, frozen=True)
class RateLimit:
    max_calls: int
    per_seconds: float


@dataclass(slots=True, frozen=True)
class CacheConfig:
    """HTTP level cache honouring response cache headers.

    This is independent of the snapshot store, which keeps every provider response
    for reproducible replays regardless of what the provider allows.
    """

    enabled: bool = True
    backend: Literal["sqlite", "memory"] = "memory"
    sqlite_path: str | None = None
    default_ttl_seconds: float | None = None
    refresh_ttl_on_access: bool = True
    should_cache: ShouldCacheHook | None = None


@dataclass(slots=True, frozen=True)
class ResilienceConfig:
    """Client settings of one provider; ``name`` shows up in log messages."""

    name: str
    base_url: str | None = None
    timeout_seconds: float = 30.0
    retry: RetryPolicy = field(default_factory=RetryPolicy)
    ratelimit: RateLimit | None = None
    cache: CacheConfig | None = field(default_factory=CacheConfig)
    user_agent: str = DEFAULT_USER_AGENT
    default_headers: Mapping[str, str] | None = None

    def request_headers(self) -> dict[str, str]:
        """Headers sent with every request, provider specific ones take precedence."""
        return {"User-Agent": self.user_agent, **(self.default_headers or {})}
