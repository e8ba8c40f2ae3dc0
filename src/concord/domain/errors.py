"""Error taxonomy of release lookups."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence


class ReleaseLookupError(RuntimeError):
    """Something went wrong during a release lookup."""


class ProviderError(ReleaseLookupError):
    """Something went wrong during a lookup using a specific provider."""

    def __init__(self, provider_name: str, message: str) -> None:
        super().__init__(message)
        self.provider_name = provider_name


class ResponseError(ProviderError):
    """The response of a provider API request is unusable for the requested URL."""

    def __init__(self, provider_name: str, message: str, url: str) -> None:
        super().__init__(provider_name, f"{message}: {url}")
        self.url = url


class CacheMissError(RuntimeError):
    """No snapshot matches the requested ceiling and live requests are not allowed."""

    def __init__(self, message: str, *, url: str | None = None) -> None:
        super().__init__(message)
        self.url = url


class CompatibilityError(ReleaseLookupError):
    """Providers returned mutually exclusive values for the same property."""

    def __init__(
        self,
        description: str,
        values_and_sources: Sequence[tuple[str | int, list[str]]],
    ) -> None:
        formatted = ", ".join(
            f"{value} ({', '.join(sources)})" for value, sources in values_and_sources
        )
        super().__init__(f"{description}: {formatted}")
        self.description = description
        self.values_and_sources = list(values_and_sources)


class InvalidGTINError(ValueError):
    """GTIN has an unsupported length, non-digits or a wrong check digit."""


class InvalidISRCError(ValueError):
    """ISRC does not consist of country, registrant, year and designation code."""


class InvalidLookupStateError(ValueError):
    """Encoded lookup state (permalink query) is malformed."""
