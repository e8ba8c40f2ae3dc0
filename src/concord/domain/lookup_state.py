"""Encoding of release lookups as query parameters (permalinks)."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

import httpx

from .errors import InvalidGTINError, InvalidLookupStateError
from .gtin import ensure_valid_gtin
from .model import LookupMethod

if TYPE_CHECKING:
    from .model import ReleaseInfo

GTIN_KEY: Final = "gtin"
REGION_KEY: Final = "region"
TIMESTAMP_KEY: Final = "ts"
TEMPLATE_SUFFIX: Final = "!"

_REGION = re.compile(r"^[A-Za-z]{2}$")
_TIMESTAMP = re.compile(r"^\d+$")


@dataclass(slots=True)
class LookupState:
    """Everything needed to replay a combined release lookup."""

    gtin: str | None = None
    # (provider internal name, provider ID) for lookups by ID or URL
    provider_ids: list[tuple[str, str]] = field(default_factory=list)
    # providers which were enabled for the GTIN lookup
    gtin_providers: list[str] = field(default_factory=list)
    template_providers: list[tuple[str, str]] = field(default_factory=list)
    region: str | None = None
    timestamp: int | None = None


def encode_lookup_state(info: ReleaseInfo, *, permalink: bool = False) -> httpx.QueryParams:
    """Encode the provider records of a release as lookup query parameters.

    With ``permalink`` the newest cache time is included, so that a replay only uses
    snapshots which existed when the release was looked up.
    """

    by_gtin = [
        provider for provider in info.providers if provider.lookup.method is LookupMethod.GTIN
    ]
    by_id = [
        provider
        for provider in info.providers
        if provider.lookup.method is LookupMethod.ID and not provider.is_template
    ]
    templates = [provider for provider in info.providers if provider.is_template]
    region = next(
        (provider.lookup.region for provider in info.providers if provider.lookup.region), None
    )

    items: list[tuple[str, str]] = [(provider.internal_name, provider.id) for provider in by_id]

    if by_gtin:
        # Zero padding matters for some providers, the longest variant should hit most caches.
        variants = sorted((provider.lookup.value for provider in by_gtin), key=len, reverse=True)
        items.append((GTIN_KEY, variants[0]))
        items.extend((provider.internal_name, "") for provider in by_gtin)

    items.extend(
        (f"{provider.internal_name}{TEMPLATE_SUFFIX}", provider.id) for provider in templates
    )

    if region:
        items.append((REGION_KEY, region))

    if permalink and (timestamp := info.max_cache_time) is not None:
        items.append((TIMESTAMP_KEY, str(timestamp)))

    return httpx.QueryParams(items)


def create_release_permalink(info: ReleaseInfo, base_url: str) -> str:
    """Permalink to the ``release`` page below ``base_url``."""

    url = httpx.URL(base_url).join("release")
    return str(httpx.URL(url, params=encode_lookup_state(info, permalink=True)))


def decode_lookup_state(query: str | httpx.QueryParams) -> LookupState:
    """Parse lookup query parameters, rejecting malformed GTIN, region or timestamp."""

    params = query if isinstance(query, httpx.QueryParams) else httpx.QueryParams(query.lstrip("?"))
    state = LookupState()
    for key, value in params.multi_items():
        if key == GTIN_KEY:
            try:
                state.gtin = ensure_valid_gtin(value)
            except InvalidGTINError as exc:
                raise InvalidLookupStateError(str(exc)) from exc
        elif key == REGION_KEY:
            if not _REGION.match(value):
                raise InvalidLookupStateError(f"Region '{value}' is not a two letter country code")
            state.region = value.upper()
        elif key == TIMESTAMP_KEY:
            if not _TIMESTAMP.match(value):
                raise InvalidLookupStateError(f"Timestamp '{value}' is not a number of seconds")
            state.timestamp = int(value)
        elif key.endswith(TEMPLATE_SUFFIX):
            state.template_providers.append((key.removesuffix(TEMPLATE_SUFFIX), value))
        elif value:
            state.provider_ids.append((key, value))
        else:
            state.gtin_providers.append(key)
    return state
