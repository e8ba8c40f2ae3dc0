"""Shared machinery of metadata providers.

``MetadataProvider`` is the gateway to one provider API: it bounds the number of
in-flight requests, serves responses from the snapshot store and records new
snapshots. ``ReleaseLookup`` is the per-request state machine which turns a release
specifier into a canonical ``Release``.
"""

from __future__ import annotations

import asyncio
import json
import re
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING, ClassVar, Final, TypedDict

import httpx

from concord.domain.errors import CacheMissError, ProviderError, ResponseError
from concord.domain.model import (
    ExternalEntityId,
    LookupMethod,
    LookupParameters,
    MessageType,
    ProviderInfo,
    ProviderMessage,
    ReleaseInfo,
    SnapshotFallback,
)
from concord.domain.similarity import simplify_name

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable, Mapping

    from concord.adapters.http_resilience import ResilientClient
    from concord.adapters.snapshots import Snapshot, SnapshotStore
    from concord.domain.model import CountryCode, LinkType, Release

log = getLogger(__name__)

DEFAULT_CONCURRENCY_LIMIT: Final[int] = 20
DEFAULT_SNAPSHOT_MAX_AGE: Final[int] = 60 * 60 * 24
_URL_SCHEME = re.compile(r"^https?://", re.IGNORECASE)


@dataclass(frozen=True, slots=True)
class EntityId:
    """Entity of a provider, as extracted from one of its URLs."""

    type: str
    id: str
    region: CountryCode | None = None
    slug: str | None = None


type ReleaseSpecifier = str | int | tuple[LookupMethod | str, str]
"""Release URL, provider ID, GTIN or an explicit ``(method, value)`` pair."""


@dataclass(frozen=True, slots=True)
class LookupOptions:
    regions: tuple[CountryCode, ...] = ()
    # newest snapshot time (UNIX seconds) which may be used, ``None`` allows live requests
    snapshot_max_timestamp: int | None = None
    snapshot_fallback: SnapshotFallback = SnapshotFallback.STRICT
    template: bool = False


@dataclass(frozen=True, slots=True)
class CacheEntry[T]:
    content: T
    timestamp: int
    is_fresh: bool


class ProviderOptions(TypedDict, total=False):
    snapshots: SnapshotStore | None
    concurrency_limit: int
    snapshot_max_age: int
    clock: Callable[[], float]


class LookupStage(StrEnum):
    CONSTRUCTING = "constructing"
    FETCHING = "fetching"
    PAGINATING = "paginating"
    CONVERTING = "converting"
    DONE = "done"
    FAILED = "failed"


def is_url_specifier(specifier: ReleaseSpecifier) -> bool:
    return isinstance(specifier, str) and _URL_SCHEME.match(specifier) is not None


class MetadataProvider(ABC):
    """Looks up releases from one metadata source and converts them into releases."""

    name: ClassVar[str]
    # Must contain the named groups ``type`` and ``id``, optionally ``region`` and ``slug``.
    supported_urls: ClassVar[re.Pattern[str]]
    # Maps entity types (``artist``, ``release``) to the provider's entity type(s).
    entity_type_map: ClassVar[Mapping[str, str | tuple[str, ...]]]
    available_regions: ClassVar[frozenset[CountryCode]] = frozenset()
    default_region: ClassVar[CountryCode] = "US"
    lookup_class: ClassVar[type[ReleaseLookup]]

    def __init__(
        self,
        client: ResilientClient,
        *,
        snapshots: SnapshotStore | None = None,
        concurrency_limit: int = DEFAULT_CONCURRENCY_LIMIT,
        snapshot_max_age: int = DEFAULT_SNAPSHOT_MAX_AGE,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client = client
        self.snapshots = snapshots
        self.snapshot_max_age = snapshot_max_age
        self._clock = clock
        self.concurrency_limit = concurrency_limit
        self._semaphore: asyncio.Semaphore | None = None
        self._semaphore_loop: asyncio.AbstractEventLoop | None = None

    @property
    def internal_name(self) -> str:
        return simplify_name(self.name).replace(" ", "")

    async def get_release(
        self,
        specifier: ReleaseSpecifier,
        options: LookupOptions | None = None,
    ) -> Release:
        """Look up the release identified by URL, GTIN or provider ID."""

        options = options or LookupOptions()
        try:
            return await self.lookup_class(self, specifier, options).get_release()
        except CacheMissError:
            if (
                options.snapshot_max_timestamp is None
                or options.snapshot_fallback is not SnapshotFallback.REFETCH
            ):
                raise
        log.info(
            "%s: snapshots before %s incomplete, repeating lookup live",
            self.name,
            options.snapshot_max_timestamp,
        )
        live_options = replace(options, snapshot_max_timestamp=None)
        release = await self.lookup_class(self, specifier, live_options).get_release()
        release.info.messages.append(
            ProviderMessage(
                f"No complete snapshot before {options.snapshot_max_timestamp} was found, "
                "the release was looked up again",
                MessageType.WARNING,
                provider=self.name,
            )
        )
        return release

    def extract_entity_from_url(self, url: str) -> EntityId | None:
        match = self.supported_urls.match(url)
        if match is None:
            return None
        groups = match.groupdict()
        entity_type, entity_id = groups.get("type"), groups.get("id")
        if not entity_type or not entity_id:
            return None
        region = groups.get("region")
        return EntityId(
            type=entity_type,
            id=entity_id,
            region=region.upper() if region else None,
            slug=groups.get("slug") or None,
        )

    def supports_url(self, url: str) -> bool:
        return self.extract_entity_from_url(url) is not None

    def is_release_entity(self, entity: EntityId) -> bool:
        release_type = self.entity_type_map["release"]
        if isinstance(release_type, tuple):
            return entity.type in release_type
        return entity.type == release_type

    @abstractmethod
    def construct_url(self, entity: EntityId) -> str:
        """Canonical URL of the given entity."""

    def serialize_provider_id(self, entity: EntityId) -> str:
        """Provider ID which ``parse_provider_id`` maps back to the same entity."""
        return entity.id

    def parse_provider_id(self, provider_id: str, entity_type: str = "release") -> EntityId:
        provider_type = self.entity_type_map[entity_type]
        if isinstance(provider_type, tuple):
            raise ProviderError(
                self.name,
                "Unable to parse provider ID as the provider supports multiple "
                f"{entity_type} types",
            )
        return EntityId(type=provider_type, id=provider_id)

    def link_types_for_entity(self, entity: EntityId) -> list[LinkType]:  # noqa: ARG002
        return []

    def make_external_ids(self, *entities: EntityId) -> list[ExternalEntityId]:
        return [
            ExternalEntityId(provider=self.internal_name, type=entity.type, id=entity.id)
            for entity in entities
        ]

    async def request_headers(self) -> dict[str, str]:
        """Extra headers for live requests, e.g. authorization."""
        return {}

    def reset_authorization(self) -> bool:
        """Discard cached credentials after a 401; ``True`` if a retry may succeed."""
        return False

    def request_slots(self) -> asyncio.Semaphore:
        """Semaphore which bounds the in-flight requests within the running event loop.

        asyncio primitives are bound to one loop, so a provider which is reused by
        several ``asyncio.run`` calls gets a new semaphore for each loop.
        """

        loop = asyncio.get_running_loop()
        if self._semaphore is None or self._semaphore_loop is not loop:
            self._semaphore = asyncio.Semaphore(self.concurrency_limit)
            self._semaphore_loop = loop
        return self._semaphore

    def raise_for_response(self, response: httpx.Response, url: str) -> None:
        if not response.is_success:
            raise ResponseError(self.name, f"HTTP {response.status_code}", url)

    def validate_payload(self, payload: object, url: str) -> None:
        """Hook to reject structurally valid JSON which reports an API error."""

    async def fetch_snapshot(
        self,
        url: str,
        *,
        max_timestamp: int | None = None,
        offline: bool = False,
        live_fallback: bool = False,
    ) -> CacheEntry[bytes]:
        """Return a snapshot of ``url``, fetching and storing it if necessary.

        With ``max_timestamp`` only snapshots taken at or before that time qualify and a
        miss raises ``CacheMissError`` unless ``live_fallback`` is set. Without it,
        snapshots younger than ``snapshot_max_age`` are reused.
        """

        if max_timestamp is not None:
            snapshot = await self._load_snapshot(url, max_timestamp=max_timestamp)
            if snapshot is None and not live_fallback:
                raise CacheMissError(f"No snapshot taken before {max_timestamp} was found", url=url)
        else:
            min_timestamp = int(self._clock()) - self.snapshot_max_age
            snapshot = await self._load_snapshot(url, min_timestamp=min_timestamp)
            if snapshot is None and offline:
                raise CacheMissError("No matching snapshot was found (in offline mode)", url=url)

        if snapshot is not None:
            log.debug("%s => %s (old)", url, snapshot.path or "memory")
            return CacheEntry(
                content=snapshot.content, timestamp=snapshot.timestamp, is_fresh=False
            )

        async with self.request_slots():
            response = await self.client.get(url, headers=await self.request_headers())
            if response.status_code == httpx.codes.UNAUTHORIZED and self.reset_authorization():
                log.info("%s: request was not authorized, retrying with new credentials", self.name)
                response = await self.client.get(url, headers=await self.request_headers())
        self.raise_for_response(response, url)

        timestamp = int(self._clock())
        path = None
        if self.snapshots is not None:
            path = (await self.snapshots.save(url, response.content, timestamp)).path
        log.debug("%s => %s (fresh)", url, path or "memory")
        return CacheEntry(content=response.content, timestamp=timestamp, is_fresh=True)

    async def query(
        self,
        url: str,
        *,
        max_timestamp: int | None = None,
        offline: bool = False,
        live_fallback: bool = False,
    ) -> CacheEntry[object]:
        """Fetch ``url`` like ``fetch_snapshot`` and decode the JSON payload."""

        entry = await self.fetch_snapshot(
            url, max_timestamp=max_timestamp, offline=offline, live_fallback=live_fallback
        )
        try:
            payload = json.loads(entry.content)
        except (UnicodeDecodeError, json.JSONDecodeError) as exc:
            raise ResponseError(self.name, "Invalid JSON response", url) from exc
        self.validate_payload(payload, url)
        return CacheEntry(content=payload, timestamp=entry.timestamp, is_fresh=entry.is_fresh)

    async def aclose(self) -> None:
        await self.client.aclose()

    async def _load_snapshot(
        self,
        url: str,
        *,
        max_timestamp: int | None = None,
        min_timestamp: int | None = None,
    ) -> Snapshot | None:
        if self.snapshots is None:
            return None
        return await self.snapshots.load(
            url, max_timestamp=max_timestamp, min_timestamp=min_timestamp
        )


class ReleaseLookup[P: MetadataProvider, RawT](ABC):
    """State of a single release lookup with one provider."""

    def __init__(self, provider: P, specifier: ReleaseSpecifier, options: LookupOptions) -> None:
        self.provider = provider
        self.options = options
        self.stage = LookupStage.CONSTRUCTING
        self.entity: EntityId | None = None
        self.cache_time: int | None = None
        self.messages: list[ProviderMessage] = []

        preferred = list(options.regions)
        available = provider.available_regions
        if available and preferred:
            preferred = [region for region in preferred if region in available]
        self.regions: list[CountryCode] = preferred
        self.region: CountryCode | None = None

        if isinstance(specifier, str) and is_url_specifier(specifier):
            entity = provider.extract_entity_from_url(specifier)
            if entity is None:
                raise ProviderError(provider.name, f"Could not extract entity from {specifier}")
            if not provider.is_release_entity(entity):
                raise ProviderError(provider.name, f"{specifier} is not a release URL")
            self.entity = entity
            self.method = LookupMethod.ID
            self.value = provider.serialize_provider_id(entity)
            # the region of a release URL takes precedence over the preferences
            if entity.region:
                self.region = entity.region
                self.regions = [entity.region]
        elif isinstance(specifier, str):
            self.method, self.value = LookupMethod.ID, specifier
        elif isinstance(specifier, int):
            self.method, self.value = LookupMethod.GTIN, str(specifier)
        else:
            method, value = specifier
            try:
                self.method = LookupMethod(method)
            except ValueError as exc:
                raise ProviderError(provider.name, f"Unsupported lookup method '{method}'") from exc
            self.value = str(value)

        if self.entity is None and self.method is LookupMethod.ID:
            self.entity = provider.parse_provider_id(self.value)

    @property
    def live_fallback(self) -> bool:
        return self.options.snapshot_fallback is SnapshotFallback.MIXED

    @abstractmethod
    def construct_release_api_url(self) -> str | None:
        """API URL of the release for the current lookup method, value and region."""

    @abstractmethod
    async def get_raw_release(self) -> RawT:
        """Load the raw release data, called with either a GTIN or a provider ID."""

    @abstractmethod
    def convert_raw_release(self, raw: RawT) -> Release:
        """Convert the raw provider data into a release, without further requests."""

    async def get_release(self) -> Release:
        started = time.perf_counter()
        try:
            self.stage = LookupStage.CONSTRUCTING
            self.construct_release_api_url()
            self.stage = LookupStage.FETCHING
            raw = await self.get_raw_release()
            self.stage = LookupStage.CONVERTING
            release = self.convert_raw_release(raw)
        except Exception:
            self.stage = LookupStage.FAILED
            raise
        self.stage = LookupStage.DONE

        elapsed_ms = (time.perf_counter() - started) * 1000
        for provider_info in release.info.providers:
            provider_info.processing_time = elapsed_ms
        return release

    async def query(self, url: str, *, offline: bool = False) -> CacheEntry[object]:
        return await self.provider.query(
            url,
            max_timestamp=self.options.snapshot_max_timestamp,
            offline=offline,
            live_fallback=self.live_fallback,
        )

    async def query_all_regions(
        self,
        is_valid_data: Callable[[object], bool],
        *,
        is_critical_error: Callable[[Exception], bool] = lambda _error: True,
        offline: bool = False,
    ) -> object:
        """Query the release API URL for each region until one returns valid data."""

        regions = self.regions or [self.provider.default_region]
        for region in regions:
            self.region = region
            url = self.construct_release_api_url()
            if url is None:
                raise ProviderError(self.provider.name, "Lookup has no API URL")
            try:
                entry = await self.query(url, offline=offline)
            except Exception as exc:
                if is_critical_error(exc):
                    raise
                log.debug("%s: ignoring error for region %s: %s", self.provider.name, region, exc)
                continue
            if is_valid_data(entry.content):
                self.update_cache_time(entry.timestamp)
                return entry.content

        raise ResponseError(
            self.provider.name, "API returned no results", self.construct_release_api_url() or ""
        )

    def update_cache_time(self, timestamp: int) -> None:
        if self.cache_time is None or timestamp > self.cache_time:
            self.cache_time = timestamp

    def add_message(self, text: str, type: MessageType = MessageType.INFO) -> None:
        self.messages.append(ProviderMessage(text, type, provider=self.provider.name))

    def warn_multiple_results(self, urls: Iterable[str]) -> None:
        urls = list(urls)
        if not urls:
            return
        if len(urls) == 1:
            noun = "other result, which was skipped"
        else:
            noun = "other results, which were skipped"
        lines = "\n- ".join(urls)
        self.add_message(
            f"The API also returned {len(urls)} {noun}:\n- {lines}", MessageType.WARNING
        )

    def generate_release_info(self) -> ReleaseInfo:
        if self.entity is None:
            raise ProviderError(
                self.provider.name, "Release info can only be generated with a defined entity ID"
            )
        return ReleaseInfo(
            providers=[
                ProviderInfo(
                    name=self.provider.name,
                    internal_name=self.provider.internal_name,
                    id=self.provider.serialize_provider_id(self.entity),
                    url=self.provider.construct_url(self.entity),
                    api_url=self.construct_release_api_url(),
                    lookup=LookupParameters(
                        method=self.method, value=self.value, region=self.region
                    ),
                    cache_time=self.cache_time,
                    is_template=self.options.template,
                )
            ],
            # shared, messages added after conversion still end up in the release
            messages=self.messages,
        )
