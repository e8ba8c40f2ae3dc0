"""Combined release lookup across several providers."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from logging import getLogger
from typing import TYPE_CHECKING, Final

from concord.adapters.providers.base import LookupOptions
from concord.domain.errors import CacheMissError, InvalidGTINError, ReleaseLookupError
from concord.domain.gtin import ensure_valid_gtin, is_equal_gtin, unique_gtin_set
from concord.domain.model import LookupMethod, MessageType, ProviderMessage
from concord.domain.reconciliation import (
    filter_errors,
    finalize_release,
    make_releases_compatible,
    merge_release,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from concord.adapters.providers.base import MetadataProvider, ReleaseSpecifier
    from concord.adapters.providers.registry import ProviderRegistry
    from concord.domain.gtin import GTINLike
    from concord.domain.lookup_state import LookupState
    from concord.domain.model import Release
    from concord.domain.reconciliation import ProviderPreferences, ReleasePass

log = getLogger(__name__)

DEFAULT_PROVIDER_PREFERENCES: Final[ProviderPreferences] = {
    # millisecond precision beats second precision
    "duration": ("iTunes", "Tidal"),
    # larger cover art first
    "images": ("iTunes", "Tidal"),
    # region specific URLs last
    "external_id": ("Tidal", "iTunes"),
}


@dataclass(frozen=True, slots=True)
class QueuedLookup:
    provider: MetadataProvider
    specifier: ReleaseSpecifier
    options: LookupOptions


class CombinedReleaseLookup:
    """Looks up one release with several providers and merges the results.

    Each provider is used at most once. Lookups by provider ID are queued first, then
    URLs, and all remaining providers look up the GTIN (if it is known, possibly only
    after the first lookups have returned one).
    """

    def __init__(
        self,
        registry: ProviderRegistry,
        *,
        gtin: GTINLike | None = None,
        provider_ids: Iterable[tuple[str, str]] = (),
        urls: Iterable[str] = (),
        templates: Iterable[tuple[str, str]] = (),
        options: LookupOptions | None = None,
        gtin_providers: Iterable[str] | None = None,
    ) -> None:
        self.registry = registry
        self.options = options or LookupOptions()
        self.gtin: str | None = None
        self.messages: list[ProviderMessage] = []
        # internal names of the providers which will be used for GTIN lookups
        self.gtin_lookup_providers: list[str] = (
            [_internal_name(registry, name) for name in gtin_providers]
            if gtin_providers is not None
            else registry.internal_names
        )
        # keyed by provider display name, in queue order
        self._queued: dict[str, QueuedLookup] = {}
        self._results: dict[str, Release | Exception] = {}

        for provider_name, provider_id in provider_ids:
            self.queue_lookup_by_id(provider_name, provider_id)
        for provider_name, provider_id in templates:
            self.queue_lookup_by_id(provider_name, provider_id, template=True)
        for url in urls:
            self.queue_lookup_by_url(url)
        if self.gtin_lookup_providers and gtin is not None:
            self.queue_lookups_by_gtin(gtin)

    @classmethod
    def from_lookup_state(
        cls,
        registry: ProviderRegistry,
        state: LookupState,
        *,
        options: LookupOptions | None = None,
    ) -> CombinedReleaseLookup:
        """Replay a lookup which was encoded as permalink."""

        options = options or LookupOptions()
        if state.region:
            options = replace(options, regions=(state.region,))
        if state.timestamp is not None:
            options = replace(options, snapshot_max_timestamp=state.timestamp)
        gtin_providers: list[str] | None = state.gtin_providers
        if state.gtin and not state.gtin_providers:
            gtin_providers = None
        return cls(
            registry,
            gtin=state.gtin,
            provider_ids=state.provider_ids,
            templates=state.template_providers,
            options=options,
            gtin_providers=gtin_providers,
        )

    def add_error(self, text: str) -> None:
        self.messages.append(ProviderMessage(text, MessageType.ERROR))

    def queue_lookup_by_id(
        self,
        provider_name: str,
        provider_id: str,
        *,
        template: bool = False,
    ) -> bool:
        provider = self.registry.find_by_name(provider_name)
        if provider is None:
            self.add_error(f'There is no provider with the name "{provider_name}"')
            return False
        if provider.name in self._queued:
            self.add_error(
                f"Provider {provider.name} can only be used once per lookup, "
                f"ignoring ID '{provider_id}'"
            )
            return False
        self._queue(provider, provider_id, replace(self.options, template=template))
        return True

    def queue_lookup_by_url(self, url: str) -> bool:
        provider = self.registry.find_by_url(url)
        if provider is None:
            self.add_error(f"No provider supports {url}")
            return False
        if provider.name in self._queued:
            self.add_error(
                f"Provider {provider.name} can only be used once per lookup, ignoring {url}"
            )
            return False
        self._queue(provider, url, self.options)
        return True

    def queue_lookups_by_gtin(self, gtin: GTINLike) -> bool:
        """Queue GTIN lookups for every remaining provider."""

        if self.gtin is not None:
            if is_equal_gtin(gtin, self.gtin):
                return True
            self.add_error(f"Different GTIN '{gtin}' can not be combined with the current lookup")
            return False

        try:
            self.gtin = ensure_valid_gtin(gtin)
        except InvalidGTINError as exc:
            self.add_error(str(exc))
            return False

        for provider_name in list(self.gtin_lookup_providers):
            provider = self.registry.find_by_name(provider_name)
            if provider is None:
                self.add_error(f'There is no provider with the name "{provider_name}"')
            elif provider.name not in self._queued:
                self._queue(provider, (LookupMethod.GTIN, self.gtin), self.options)
        return True

    def _queue(
        self,
        provider: MetadataProvider,
        specifier: ReleaseSpecifier,
        options: LookupOptions,
    ) -> None:
        self._queued[provider.name] = QueuedLookup(provider, specifier, options)
        if provider.internal_name in self.gtin_lookup_providers:
            self.gtin_lookup_providers.remove(provider.internal_name)

    async def get_provider_release_mapping(self) -> dict[str, Release | Exception]:
        """Run all queued lookups which have not finished yet, concurrently."""

        pending = [
            (name, queued) for name, queued in self._queued.items() if name not in self._results
        ]
        outcomes = await asyncio.gather(
            *(
                queued.provider.get_release(queued.specifier, queued.options)
                for _, queued in pending
            ),
            return_exceptions=True,
        )
        for (name, _), outcome in zip(pending, outcomes, strict=True):
            if isinstance(outcome, ReleaseLookupError | CacheMissError):
                # our own errors need no stack trace
                log.warning("%s: %s", name, outcome)
            elif isinstance(outcome, Exception):
                log.error("%s: unexpected lookup error", name, exc_info=outcome)
            elif isinstance(outcome, BaseException):
                raise outcome
            self._results[name] = outcome
        return {name: self._results[name] for name in self._queued}

    async def get_complete_provider_release_mapping(self) -> dict[str, Release | Exception]:
        """Run all lookups, including GTIN lookups with a GTIN found by the first ones."""

        release_map = await self.get_provider_release_mapping()
        if not self.gtin_lookup_providers or self.gtin is not None:
            return release_map

        releases = list(filter_errors(release_map).values())
        used_regions = [
            region
            for release in releases
            if release.info.providers and (region := release.info.providers[0].lookup.region)
        ]
        if used_regions:
            self.options = replace(self.options, regions=tuple(dict.fromkeys(used_regions)))

        gtin_candidates = [release.gtin for release in releases if release.gtin]
        unique_gtins = unique_gtin_set(gtin_candidates)
        if len(unique_gtins) == 1:
            if self.queue_lookups_by_gtin(gtin_candidates[0]):
                release_map = await self.get_provider_release_mapping()
        elif not unique_gtins:
            skipped = [
                self.registry.to_display_name(name) or name for name in self.gtin_lookup_providers
            ]
            self.messages.append(
                ProviderMessage(
                    f"GTIN is unknown, lookups for the following providers were skipped: "
                    f"{', '.join(skipped)}",
                    MessageType.INFO,
                )
            )
        else:
            self.add_error(
                f"Providers have returned multiple different GTIN: {', '.join(gtin_candidates)}"
            )
        return release_map

    async def get_merged_release(
        self,
        preferences: ProviderPreferences | Sequence[str] = DEFAULT_PROVIDER_PREFERENCES,
        *,
        primary_provider: str | None = None,
        passes: Sequence[ReleasePass] | None = None,
    ) -> Release:
        """Merge the provider releases and run the reconciliation passes on the result.

        With a ``primary_provider`` the releases which are incompatible with its release
        are dropped with a warning instead of failing the whole lookup.
        """

        release_map = await self.get_complete_provider_release_mapping()
        if primary_provider is not None:
            release_map, incompatibilities = make_releases_compatible(release_map, primary_provider)
            for incompatibility in incompatibilities:
                dropped = ", ".join(
                    info.name for cluster in incompatibility.clusters for info in cluster.providers
                )
                self.messages.append(
                    ProviderMessage(
                        f"{incompatibility.reason}; ignored the release of {dropped}",
                        MessageType.WARNING,
                    )
                )
        release = merge_release(release_map, preferences)
        # messages of the combined lookup come first
        release.info.messages[:0] = self.messages
        return finalize_release(release, passes)


def _internal_name(registry: ProviderRegistry, name: str) -> str:
    provider = registry.find_by_name(name)
    return provider.internal_name if provider else name


async def get_release_by_url(
    registry: ProviderRegistry,
    url: str,
    options: LookupOptions | None = None,
) -> Release:
    """Look up the given URL with the first matching provider."""

    provider = registry.find_by_url(url)
    if provider is None:
        raise ReleaseLookupError(f"No provider supports {url}")
    return await provider.get_release(url, options)


async def get_merged_release_by_gtin(
    registry: ProviderRegistry,
    gtin: GTINLike,
    options: LookupOptions | None = None,
) -> Release:
    lookup = CombinedReleaseLookup(registry, gtin=gtin, options=options)
    return await lookup.get_merged_release()


async def get_merged_release_by_url(
    registry: ProviderRegistry,
    url: str,
    options: LookupOptions | None = None,
) -> Release:
    """Look up the URL, then find the release on the other providers by its GTIN."""

    lookup = CombinedReleaseLookup(registry, urls=[url], options=options)
    return await lookup.get_merged_release()
