"""Registry of the configured metadata providers."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from concord.adapters.http_resilience import ResilientClient
from concord.adapters.snapshots import FileSnapshotStore
from concord.config.errors import MissingConfigurationError
from concord.config.itunes import get_itunes_config
from concord.config.lookup import get_lookup_config
from concord.config.storage import get_storage_config
from concord.config.tidal import get_tidal_config
from concord.domain.similarity import simplify_name

from .itunes import ITunesProvider
from .tidal import TidalProvider

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator

    from concord.adapters.http_resilience import ClientFactory
    from concord.adapters.snapshots import SnapshotStore
    from concord.config.lookup import LookupConfig
    from concord.config.storage import StorageConfig

    from .base import MetadataProvider, ProviderOptions

log = getLogger(__name__)


class ProviderRegistry:
    """Providers keyed by their internal name, in registration order."""

    def __init__(self, providers: Iterable[MetadataProvider] = ()) -> None:
        self._providers: dict[str, MetadataProvider] = {}
        for provider in providers:
            self.add(provider)

    def add(self, provider: MetadataProvider) -> None:
        if provider.internal_name in self._providers:
            raise ValueError(f"Provider '{provider.internal_name}' is already registered")
        self._providers[provider.internal_name] = provider

    def __iter__(self) -> Iterator[MetadataProvider]:
        return iter(self._providers.values())

    def __len__(self) -> int:
        return len(self._providers)

    @property
    def internal_names(self) -> list[str]:
        return list(self._providers)

    def find_by_name(self, name: str) -> MetadataProvider | None:
        """Accepts internal names as well as display names."""

        provider = self._providers.get(name)
        if provider is None:
            provider = self._providers.get(_internal_name(name))
        return provider

    def find_by_url(self, url: str) -> MetadataProvider | None:
        return next((provider for provider in self if provider.supports_url(url)), None)

    def to_display_name(self, internal_name: str) -> str | None:
        provider = self._providers.get(internal_name)
        return provider.name if provider else None

    def filter(self, names: Iterable[str]) -> list[MetadataProvider]:
        """Providers with the given names; unknown names are logged and skipped."""

        selected: list[MetadataProvider] = []
        for name in names:
            provider = self.find_by_name(name)
            if provider is None:
                log.warning("Unknown provider '%s' ignored", name)
            elif provider not in selected:
                selected.append(provider)
        return selected

    async def aclose(self) -> None:
        for provider in self:
            await provider.aclose()


def build_default_registry(
    *,
    lookup_config: LookupConfig | None = None,
    storage_config: StorageConfig | None = None,
    snapshots: SnapshotStore | None = None,
    client_factory: ClientFactory = ResilientClient,
) -> ProviderRegistry:
    """Registry of all providers which are configured in the environment.

    Providers with missing credentials are skipped with a warning. ``CONCORD_PROVIDERS``
    restricts the registry to the named providers.
    """

    lookup_config = lookup_config or get_lookup_config()
    if snapshots is None:
        storage_config = storage_config or get_storage_config()
        snapshots = FileSnapshotStore(storage_config.snapshot_dir())
    options: ProviderOptions = {
        "snapshots": snapshots,
        "concurrency_limit": lookup_config.concurrency_limit,
        "snapshot_max_age": lookup_config.snapshot_max_age_seconds,
    }

    enabled = {_internal_name(name) for name in lookup_config.providers}

    registry = ProviderRegistry()
    if not enabled or _internal_name(TidalProvider.name) in enabled:
        try:
            tidal_config = get_tidal_config()
        except MissingConfigurationError as exc:
            log.warning("Tidal provider disabled, missing %s", ", ".join(exc.variables))
        else:
            client = client_factory(tidal_config.resilience)
            registry.add(TidalProvider(tidal_config, client, **options))

    if not enabled or _internal_name(ITunesProvider.name) in enabled:
        itunes_config = get_itunes_config()
        registry.add(ITunesProvider(client_factory(itunes_config.resilience), **options))

    return registry


def _internal_name(name: str) -> str:
    return simplify_name(name).replace(" ", "")
