from __future__ import annotations

import copy
from typing import TYPE_CHECKING

from concord.adapters.providers.base import LookupOptions, is_url_specifier
from concord.domain.errors import ProviderError
from concord.domain.similarity import simplify_name

if TYPE_CHECKING:
    from collections.abc import Callable

    from concord.adapters.providers.base import ReleaseSpecifier
    from concord.domain.model import Release


class FakeProvider:
    """Stands in for a metadata provider and serves canned releases."""

    def __init__(
        self,
        name: str,
        releases: dict[str, Release | Callable[[ReleaseSpecifier], Release]] | None = None,
    ) -> None:
        self.name = name
        self.internal_name = simplify_name(name).replace(" ", "")
        self.releases = releases or {}
        self.calls: list[tuple[ReleaseSpecifier, LookupOptions]] = []
        self.closed = False

    def supports_url(self, url: str) -> bool:
        return url.startswith(f"https://{self.internal_name}.example/")

    async def get_release(
        self,
        specifier: ReleaseSpecifier,
        options: LookupOptions | None = None,
    ) -> Release:
        self.calls.append((specifier, options or LookupOptions()))
        key = self._key(specifier)
        if key not in self.releases:
            raise ProviderError(self.name, f"No release for {key}")
        release = self.releases[key]
        if callable(release):
            return release(specifier)
        return copy.deepcopy(release)

    async def aclose(self) -> None:
        self.closed = True

    def _key(self, specifier: ReleaseSpecifier) -> str:
        if isinstance(specifier, tuple):
            return f"{specifier[0]}:{specifier[1]}"
        if isinstance(specifier, str) and is_url_specifier(specifier):
            return specifier.rsplit("/", 1)[-1]
        return str(specifier)
