from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING

import pytest

from concord.adapters.providers.registry import ProviderRegistry
from concord.domain.errors import CompatibilityError, ReleaseLookupError
from concord.domain.lookup_state import LookupState
from concord.domain.model import LookupMethod, MessageType
from concord.lookup import CombinedReleaseLookup, get_release_by_url
from tests.helpers.http import FIXED_NOW
from tests.helpers.providers import FakeProvider
from tests.helpers.releases import make_provider_info, make_release

if TYPE_CHECKING:
    from concord.domain.model import Release

GTIN = "4006381333931"


def _tidal_release(gtin: str | None = GTIN) -> Release:
    return make_release(
        "Tidal",
        gtin=gtin,
        info=make_provider_info("Tidal", provider_id="111", region="GB"),
    )


def _itunes_release(gtin: str = GTIN) -> Release:
    return make_release(
        "iTunes",
        gtin=gtin,
        duration=200_000,
        info=make_provider_info("iTunes", method=LookupMethod.GTIN, value=gtin, region="GB"),
    )


def _registry(
    tidal_releases: dict[str, Release] | None = None,
    itunes_releases: dict[str, Release] | None = None,
) -> tuple[ProviderRegistry, FakeProvider, FakeProvider]:
    tidal = FakeProvider("Tidal", tidal_releases)
    itunes = FakeProvider("iTunes", itunes_releases)
    return ProviderRegistry([tidal, itunes]), tidal, itunes


def test_url_lookup_continues_with_the_returned_gtin() -> None:
    registry, tidal, itunes = _registry(
        {"111": _tidal_release()}, {f"gtin:{GTIN}": _itunes_release()}
    )
    lookup = CombinedReleaseLookup(registry, urls=["https://tidal.example/album/111"])

    release = asyncio.run(lookup.get_merged_release(passes=()))

    assert tidal.calls[0][0] == "https://tidal.example/album/111"
    [(specifier, options)] = itunes.calls
    assert specifier == (LookupMethod.GTIN, GTIN)
    assert options.regions == ("GB",)
    assert lookup.gtin == GTIN
    assert [info.name for info in release.info.providers] == ["Tidal", "iTunes"]
    assert release.gtin == GTIN
    assert release.tracks[0].duration == 200_000
    assert release.info.source_map["duration"] == "iTunes"


def test_gtin_lookup_queries_every_provider() -> None:
    registry, tidal, itunes = _registry(
        {f"gtin:{GTIN}": _tidal_release()}, {f"gtin:{GTIN}": _itunes_release()}
    )
    lookup = CombinedReleaseLookup(registry, gtin=int(GTIN))

    mapping = asyncio.run(lookup.get_complete_provider_release_mapping())

    assert list(mapping) == ["Tidal", "iTunes"]
    assert tidal.calls[0][0] == (LookupMethod.GTIN, GTIN)
    assert len(itunes.calls) == 1


def test_provider_can_only_be_used_once() -> None:
    registry, _, _ = _registry()

    lookup = CombinedReleaseLookup(registry, provider_ids=[("tidal", "1"), ("Tidal", "2")])

    [message] = lookup.messages
    assert message.type is MessageType.ERROR
    assert message.text == "Provider Tidal can only be used once per lookup, ignoring ID '2'"


def test_queue_errors() -> None:
    registry, _, _ = _registry()

    lookup = CombinedReleaseLookup(
        registry,
        provider_ids=[("deezer", "1")],
        urls=["https://elsewhere.example/album/1"],
        gtin="123",
    )

    assert [message.text for message in lookup.messages][:2] == [
        'There is no provider with the name "deezer"',
        "No provider supports https://elsewhere.example/album/1",
    ]
    assert len(lookup.messages) == 3
    assert lookup.gtin is None


def test_unknown_gtin_skips_the_remaining_providers() -> None:
    registry, _, itunes = _registry({"111": _tidal_release(gtin=None)})
    lookup = CombinedReleaseLookup(registry, provider_ids=[("tidal", "111")])

    release = asyncio.run(lookup.get_merged_release(passes=()))

    assert itunes.calls == []
    info = release.info.messages[0]
    assert info.type is MessageType.INFO
    assert info.text == (
        "GTIN is unknown, lookups for the following providers were skipped: iTunes"
    )


def test_failed_provider_becomes_an_error_message() -> None:
    registry, _, _ = _registry({}, {f"gtin:{GTIN}": _itunes_release()})
    lookup = CombinedReleaseLookup(registry, gtin=GTIN)

    release = asyncio.run(lookup.get_merged_release(passes=()))

    assert [info.name for info in release.info.providers] == ["iTunes"]
    [error] = [message for message in release.info.messages if message.type is MessageType.ERROR]
    assert error.provider == "Tidal"
    assert error.text == f"No release for gtin:{GTIN}"


def test_no_release_at_all() -> None:
    registry, _, _ = _registry()
    lookup = CombinedReleaseLookup(registry, gtin=GTIN)

    with pytest.raises(ReleaseLookupError, match="No provider returned a release"):
        asyncio.run(lookup.get_merged_release(passes=()))


def test_incompatible_releases() -> None:
    releases = (
        {"111": _tidal_release()},
        {"222": _itunes_release(gtin="0036000291452")},
    )
    registry, _, _ = _registry(*releases)
    provider_ids = [("tidal", "111"), ("itunes", "222")]

    with pytest.raises(CompatibilityError, match="multiple different GTIN"):
        asyncio.run(
            CombinedReleaseLookup(registry, provider_ids=provider_ids).get_merged_release(
                passes=()
            )
        )

    lookup = CombinedReleaseLookup(registry, provider_ids=provider_ids)
    release = asyncio.run(lookup.get_merged_release(primary_provider="Tidal", passes=()))

    assert [info.name for info in release.info.providers] == ["Tidal"]
    warning = release.info.messages[0]
    assert warning.type is MessageType.WARNING
    assert warning.text.startswith("Providers have returned multiple different GTIN")
    assert warning.text.endswith("ignored the release of iTunes")


def test_replay_from_lookup_state() -> None:
    registry, tidal, itunes = _registry(
        {"111": _tidal_release()}, {f"gtin:{GTIN}": _itunes_release()}
    )
    state = LookupState(
        gtin=GTIN, provider_ids=[("tidal", "111")], region="DE", timestamp=FIXED_NOW
    )

    lookup = CombinedReleaseLookup.from_lookup_state(registry, state)
    asyncio.run(lookup.get_provider_release_mapping())

    [(specifier, options)] = tidal.calls
    assert specifier == "111"
    assert options.regions == ("DE",)
    assert options.snapshot_max_timestamp == FIXED_NOW
    assert itunes.calls[0][0] == (LookupMethod.GTIN, GTIN)


def test_replay_with_restricted_gtin_providers() -> None:
    registry, tidal, itunes = _registry({f"gtin:{GTIN}": _tidal_release()})
    state = LookupState(gtin=GTIN, gtin_providers=["tidal"])

    lookup = CombinedReleaseLookup.from_lookup_state(registry, state)
    asyncio.run(lookup.get_provider_release_mapping())

    assert len(tidal.calls) == 1
    assert itunes.calls == []


def test_get_release_by_url_without_provider() -> None:
    registry, _, _ = _registry()

    with pytest.raises(ReleaseLookupError, match="No provider supports"):
        asyncio.run(get_release_by_url(registry, "https://elsewhere.example/album/1"))
