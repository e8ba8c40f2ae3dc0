from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Any

import httpx
import pytest

from concord.adapters.providers.base import EntityId, LookupOptions
from concord.adapters.providers.tidal import TidalProvider, TidalResponseError
from concord.config import ResilienceConfig, TidalConfig
from concord.config.tidal import TIDAL_TOKEN_URL
from concord.domain.errors import ProviderError, ResponseError
from concord.domain.model import (
    ArtworkType,
    LinkType,
    LookupMethod,
    MediaType,
    MessageType,
    PartialDate,
    ReleaseGroupType,
)
from tests.helpers.http import FIXED_NOW, FakeClock, make_mock_client

if TYPE_CHECKING:
    from concord.adapters.snapshots import MemorySnapshotStore

type Payload = dict[str, Any]

NEXT_PAGE = "/albums/100/relationships/items?page[cursor]=abc"


def _artist(artist_id: str, name: str) -> Payload:
    return {"id": artist_id, "type": "artists", "attributes": {"name": name}}


def _track(track_id: str, title: str, **attributes: str) -> Payload:
    return {
        "id": track_id,
        "type": "tracks",
        "attributes": {"title": title, "duration": "PT3M25S", **attributes},
        "relationships": {"artists": {"data": [{"id": "1", "type": "artists"}]}},
    }


def _item(track_id: str, track_number: int, volume_number: int = 1) -> Payload:
    return {
        "id": track_id,
        "type": "tracks",
        "meta": {"volumeNumber": volume_number, "trackNumber": track_number},
    }


def _album(
    album_id: str = "100",
    *,
    items: list[Payload] | None = None,
    next_link: str | None = None,
    number_of_items: int = 3,
) -> Payload:
    return {
        "id": album_id,
        "type": "albums",
        "attributes": {
            "title": "Night Drive",
            "barcodeId": "4006381333931",
            "numberOfVolumes": 1,
            "numberOfItems": number_of_items,
            "releaseDate": "2023-04-01",
            "copyright": {"text": "(P) 2023 Night Records"},
            "type": "EP",
            "imageLinks": [
                {"href": "https://img.example/640.jpg", "meta": {"width": 640, "height": 640}},
                {"href": "https://img.example/1280.jpg", "meta": {"width": 1280, "height": 1280}},
                {"href": "https://img.example/160.jpg", "meta": {"width": 160, "height": 160}},
            ],
        },
        "relationships": {
            "artists": {"data": [{"id": "1", "type": "artists"}]},
            "items": {
                "data": items if items is not None else [_item("11", 1), _item("12", 2)],
                "links": {"next": next_link} if next_link else {},
            },
            "providers": {"data": [{"id": "5", "type": "providers"}]},
        },
    }


def _album_document(*albums: Payload) -> Payload:
    return {
        "data": list(albums) or [_album(next_link=NEXT_PAGE)],
        "included": [
            _artist("1", "Night Artist"),
            _track("11", "Intro", version="Remastered", isrc="DEAA12300001"),
            _track("12", "Highway"),
            {"id": "5", "type": "providers", "attributes": {"name": "Night Records / Day Records"}},
            {"id": "9", "type": "unknownThings", "attributes": {}},
        ],
    }


def _items_page() -> Payload:
    return {
        "data": [_item("13", 3)],
        "links": {},
        "included": [_track("13", "Outro")],
    }


class TidalApi:
    """Fake token endpoint and catalogue API."""

    def __init__(self, clock: FakeClock, routes: dict[str, Payload | httpx.Response]) -> None:
        self.clock = clock
        self.routes = routes
        self.token_requests = 0
        self.api_requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TIDAL_TOKEN_URL:
            self.token_requests += 1
            return httpx.Response(200, json={"access_token": "tok", "expires_in": 3600})

        assert request.headers["Authorization"] == "Bearer tok"
        self.api_requests.append(request)
        # every request takes five seconds
        self.clock.now += 5
        route = request.url.path.removeprefix("/v2/")
        payload = self.routes.get(route)
        if payload is None:
            return httpx.Response(404, json={"errors": [{"code": "NOT_FOUND", "detail": route}]})
        if isinstance(payload, httpx.Response):
            return payload
        return httpx.Response(200, json=payload)


def _provider(
    api: TidalApi,
    snapshots: MemorySnapshotStore,
    clock: FakeClock,
) -> TidalProvider:
    config = TidalConfig(
        client_id="client", client_secret="secret", resilience=ResilienceConfig(name="tidal")
    )
    return TidalProvider(config, make_mock_client(api), snapshots=snapshots, clock=clock)


def test_album_lookup_merges_item_pages(snapshots: MemorySnapshotStore, clock: FakeClock) -> None:
    api = TidalApi(
        clock,
        {"albums": _album_document(), "albums/100/relationships/items": _items_page()},
    )
    provider = _provider(api, snapshots, clock)

    release = asyncio.run(provider.get_release("100", LookupOptions(regions=("GB",))))

    assert release.title == "Night Drive"
    assert release.gtin == "4006381333931"
    assert release.types == {ReleaseGroupType.EP}
    assert release.release_date == PartialDate(2023, 4, 1)
    assert release.copyright == "℗ 2023 Night Records"
    assert [label.name for label in release.labels] == ["Night Records", "Day Records"]
    assert [artist.name for artist in release.artists] == ["Night Artist"]

    [medium] = release.media
    assert [track.title for track in medium.tracklist] == ["Intro (Remastered)", "Highway", "Outro"]
    first = medium.tracklist[0]
    assert first.duration == 205_000
    assert first.isrc == "DEAA12300001"
    assert first.media_type is MediaType.AUDIO
    assert first.external_ids[0].type == "track"

    [image] = release.images
    assert image.url == "https://img.example/1280.jpg"
    assert image.thumb_url == "https://img.example/640.jpg"
    assert image.types == [ArtworkType.FRONT]
    assert release.external_links[0].url == "https://tidal.com/album/100"
    assert release.external_links[0].types == [LinkType.PAID_STREAMING]

    info = release.info.providers[0]
    assert info.lookup.region == "GB"
    # the newest response decides the cache time
    assert info.cache_time == FIXED_NOW + 10
    assert api.token_requests == 1
    page_request = api.api_requests[1]
    assert page_request.url.params["page[cursor]"] == "abc"
    assert page_request.url.params["include"] == "items.artists"


def test_album_request_parameters(snapshots: MemorySnapshotStore, clock: FakeClock) -> None:
    api = TidalApi(clock, {"albums": _album_document(_album())})
    provider = _provider(api, snapshots, clock)

    release = asyncio.run(provider.get_release(4006381333931, LookupOptions(regions=("DE",))))

    params = api.api_requests[0].url.params
    assert params["countryCode"] == "DE"
    assert params["filter[barcodeId]"] == "4006381333931"
    assert params["include"] == "artists,items.artists,providers,coverArt"
    assert release.info.providers[0].lookup.method is LookupMethod.GTIN


def test_missing_items_are_reported_and_filled(
    snapshots: MemorySnapshotStore, clock: FakeClock
) -> None:
    album = _album(items=[_item("11", 1), _item("12", 3)], number_of_items=4)
    api = TidalApi(clock, {"albums": _album_document(album)})
    provider = _provider(api, snapshots, clock)

    release = asyncio.run(provider.get_release("100"))

    assert [track.number for track in release.tracks] == [1, 2, 3, 4]
    assert release.tracks[1].title == "[unknown]"
    warning = release.info.messages[0]
    assert warning.type is MessageType.WARNING
    assert warning.text == (
        "The API returned only 2 of 4 tracks for US, other regions may have more"
    )


def test_items_without_track_data_fail(snapshots: MemorySnapshotStore, clock: FakeClock) -> None:
    album = _album(items=[_item("11", 1), _item("99", 2)], number_of_items=2)
    api = TidalApi(clock, {"albums": _album_document(album)})
    provider = _provider(api, snapshots, clock)

    with pytest.raises(ProviderError, match="No track data found for track 1-2"):
        asyncio.run(provider.get_release("100"))


def test_additional_results_are_skipped(snapshots: MemorySnapshotStore, clock: FakeClock) -> None:
    api = TidalApi(clock, {"albums": _album_document(_album(), _album("101"))})
    provider = _provider(api, snapshots, clock)

    release = asyncio.run(provider.get_release(4006381333931))

    assert release.info.providers[0].id == "100"
    assert release.info.messages[0].text == (
        "The API also returned 1 other result, which was skipped:\n- https://tidal.com/album/101"
    )


def test_video_is_a_single_track_release(
    snapshots: MemorySnapshotStore, clock: FakeClock
) -> None:
    video = {
        "id": "77",
        "type": "videos",
        "attributes": {"title": "Clip", "duration": "PT4M", "releaseDate": "2020-01-02"},
        "relationships": {"artists": {"data": [{"id": "1", "type": "artists"}]}},
    }
    api = TidalApi(
        clock, {"videos": {"data": [video], "included": [_artist("1", "Night Artist")]}}
    )
    provider = _provider(api, snapshots, clock)

    release = asyncio.run(provider.get_release("https://tidal.com/browse/video/77"))

    assert release.types == {ReleaseGroupType.SINGLE}
    [track] = release.tracks
    assert track.media_type is MediaType.VIDEO
    assert track.duration == 240_000
    assert release.info.providers[0].id == "video/77"
    assert release.info.providers[0].url == "https://tidal.com/video/77"
    assert api.api_requests[0].url.params["filter[id]"] == "77"
    assert "thumbnailArt" in api.api_requests[0].url.params["include"]


def test_error_documents_raise(snapshots: MemorySnapshotStore, clock: FakeClock) -> None:
    error = {
        "errors": [
            {
                "code": "INVALID_ENUM_VALUE",
                "detail": "Country code is not supported",
                "source": {"parameter": "countryCode"},
            }
        ]
    }
    api = TidalApi(clock, {"albums": httpx.Response(400, json=error)})
    provider = _provider(api, snapshots, clock)

    with pytest.raises(TidalResponseError, match="countryCode: Country code is not supported"):
        asyncio.run(provider.get_release("100"))


def test_errors_in_successful_responses_raise(
    snapshots: MemorySnapshotStore, clock: FakeClock
) -> None:
    api = TidalApi(clock, {"albums": {"errors": [{"detail": "Rate limited"}]}})
    provider = _provider(api, snapshots, clock)

    with pytest.raises(TidalResponseError, match="Rate limited"):
        asyncio.run(provider.get_release("100"))


def test_failed_token_request(snapshots: MemorySnapshotStore, clock: FakeClock) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert str(request.url) == TIDAL_TOKEN_URL
        return httpx.Response(401, json={"error": "invalid_client"})

    config = TidalConfig(
        client_id="client", client_secret="secret", resilience=ResilienceConfig(name="tidal")
    )
    provider = TidalProvider(config, make_mock_client(handler), snapshots=snapshots, clock=clock)

    with pytest.raises(ProviderError, match=r"access token \(HTTP 401\)"):
        asyncio.run(provider.get_release("100"))


def test_token_is_renewed_after_expiry(snapshots: MemorySnapshotStore, clock: FakeClock) -> None:
    api = TidalApi(clock, {})
    provider = _provider(api, snapshots, clock)

    assert asyncio.run(provider.access_token()) == "tok"
    assert asyncio.run(provider.access_token()) == "tok"
    assert api.token_requests == 1

    clock.now += 3600
    asyncio.run(provider.access_token())
    assert api.token_requests == 2


@pytest.mark.parametrize(
    ("url", "entity"),
    [
        ("https://tidal.com/album/100", EntityId("album", "100")),
        ("https://listen.tidal.com/album/100/", EntityId("album", "100")),
        ("https://www.tidal.com/browse/artist/5", EntityId("artist", "5")),
        ("https://tidal.com/browse/video/77", EntityId("video", "77")),
    ],
)
def test_extract_entity_from_url(url: str, entity: EntityId) -> None:
    provider = _provider(TidalApi(FakeClock(), {}), None, FakeClock())  # type: ignore[arg-type]

    assert provider.extract_entity_from_url(url) == entity


def test_provider_ids() -> None:
    provider = _provider(TidalApi(FakeClock(), {}), None, FakeClock())  # type: ignore[arg-type]

    assert provider.parse_provider_id("video/77") == EntityId("video", "77")
    assert provider.parse_provider_id("100") == EntityId("album", "100")
    assert provider.serialize_provider_id(EntityId("video", "77")) == "video/77"
    assert not provider.supports_url("https://tidal.com/playlist/abc")


def test_malformed_included_resources_are_response_errors(
    snapshots: MemorySnapshotStore, clock: FakeClock
) -> None:
    document = _album_document(_album())
    document["included"][1] = {"id": "11", "type": "tracks", "attributes": {}}
    api = TidalApi(clock, {"albums": document})
    provider = _provider(api, snapshots, clock)

    with pytest.raises(ResponseError, match="Unexpected included resource: .*/albums\\?"):
        asyncio.run(provider.get_release("100"))


def test_malformed_resources_of_item_pages_are_response_errors(
    snapshots: MemorySnapshotStore, clock: FakeClock
) -> None:
    page = _items_page()
    page["included"] = [{"id": "13", "type": "tracks", "attributes": {"version": "Live"}}]
    api = TidalApi(
        clock, {"albums": _album_document(), "albums/100/relationships/items": page}
    )
    provider = _provider(api, snapshots, clock)

    with pytest.raises(
        ResponseError, match="Unexpected included resource: .*relationships/items"
    ):
        asyncio.run(provider.get_release("100"))


class RevokingTidalApi:
    """Hands out numbered tokens and only accepts ``valid_token``."""

    def __init__(self, routes: dict[str, Payload], valid_token: str | None) -> None:
        self.routes = routes
        self.valid_token = valid_token
        self.token_requests = 0
        self.rejected = 0

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url) == TIDAL_TOKEN_URL:
            self.token_requests += 1
            token = f"tok{self.token_requests}"
            return httpx.Response(200, json={"access_token": token, "expires_in": 3600})
        if request.headers["Authorization"] != f"Bearer {self.valid_token}":
            self.rejected += 1
            error = {"errors": [{"code": "UNAUTHORIZED", "detail": "Token was revoked"}]}
            return httpx.Response(401, json=error)
        return httpx.Response(200, json=self.routes[request.url.path.removeprefix("/v2/")])


def _revoking_provider(
    api: RevokingTidalApi, snapshots: MemorySnapshotStore, clock: FakeClock
) -> TidalProvider:
    config = TidalConfig(
        client_id="client", client_secret="secret", resilience=ResilienceConfig(name="tidal")
    )
    return TidalProvider(config, make_mock_client(api), snapshots=snapshots, clock=clock)


def test_rejected_token_is_renewed_once(
    snapshots: MemorySnapshotStore, clock: FakeClock
) -> None:
    api = RevokingTidalApi({"albums": _album_document(_album(number_of_items=2))}, "tok2")
    provider = _revoking_provider(api, snapshots, clock)

    release = asyncio.run(provider.get_release("100"))

    assert release.title == "Night Drive"
    assert api.token_requests == 2
    assert api.rejected == 1
    # the renewed token is kept for later requests
    assert asyncio.run(provider.access_token()) == "tok2"
    assert api.token_requests == 2


def test_repeatedly_rejected_token_fails(
    snapshots: MemorySnapshotStore, clock: FakeClock
) -> None:
    api = RevokingTidalApi({}, valid_token=None)
    provider = _revoking_provider(api, snapshots, clock)

    with pytest.raises(TidalResponseError, match="Token was revoked"):
        asyncio.run(provider.get_release("100"))

    assert api.token_requests == 2
    assert api.rejected == 2
