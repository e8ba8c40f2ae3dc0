"""iTunes provider, backed by the public lookup endpoint of the iTunes Search API.

See https://developer.apple.com/library/archive/documentation/AudioVideo/Conceptual/iTuneSearchAPI
"""

from __future__ import annotations

import re
from logging import getLogger
from typing import ClassVar, Final
from urllib.parse import urlsplit, urlunsplit

import httpx
from pydantic import ValidationError

from concord.adapters.providers.base import EntityId, MetadataProvider, ReleaseLookup
from concord.config.itunes import ITUNES_API_BASE_URL
from concord.domain.dates import parse_iso_datetime
from concord.domain.errors import ProviderError, ResponseError
from concord.domain.gtin import is_equal_gtin, is_valid_gtin
from concord.domain.model import (
    VARIOUS_ARTISTS_NAME,
    ArtistCreditName,
    Artwork,
    ArtworkType,
    ExternalLink,
    LinkType,
    LookupMethod,
    MediaType,
    Medium,
    MessageType,
    Release,
    various_artists,
)
from concord.domain.model import Track as ReleaseTrack

from .schema import Collection, LookupResult, Track

log = getLogger(__name__)

DIGITAL_MEDIA: Final = "Digital Media"
_GTIN_IN_URL: Final = re.compile(r"(?<!\d)\d{12,14}(?!\d)")
_VIEW_URL_BLURB: Final = re.compile(r"(?:(?<=/artist)|(?<=/album))/[^/]+(?=/\d+)")
_IMAGE_EXTENSION: Final = re.compile(r"\.(jpe?g|png|tiff?)$")


def extract_gtin_from_url(url: str | None) -> str | None:
    """Artwork URLs usually contain the barcode of the release."""

    if not url:
        return None
    match = _GTIN_IN_URL.search(url)
    if match and is_valid_gtin(match.group(0)):
        return match.group(0)
    return None


def clean_view_url(view_url: str) -> str:
    """Drop tracking query parameters and the name blurb in front of the ID."""

    parts = urlsplit(view_url)
    return urlunsplit((parts.scheme, parts.netloc, _VIEW_URL_BLURB.sub("", parts.path), "", ""))


def get_source_image(url: str) -> str:
    """Transform an Apple image URL to point to the source image in its original resolution."""

    image_url = httpx.URL(url)
    path = re.sub(r"^/image/thumb/", "/us/r1000/063/", image_url.path)
    components = path.split("/")
    if len(components) > 2:
        penultimate = components[-2]
        if penultimate == "source" or _IMAGE_EXTENSION.search(penultimate):
            # the trailing component did the image conversion
            path = "/".join(components[:-1])
    return str(image_url.copy_with(host="a1.mzstatic.com", path=path))


def has_results(payload: object) -> bool:
    return isinstance(payload, dict) and bool(payload.get("resultCount"))


class ITunesReleaseLookup(ReleaseLookup["ITunesProvider", LookupResult]):
    def construct_release_api_url(self) -> str:
        params = {"entity": "song", "limit": "200"}
        if self.method is LookupMethod.GTIN:
            params["upc"] = self.value
        elif self.method is LookupMethod.ID:
            params["id"] = self.value
        else:
            raise ProviderError(self.provider.name, f"Unsupported lookup method '{self.method}'")
        if self.region:
            params["country"] = self.region.lower()
        return str(httpx.URL(f"{self.provider.api_base_url}lookup", params=params))

    async def get_raw_release(self) -> LookupResult:
        payload = await self.query_all_regions(has_results)
        try:
            return LookupResult.model_validate(payload)
        except ValidationError as exc:
            raise ResponseError(
                self.provider.name, "Unexpected lookup result", self.construct_release_api_url()
            ) from exc

    def convert_raw_release(self, raw: LookupResult) -> Release:
        # GTIN lookups also return other variants of the release, only the first one is used
        collection = next((item for item in raw.results if isinstance(item, Collection)), None)
        if collection is None:
            raise ResponseError(
                self.provider.name, "API returned no release", self.construct_release_api_url()
            )
        self.entity = EntityId(type="album", id=str(collection.collection_id), region=self.region)

        tracks = [
            item
            for item in raw.results
            if isinstance(item, Track)
            # skip bonus items such as booklets or videos
            and item.kind == "song"
            and item.collection_id == collection.collection_id
        ]
        self.warn_skipped_collections(raw, collection)

        link_types: list[LinkType] = []
        if collection.collection_price:
            link_types.append(LinkType.PAID_DOWNLOAD)
        if all(track.is_streamable for track in tracks):
            link_types.append(LinkType.PAID_STREAMING)

        gtin = self.check_gtin(extract_gtin_from_url(collection.artwork_url_100))
        images = []
        if collection.artwork_url_100:
            images.append(process_image(collection.artwork_url_100, [ArtworkType.FRONT]))

        return Release(
            title=collection.collection_name,
            artists=[self.convert_artist(collection.artist_name, collection.artist_view_url)],
            gtin=gtin,
            external_links=[
                ExternalLink(url=clean_view_url(collection.collection_view_url), types=link_types)
            ],
            media=self.convert_tracklist(tracks),
            release_date=parse_iso_datetime(collection.release_date),
            status="Official",
            packaging="None",
            images=images,
            copyright=collection.copyright,
            info=self.generate_release_info(),
        )

    def warn_skipped_collections(self, raw: LookupResult, collection: Collection) -> None:
        skipped: dict[int, str] = {}
        for item in raw.results:
            if isinstance(item, Collection | Track) and item.collection_id not in (
                None,
                collection.collection_id,
            ):
                if item.collection_view_url and item.collection_id not in skipped:
                    skipped[item.collection_id] = clean_view_url(item.collection_view_url)
        self.warn_multiple_results(skipped.values())

    def check_gtin(self, gtin: str | None) -> str | None:
        if gtin is None:
            self.add_message("Failed to extract GTIN from artwork URL", MessageType.WARNING)
        elif self.method is LookupMethod.GTIN and not is_equal_gtin(gtin, self.value):
            self.add_message(
                f"Extracted GTIN {gtin} (from artwork URL) does not match the looked up value "
                f"{self.value}",
                MessageType.ERROR,
            )
        else:
            self.add_message(f"Successfully extracted GTIN {gtin} from artwork URL")
        return gtin

    def convert_tracklist(self, tracks: list[Track]) -> list[Medium]:
        if not tracks:
            return [Medium(number=1, format=DIGITAL_MEDIA)]

        media = [
            Medium(number=number, format=DIGITAL_MEDIA)
            for number in range(1, tracks[0].disc_count + 1)
        ]
        for track in tracks:
            while len(media) < track.disc_number:
                media.append(Medium(number=len(media) + 1, format=DIGITAL_MEDIA))
            # the censored name is sometimes more complete instead of censored
            title = track.track_name
            if track.track_censored_name and len(track.track_censored_name) > len(title):
                title = track.track_censored_name
            media[track.disc_number - 1].tracklist.append(
                ReleaseTrack(
                    number=track.track_number,
                    title=title,
                    duration=track.track_time_millis,
                    artists=[self.convert_artist(track.artist_name, track.artist_view_url)],
                    media_type=MediaType.AUDIO,
                    external_ids=self.provider.make_external_ids(
                        EntityId(type="song", id=str(track.track_id))
                    ),
                )
            )
        return media

    def convert_artist(self, name: str, url: str | None) -> ArtistCreditName:
        if name == VARIOUS_ARTISTS_NAME:
            return various_artists()
        entity = self.provider.extract_entity_from_url(url) if url else None
        return ArtistCreditName(
            name=name,
            external_ids=self.provider.make_external_ids(entity) if entity else [],
        )


def process_image(url: str, types: list[ArtworkType]) -> Artwork:
    return Artwork(
        url=get_source_image(url),
        thumb_url=url.replace("100x100bb", "250x250bb"),
        types=types,
    )


class ITunesProvider(MetadataProvider):
    name: ClassVar[str] = "iTunes"
    supported_urls: ClassVar[re.Pattern[str]] = re.compile(
        r"^https?://(?:itunes|music)\.apple\.com/(?:(?P<region>\w{2})/)?"
        r"(?P<type>album|artist)/(?:(?P<slug>[^/?#]+)/)?(?P<id>\d+)",
        re.IGNORECASE,
    )
    entity_type_map: ClassVar[dict[str, str | tuple[str, ...]]] = {
        "artist": "artist",
        "release": "album",
    }
    default_region: ClassVar[str] = "US"
    lookup_class = ITunesReleaseLookup
    api_base_url: ClassVar[str] = ITUNES_API_BASE_URL

    def construct_url(self, entity: EntityId) -> str:
        region = (entity.region or self.default_region).lower()
        return f"https://music.apple.com/{region}/{entity.type}/{entity.id}"
