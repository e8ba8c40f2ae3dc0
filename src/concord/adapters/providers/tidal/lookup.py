"""Release lookup against the Tidal API v2."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING, Final

import httpx
from pydantic import BaseModel, ValidationError

from concord.adapters.providers.base import EntityId, LookupStage, ReleaseLookup
from concord.domain.copyright import format_copyright_symbols
from concord.domain.dates import parse_hyphenated_date, parse_iso_duration
from concord.domain.errors import ProviderError, ResponseError
from concord.domain.images import ImageCandidate, select_largest_image
from concord.domain.model import (
    ArtistCreditName,
    ArtworkType,
    ExternalLink,
    Label,
    LookupMethod,
    MediaType,
    Medium,
    MessageType,
    Release,
    ReleaseGroupType,
    Track,
)
from concord.domain.reconciliation.labels import split_labels
from concord.domain.reconciliation.release_types import capitalize_release_type
from concord.domain.tracklist import fill_media_tracklist_gaps

from .schema import (
    AlbumItemIdentifier,
    AlbumResource,
    ArtistResource,
    ArtworkResource,
    ItemsPage,
    ProviderResource,
    ReleaseDocument,
    TrackResource,
    VideoResource,
    parse_included_resources,
)

if TYPE_CHECKING:
    from typing import Any

    from concord.adapters.providers.base import LookupOptions, ReleaseSpecifier
    from concord.domain.model import Artwork

    from .provider import TidalProvider
    from .schema import IncludedResource, MediaLink, ReleaseResource

log = getLogger(__name__)

DIGITAL_MEDIA: Final = "Digital Media"


@dataclass(slots=True)
class TidalRawRelease:
    release: ReleaseResource
    # items of all pages, empty for videos
    items: list[AlbumItemIdentifier] = field(default_factory=list)


def validate_document[M: BaseModel](
    model: type[M],
    payload: object,
    provider_name: str,
    url: str,
) -> M:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ResponseError(provider_name, f"Unexpected {model.__name__} structure", url) from exc


class TidalReleaseLookup(ReleaseLookup["TidalProvider", TidalRawRelease]):
    def __init__(
        self,
        provider: TidalProvider,
        specifier: ReleaseSpecifier,
        options: LookupOptions,
    ) -> None:
        super().__init__(provider, specifier, options)
        # IDs are only unique per resource type
        self.resources: dict[tuple[str, str], IncludedResource] = {}

    def construct_release_api_url(self) -> str:
        value = self.value
        resource = "albums"
        if self.method is LookupMethod.ID and value.startswith("video/"):
            resource = "videos"
            value = value.removeprefix("video/")
        elif self.method not in (LookupMethod.GTIN, LookupMethod.ID):
            raise ProviderError(self.provider.name, f"Unsupported lookup method '{self.method}'")

        artwork_include = "thumbnailArt" if resource == "videos" else "coverArt"
        params = {
            "countryCode": self.region or self.provider.default_region,
            "include": ",".join(("artists", "items.artists", "providers", artwork_include)),
        }
        if self.method is LookupMethod.GTIN:
            params["filter[barcodeId]"] = value
        else:
            params["filter[id]"] = value
        return str(httpx.URL(f"{self.provider.api_base_url}{resource}", params=params))

    async def get_raw_release(self) -> TidalRawRelease:
        payload = await self.query_all_regions(_has_data)
        url = self.construct_release_api_url()
        document = validate_document(ReleaseDocument, payload, self.provider.name, url)

        first, *others = document.data
        self.warn_multiple_results(self._release_url(release) for release in others)
        self.add_resources(document.included, url)

        raw = TidalRawRelease(release=first)
        if isinstance(first, AlbumResource):
            raw.items = list(first.relationships.items.data)
            next_link = first.relationships.items.links.next
            while next_link:
                self.stage = LookupStage.PAGINATING
                page_url = self.page_url(next_link)
                entry = await self.query(page_url)
                page = validate_document(ItemsPage, entry.content, self.provider.name, page_url)
                raw.items.extend(page.data)
                self.add_resources(page.included, page_url)
                self.update_cache_time(entry.timestamp)
                next_link = page.links.next
        return raw

    def page_url(self, next_link: str) -> str:
        # next links are relative to the API root and carry the page cursor
        url = httpx.URL(self.provider.api_base_url).join(next_link.lstrip("/"))
        return str(url.copy_set_param("include", "items.artists"))

    def add_resources(self, included: list[dict[str, Any]], url: str) -> None:
        try:
            resources = parse_included_resources(included)
        except ValidationError as exc:
            raise ResponseError(self.provider.name, "Unexpected included resource", url) from exc
        for resource in resources:
            self.resources[(resource.type, resource.id)] = resource

    def convert_raw_release(self, raw: TidalRawRelease) -> Release:
        resource = raw.release
        is_video = isinstance(resource, VideoResource)
        self.entity = EntityId(type="video" if is_video else "album", id=resource.id)
        attributes = resource.attributes

        if isinstance(resource, VideoResource):
            # a video is a single track release
            media = [
                Medium(number=1, format=DIGITAL_MEDIA, tracklist=[self.convert_track(1, resource)])
            ]
            types = {ReleaseGroupType.SINGLE}
            gtin = None
        else:
            media = self.assemble_media(raw.items, resource.attributes.number_of_items)
            release_type = resource.attributes.type
            types = {capitalize_release_type(release_type)} if release_type else set()
            gtin = resource.attributes.barcode_id

        copyright = attributes.copyright
        if copyright is not None and not isinstance(copyright, str):
            copyright = copyright.text
        artwork = self.get_artwork(resource)

        return Release(
            title=attributes.title,
            artists=self.get_artists(resource),
            gtin=gtin,
            external_links=[
                ExternalLink(
                    url=self.provider.construct_url(self.entity),
                    types=self.provider.link_types_for_entity(self.entity),
                )
            ],
            media=media,
            release_date=parse_hyphenated_date(attributes.release_date),
            copyright=format_copyright_symbols(copyright) if copyright else None,
            status="Official",
            types=types,
            packaging="None",
            images=[artwork] if artwork else [],
            labels=self.get_labels(resource),
            info=self.generate_release_info(),
        )

    def assemble_media(self, items: list[AlbumItemIdentifier], expected_count: int) -> list[Medium]:
        """Group album items into media; a new volume number starts a new medium."""

        if len(items) < expected_count:
            self.add_message(
                f"The API returned only {len(items)} of {expected_count} tracks for "
                f"{self.region}, other regions may have more",
                MessageType.WARNING,
            )
        if not items:
            return [Medium(number=1, format=DIGITAL_MEDIA)]

        media: list[Medium] = []
        medium: Medium | None = None
        ordered = sorted(items, key=lambda item: (item.meta.volume_number, item.meta.track_number))
        for item in ordered:
            track = self.resources.get((item.type, item.id))
            if not isinstance(track, TrackResource | VideoResource):
                raise ProviderError(
                    self.provider.name,
                    "No track data found for track "
                    f"{item.meta.volume_number}-{item.meta.track_number}",
                )
            if medium is None or item.meta.volume_number != medium.number:
                medium = Medium(number=item.meta.volume_number, format=DIGITAL_MEDIA)
                media.append(medium)
            medium.tracklist.append(self.convert_track(item.meta.track_number, track))

        if len(items) < expected_count:
            fill_media_tracklist_gaps(media, expected_count)
        return media

    def convert_track(self, number: int, track: TrackResource | VideoResource) -> Track:
        attributes = track.attributes
        is_video = isinstance(track, VideoResource)
        return Track(
            number=number,
            title=(
                f"{attributes.title} ({attributes.version})"
                if attributes.version
                else attributes.title
            ),
            duration=parse_iso_duration(attributes.duration),
            isrc=attributes.isrc,
            artists=self.get_artists(track),
            media_type=MediaType.VIDEO if is_video else MediaType.AUDIO,
            external_ids=self.provider.make_external_ids(
                EntityId(type="video" if is_video else "track", id=track.id)
            ),
        )

    def get_artists(self, resource: ReleaseResource | TrackResource) -> list[ArtistCreditName]:
        credits: list[ArtistCreditName] = []
        for identifier in resource.relationships.artists.data:
            artist = self.resources.get((identifier.type, identifier.id))
            if not isinstance(artist, ArtistResource):
                raise ProviderError(
                    self.provider.name, f"No artist data found for artist {identifier.id}"
                )
            credits.append(
                ArtistCreditName(
                    name=artist.attributes.name,
                    external_ids=self.provider.make_external_ids(
                        EntityId(type="artist", id=artist.id)
                    ),
                )
            )
        return credits

    def get_artwork(self, resource: ReleaseResource) -> Artwork | None:
        links: list[MediaLink] | None = resource.attributes.image_links
        if not links:
            if isinstance(resource, VideoResource):
                relationship = resource.relationships.thumbnail_art
            else:
                relationship = resource.relationships.cover_art
            identifiers = relationship.data if relationship else []
            artworks = [
                artwork
                for identifier in identifiers
                if isinstance(
                    artwork := self.resources.get((identifier.type, identifier.id)), ArtworkResource
                )
            ]
            if len(artworks) > 1:
                log.warning("Tidal release %s has multiple artworks", resource.id)
            image = next(
                (artwork for artwork in artworks if artwork.attributes.media_type == "IMAGE"), None
            )
            links = image.attributes.files if image else []
        return select_largest_image(
            (
                ImageCandidate(url=link.href, width=link.meta.width, height=link.meta.height)
                for link in links
            ),
            [ArtworkType.FRONT],
        )

    def get_labels(self, resource: ReleaseResource) -> list[Label]:
        labels: list[Label] = []
        for identifier in resource.relationships.providers.data:
            provider = self.resources.get((identifier.type, identifier.id))
            if isinstance(provider, ProviderResource):
                labels.extend(split_labels(provider.attributes.name))
            else:
                labels.append(Label(name=f"[unknown Tidal provider {identifier.id}]"))
        return labels

    def _release_url(self, release: ReleaseResource) -> str:
        entity_type = "video" if isinstance(release, VideoResource) else "album"
        return self.provider.construct_url(EntityId(type=entity_type, id=release.id))


def _has_data(payload: object) -> bool:
    return isinstance(payload, dict) and bool(payload.get("data"))
