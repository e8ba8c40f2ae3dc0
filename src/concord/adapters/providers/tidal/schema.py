"""Tidal API v2 (JSON:API) response schemas."""

from __future__ import annotations

from logging import getLogger
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError

log = getLogger(__name__)

type TidalId = str
type IsoDuration = str  # e.g. PT3M25S
type HyphenatedDate = str  # YYYY-MM-DD


class TidalBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class ResourceIdentifier(TidalBaseModel):
    id: TidalId
    type: str


class AlbumItemMeta(TidalBaseModel):
    volume_number: int = Field(alias="volumeNumber")
    track_number: int = Field(alias="trackNumber")


class AlbumItemIdentifier(ResourceIdentifier):
    meta: AlbumItemMeta


class ResourceLinks(TidalBaseModel):
    self_link: str | None = Field(default=None, alias="self")
    next: str | None = None


class Relationship(TidalBaseModel):
    data: list[ResourceIdentifier] = Field(default_factory=list)
    links: ResourceLinks = Field(default_factory=ResourceLinks)


class ItemsRelationship(TidalBaseModel):
    data: list[AlbumItemIdentifier] = Field(default_factory=list)
    links: ResourceLinks = Field(default_factory=ResourceLinks)


class MediaLinkMeta(TidalBaseModel):
    width: int
    height: int


class MediaLink(TidalBaseModel):
    href: str
    meta: MediaLinkMeta


class CopyrightText(TidalBaseModel):
    text: str


class AlbumAttributes(TidalBaseModel):
    title: str
    barcode_id: str | None = Field(default=None, alias="barcodeId")
    number_of_volumes: int = Field(default=1, alias="numberOfVolumes")
    number_of_items: int = Field(default=0, alias="numberOfItems")
    duration: IsoDuration | None = None
    release_date: HyphenatedDate | None = Field(default=None, alias="releaseDate")
    # plain string until 2025-09, an object since then
    copyright: str | CopyrightText | None = None
    image_links: list[MediaLink] | None = Field(default=None, alias="imageLinks")
    type: Literal["ALBUM", "EP", "SINGLE"] | None = None


class AlbumRelationships(TidalBaseModel):
    artists: Relationship = Field(default_factory=Relationship)
    items: ItemsRelationship = Field(default_factory=ItemsRelationship)
    providers: Relationship = Field(default_factory=Relationship)
    cover_art: Relationship | None = Field(default=None, alias="coverArt")


class AlbumResource(TidalBaseModel):
    id: TidalId
    type: Literal["albums"]
    attributes: AlbumAttributes
    relationships: AlbumRelationships = Field(default_factory=AlbumRelationships)


class TrackAttributes(TidalBaseModel):
    title: str
    version: str | None = None
    isrc: str | None = None
    duration: IsoDuration | None = None
    copyright: str | None = None


class TrackRelationships(TidalBaseModel):
    artists: Relationship = Field(default_factory=Relationship)
    providers: Relationship = Field(default_factory=Relationship)


class TrackResource(TidalBaseModel):
    id: TidalId
    type: Literal["tracks"]
    attributes: TrackAttributes
    relationships: TrackRelationships = Field(default_factory=TrackRelationships)


class VideoAttributes(TrackAttributes):
    release_date: HyphenatedDate | None = Field(default=None, alias="releaseDate")
    image_links: list[MediaLink] | None = Field(default=None, alias="imageLinks")


class VideoRelationships(TrackRelationships):
    thumbnail_art: Relationship | None = Field(default=None, alias="thumbnailArt")


class VideoResource(TidalBaseModel):
    id: TidalId
    type: Literal["videos"]
    attributes: VideoAttributes
    relationships: VideoRelationships = Field(default_factory=VideoRelationships)


class ArtistAttributes(TidalBaseModel):
    name: str


class ArtistResource(TidalBaseModel):
    id: TidalId
    type: Literal["artists"]
    attributes: ArtistAttributes


class ArtworkAttributes(TidalBaseModel):
    media_type: Literal["IMAGE", "VIDEO"] = Field(alias="mediaType")
    files: list[MediaLink] = Field(default_factory=list)


class ArtworkResource(TidalBaseModel):
    id: TidalId
    type: Literal["artworks"]
    attributes: ArtworkAttributes


class ProviderAttributes(TidalBaseModel):
    name: str


class ProviderResource(TidalBaseModel):
    id: TidalId
    type: Literal["providers"]
    attributes: ProviderAttributes


type ReleaseResource = AlbumResource | VideoResource
type IncludedResource = (
    AlbumResource
    | ArtistResource
    | ArtworkResource
    | ProviderResource
    | TrackResource
    | VideoResource
)

INCLUDED_RESOURCE_MODELS: dict[str, type[TidalBaseModel]] = {
    "albums": AlbumResource,
    "artists": ArtistResource,
    "artworks": ArtworkResource,
    "providers": ProviderResource,
    "tracks": TrackResource,
    "videos": VideoResource,
}


class ReleaseDocument(TidalBaseModel):
    """Result of an ``albums`` or ``videos`` collection request."""

    data: list[Annotated[AlbumResource | VideoResource, Field(discriminator="type")]]
    links: ResourceLinks = Field(default_factory=ResourceLinks)
    included: list[dict[str, Any]] = Field(default_factory=list)


class ItemsPage(TidalBaseModel):
    """Next page of album items, with their tracks and artists included."""

    data: list[AlbumItemIdentifier] = Field(default_factory=list)
    links: ResourceLinks = Field(default_factory=ResourceLinks)
    included: list[dict[str, Any]] = Field(default_factory=list)


class ErrorMeta(TidalBaseModel):
    category: str | None = None


class ErrorSource(TidalBaseModel):
    parameter: str | None = None


class TidalApiError(TidalBaseModel):
    code: str | None = None
    detail: str = ""
    meta: ErrorMeta | None = None
    source: ErrorSource | None = None

    @property
    def domain(self) -> str | None:
        if self.source and self.source.parameter:
            return self.source.parameter
        return self.meta.category if self.meta else None


class ErrorDocument(TidalBaseModel):
    errors: list[TidalApiError]


class AccessToken(TidalBaseModel):
    access_token: str
    expires_in: int
    token_type: str | None = None


def parse_included_resources(items: list[dict[str, Any]]) -> list[IncludedResource]:
    """Validate side-table resources, skipping types which are not modelled."""

    resources: list[IncludedResource] = []
    for item in items:
        model = INCLUDED_RESOURCE_MODELS.get(str(item.get("type")))
        if model is None:
            log.debug("Skipping included Tidal resource of type %s", item.get("type"))
            continue
        try:
            resources.append(model.model_validate(item))  # type: ignore[arg-type]
        except ValidationError:
            log.warning("Invalid included Tidal %s resource %s", item.get("type"), item.get("id"))
            raise
    return resources
