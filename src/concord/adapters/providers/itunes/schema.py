"""iTunes Search API lookup response schemas."""

from __future__ import annotations

from typing import Annotated, Literal

from pydantic import BaseModel, ConfigDict, Field


class ITunesBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class Collection(ITunesBaseModel):
    wrapper_type: Literal["collection"] = Field(alias="wrapperType")
    collection_id: int = Field(alias="collectionId")
    artist_name: str = Field(alias="artistName")
    collection_name: str = Field(alias="collectionName")
    collection_censored_name: str | None = Field(default=None, alias="collectionCensoredName")
    # various artists have no URL
    artist_view_url: str | None = Field(default=None, alias="artistViewUrl")
    collection_view_url: str = Field(alias="collectionViewUrl")
    artwork_url_100: str | None = Field(default=None, alias="artworkUrl100")
    collection_price: float | None = Field(default=None, alias="collectionPrice")
    track_count: int | None = Field(default=None, alias="trackCount")
    copyright: str | None = None
    country: str | None = None
    release_date: str | None = Field(default=None, alias="releaseDate")


class Track(ITunesBaseModel):
    wrapper_type: Literal["track"] = Field(alias="wrapperType")
    kind: str | None = None
    collection_id: int | None = Field(default=None, alias="collectionId")
    collection_view_url: str | None = Field(default=None, alias="collectionViewUrl")
    track_id: int = Field(alias="trackId")
    artist_name: str = Field(alias="artistName")
    artist_view_url: str | None = Field(default=None, alias="artistViewUrl")
    track_name: str = Field(alias="trackName")
    track_censored_name: str | None = Field(default=None, alias="trackCensoredName")
    disc_count: int = Field(default=1, alias="discCount")
    disc_number: int = Field(default=1, alias="discNumber")
    track_number: int | None = Field(default=None, alias="trackNumber")
    track_time_millis: int | None = Field(default=None, alias="trackTimeMillis")
    is_streamable: bool | None = Field(default=None, alias="isStreamable")


class OtherResult(ITunesBaseModel):
    """Artists and other wrapper types which are not used."""

    wrapper_type: str = Field(alias="wrapperType")
    collection_id: int | None = Field(default=None, alias="collectionId")
    collection_view_url: str | None = Field(default=None, alias="collectionViewUrl")


LookupItem = Annotated[Collection | Track | OtherResult, Field(union_mode="left_to_right")]


class LookupResult(ITunesBaseModel):
    result_count: int = Field(alias="resultCount")
    results: list[LookupItem] = Field(default_factory=list)
