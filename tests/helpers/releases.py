from __future__ import annotations

from concord.domain.model import (
    ArtistCreditName,
    ExternalEntityId,
    LookupMethod,
    LookupParameters,
    Medium,
    ProviderInfo,
    Release,
    ReleaseInfo,
    Track,
)


def make_tracks(count: int, *, prefix: str = "Track", duration: int | None = None) -> list[Track]:
    return [
        Track(number=number, title=f"{prefix} {number}", duration=duration)
        for number in range(1, count + 1)
    ]


def make_provider_info(
    name: str,
    *,
    provider_id: str = "1",
    method: LookupMethod = LookupMethod.ID,
    value: str | None = None,
    region: str | None = None,
    cache_time: int | None = None,
    is_template: bool = False,
) -> ProviderInfo:
    internal_name = name.lower()
    return ProviderInfo(
        name=name,
        internal_name=internal_name,
        id=provider_id,
        url=f"https://{internal_name}.example/album/{provider_id}",
        lookup=LookupParameters(
            method=method, value=value if value is not None else provider_id, region=region
        ),
        cache_time=cache_time,
        is_template=is_template,
    )


def make_release(
    provider: str,
    *,
    title: str = "Sample Album",
    gtin: str | None = None,
    track_counts: tuple[int, ...] = (3,),
    artist: str = "Sample Artist",
    duration: int | None = None,
    info: ProviderInfo | None = None,
) -> Release:
    internal_name = provider.lower()
    return Release(
        title=title,
        gtin=gtin,
        artists=[
            ArtistCreditName(
                name=artist,
                external_ids=[ExternalEntityId(internal_name, "artist", f"{internal_name}-a1")],
            )
        ],
        media=[
            Medium(number=index, tracklist=make_tracks(count, duration=duration))
            for index, count in enumerate(track_counts, start=1)
        ],
        info=ReleaseInfo(providers=[info or make_provider_info(provider)]),
    )
