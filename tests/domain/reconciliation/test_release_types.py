from __future__ import annotations

import pytest

from concord.domain.model import Medium, Release, ReleaseGroupType, Track
from concord.domain.reconciliation import (
    capitalize_release_type,
    guess_types_for_release,
    guess_types_from_title,
    merge_types,
    sort_types,
)
from concord.domain.reconciliation.release_types import guess_dj_mix_release, guess_live_release

T = ReleaseGroupType


@pytest.mark.parametrize(
    ("title", "expected"),
    [
        ("Sunrise - Single", {T.SINGLE}),
        ("Night Drive (EP)", {T.EP}),
        ("Wake of a Nation (EP)", {T.EP}),
        ("One Second (Live)", {T.LIVE}),
        ("Night Drive EP", {T.EP}),
        ("At Wembley (Live) (Remastered)", {T.LIVE}),
        ("The Remixes", {T.REMIX}),
        ("Song (Artist Remix)", {T.REMIX}),
        ("Fabric 01 (Continuous DJ Mix)", {T.DJ_MIX}),
        ("Dune (Original Motion Picture Soundtrack)", {T.SOUNDTRACK}),
        ("Music from the Netflix Series Dark", {T.SOUNDTRACK}),
        ("Hamilton (Original Broadway Cast Recording)", {T.SOUNDTRACK}),
        ("Musik zum Film Lola rennt", {T.SOUNDTRACK}),
        ("Final Fantasy OST", {T.SOUNDTRACK}),
        ("Ghost Stories", set()),
    ],
)
def test_guess_types_from_title(title: str, expected: set[ReleaseGroupType]) -> None:
    assert guess_types_from_title(title) == expected


def test_ost_is_case_sensitive() -> None:
    assert guess_types_from_title("Lost") == set()
    assert guess_types_from_title("the lost ost") == set()


def test_capitalize_release_type() -> None:
    assert capitalize_release_type("ALBUM") is T.ALBUM
    assert capitalize_release_type("ep") is T.EP
    assert capitalize_release_type("dj-mix") is T.DJ_MIX
    with pytest.raises(ValueError, match="Unknown release group type"):
        capitalize_release_type("bootleg")


def test_live_release_needs_every_track_to_be_live() -> None:
    live = [Track(title="Intro (Live)"), Track(title="Hit - Live")]

    assert guess_live_release(live)
    assert not guess_live_release([*live, Track(title="Studio Bonus")])
    assert not guess_live_release([])


def test_dj_mix_release_needs_one_fully_mixed_medium() -> None:
    mixed = Medium(tracklist=[Track(title="A - Mixed"), Track(title="B (Mixed)")])
    unmixed = Medium(number=2, tracklist=[Track(title="A"), Track(title="B")])

    assert guess_dj_mix_release([mixed, unmixed])
    assert not guess_dj_mix_release([unmixed])


def test_guess_types_for_release_keeps_existing_types() -> None:
    release = Release(
        title="Live in Paris",
        types={T.ALBUM},
        media=[Medium(tracklist=[Track(title="One (Live)"), Track(title="Two (Live)")])],
    )

    assert guess_types_for_release(release) == {T.ALBUM, T.LIVE}


def test_merge_types_reduces_to_one_primary_type() -> None:
    assert merge_types([T.ALBUM], [T.EP, T.LIVE]) == [T.EP, T.LIVE]
    assert merge_types([T.SINGLE], [T.EP]) == [T.EP]
    assert merge_types([T.EP], [T.SINGLE]) == [T.EP]
    assert merge_types([T.OTHER], [], [T.SINGLE, T.SOUNDTRACK]) == [T.SINGLE, T.SOUNDTRACK]
    assert merge_types([T.COMPILATION]) == [T.COMPILATION]


def test_sort_types_puts_primary_types_first() -> None:
    assert sort_types([T.REMIX, T.LIVE, T.ALBUM, T.LIVE]) == [T.ALBUM, T.LIVE, T.REMIX]
