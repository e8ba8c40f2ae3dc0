from __future__ import annotations

from typing import TYPE_CHECKING

from concord.domain.model import (
    NO_LABEL_NAME,
    Label,
    MessageType,
    ProviderMessage,
    ReleaseGroupType,
)
from concord.domain.reconciliation import PassResult, default_passes, finalize_release
from tests.helpers.releases import make_release

if TYPE_CHECKING:
    from concord.domain.model import Release


def _no_language(_text: str) -> list[tuple[str, float]]:
    return []


def test_finalize_release_runs_all_passes() -> None:
    release = make_release("Tidal", title="Night Drive (EP)")
    release.labels = [Label(name="DistroKid"), Label(name="Distro Kid", catalog_number="X1")]
    release.info.messages.append(ProviderMessage("from provider", MessageType.INFO))
    release.tracks[0].isrc = "gb-aye-69-00531"

    final = finalize_release(release, default_passes(guess_language=_no_language))

    assert [label.name for label in final.labels] == [NO_LABEL_NAME]
    assert final.tracks[0].isrc == "GBAYE6900531"
    assert ReleaseGroupType.EP in final.types
    assert final.script is not None
    assert final.script.code == "Latn"
    texts = [message.text for message in final.info.messages]
    assert texts[0] == "from provider"
    assert "Replaced placeholder labels by [no label]: DistroKid, Distro Kid" in texts


def test_finalize_release_leaves_the_input_untouched() -> None:
    release = make_release("Tidal")
    release.labels = [Label(name="DistroKid")]

    finalize_release(release, default_passes(guess_language=_no_language))

    assert release.labels[0].name == "DistroKid"
    assert release.info.messages == []
    assert release.script is None


def test_custom_passes_run_in_order() -> None:
    order: list[str] = []

    def first(release: Release) -> PassResult:
        order.append("first")
        return PassResult(release, (ProviderMessage("one"),))

    def second(release: Release) -> PassResult:
        order.append("second")
        return PassResult(release, (ProviderMessage("two"),))

    final = finalize_release(make_release("Tidal"), [first, second])

    assert order == ["first", "second"]
    assert [message.text for message in final.info.messages] == ["one", "two"]
