"""Fixed order composition of the reconciliation passes."""

from __future__ import annotations

from dataclasses import replace
from functools import partial
from typing import TYPE_CHECKING

from .language_script import LanguageGuesser, detect_language_and_script, langdetect_guesser
from .passes import (
    cleanup_labels_pass,
    dedupe_labels_pass,
    guess_types_pass,
    normalize_isrcs_pass,
)

if TYPE_CHECKING:
    from collections.abc import Sequence

    from concord.domain.model import Release

    from .passes import ReleasePass


def default_passes(
    *, guess_language: LanguageGuesser = langdetect_guesser
) -> tuple[ReleasePass, ...]:
    return (
        cleanup_labels_pass,
        dedupe_labels_pass,
        guess_types_pass,
        normalize_isrcs_pass,
        partial(detect_language_and_script, guess_language=guess_language),
    )


def finalize_release(release: Release, passes: Sequence[ReleasePass] | None = None) -> Release:
    """Run every pass in order and append their diagnostics to the release messages.

    The input release is left untouched.
    """

    current = release
    messages = list(release.info.messages)
    for release_pass in passes if passes is not None else default_passes():
        result = release_pass(current)
        current = result.release
        messages.extend(result.messages)
    return replace(current, info=replace(current.info, messages=messages))
