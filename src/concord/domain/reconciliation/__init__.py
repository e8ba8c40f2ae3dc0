"""Reconciliation of provider releases into a single canonical release."""

from __future__ import annotations

from .compatibility import (
    Incompatibility,
    IncompatibleCluster,
    ProviderReleaseMapping,
    assert_release_compatibility,
    filter_errors,
    make_releases_compatible,
)
from .deduplicate import dedupe
from .labels import DISTRO_KID_PATTERN, cleanup_bogus_release_labels, split_labels
from .language_script import LanguageGuesser, detect_language_and_script, langdetect_guesser
from .merge import ProviderPreferences, merge_release, merge_resolvable_entities
from .passes import PassResult, ReleasePass, normalize_isrcs_pass
from .pipeline import default_passes, finalize_release
from .release_types import (
    capitalize_release_type,
    guess_types_for_release,
    guess_types_from_title,
    merge_types,
    sort_types,
)

__all__ = [
    "DISTRO_KID_PATTERN",
    "Incompatibility",
    "IncompatibleCluster",
    "LanguageGuesser",
    "PassResult",
    "ProviderPreferences",
    "ProviderReleaseMapping",
    "ReleasePass",
    "assert_release_compatibility",
    "capitalize_release_type",
    "cleanup_bogus_release_labels",
    "dedupe",
    "default_passes",
    "detect_language_and_script",
    "filter_errors",
    "finalize_release",
    "guess_types_for_release",
    "guess_types_from_title",
    "langdetect_guesser",
    "make_releases_compatible",
    "merge_release",
    "merge_resolvable_entities",
    "merge_types",
    "normalize_isrcs_pass",
    "sort_types",
    "split_labels",
]
