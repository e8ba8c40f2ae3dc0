"""Name normalisation used to match entities across providers."""

from __future__ import annotations

import re
import unicodedata
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

# dots between single letters, e.g. "J.A.N.E." or "R.E.M"
_ABBREVIATION_DOTS = re.compile(r"(?<=\b\w)\.(?=\w\b|\s|$)")
_PUNCTUATION = re.compile(r"[^\w\s]|_")
_WHITESPACE = re.compile(r"\s+")


def simplify_name(name: str) -> str:
    """Reduce a name to a comparison key.

    Accents are stripped, case is folded, dots of abbreviations are dropped and any
    remaining punctuation (including hyphens) becomes whitespace.
    """

    decomposed = unicodedata.normalize("NFKD", name)
    stripped = "".join(char for char in decomposed if not unicodedata.combining(char))
    folded = stripped.casefold()
    folded = _ABBREVIATION_DOTS.sub("", folded)
    spaced = _PUNCTUATION.sub(" ", folded)
    return _WHITESPACE.sub(" ", spaced).strip()


def similar_names(a: str, b: str) -> bool:
    """Checks whether the simplified versions of the given names are identical."""
    return simplify_name(a) == simplify_name(b)


def match_by_similar_name[T](
    item: T,
    candidates: Iterable[T],
    name_of: Callable[[T], str | None],
) -> T | None:
    """Return the first candidate whose name is similar to the name of ``item``."""

    name = name_of(item)
    if not name:
        return None
    key = simplify_name(name)
    for candidate in candidates:
        candidate_name = name_of(candidate)
        if candidate_name and simplify_name(candidate_name) == key:
            return candidate
    return None
