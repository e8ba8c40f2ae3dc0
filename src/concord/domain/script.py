"""Detection of the writing systems (ISO 15924 scripts) used in a text."""

from __future__ import annotations

from typing import Final

import regex

from .model import ScriptFrequency

# ordered by frequency in the target database; Hant and Hans have no Unicode class
SCRIPT_CODES: Final[tuple[str, ...]] = (
    "Latn",
    "Hani",
    "Kana",
    "Hira",
    "Cyrl",
    "Grek",
    "Hang",
    "Hebr",
    "Arab",
    "Thai",
)

# logographic and syllabic scripts carry more information per letter
SCRIPT_WEIGHTS: Final[dict[str, int]] = {"Hani": 4, "Hira": 3, "Kana": 3}

COMBINED_SCRIPTS: Final[dict[str, tuple[str, ...]]] = {
    "Jpan": ("Kana", "Hira", "Hani"),
    "Kore": ("Hang", "Hani"),
}

_NON_LETTERS = regex.compile(r"\P{L}+")
_SCRIPT_PATTERNS = {code: regex.compile(rf"\p{{Script={code}}}") for code in SCRIPT_CODES}


def detect_scripts(
    text: str,
    possible_scripts: tuple[str, ...] = SCRIPT_CODES,
) -> list[ScriptFrequency]:
    """Detect the scripts of ``text``, ordered by descending weighted frequency."""

    letters = _NON_LETTERS.sub("", text)
    remaining = len(letters)
    weighted_counts: dict[str, float] = {}

    for code in possible_scripts:
        pattern = _SCRIPT_PATTERNS.get(code) or regex.compile(rf"\p{{Script={code}}}")
        count = len(pattern.findall(letters))
        if not count:
            continue
        weighted_counts[code] = count * SCRIPT_WEIGHTS.get(code, 1)
        remaining -= count
        if not remaining:
            break

    weighted_sum = sum(weighted_counts.values())
    if not weighted_sum:
        return []

    frequencies = {code: count / weighted_sum for code, count in weighted_counts.items()}
    for combined, members in COMBINED_SCRIPTS.items():
        parts = [frequencies[code] for code in members if code in frequencies]
        if len(parts) > 1:
            frequencies[combined] = sum(parts)

    detected = [ScriptFrequency(code, frequency) for code, frequency in frequencies.items()]
    # stable sort keeps the database frequency order for ties
    return sorted(detected, key=lambda script: script.frequency, reverse=True)
