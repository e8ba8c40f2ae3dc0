"""Detection of script and language of a release from its titles."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import replace
from logging import getLogger
from typing import TYPE_CHECKING, Final

from langdetect import DetectorFactory, detect_langs
from langdetect.lang_detect_exception import LangDetectException

from concord.domain.model import Language, MessageType, ProviderMessage
from concord.domain.script import detect_scripts

from .passes import PassResult

if TYPE_CHECKING:
    from concord.domain.model import Release, ScriptFrequency

log = getLogger(__name__)

type LanguageGuesser = Callable[[str], list[tuple[str, float]]]

MIN_SCRIPT_FREQUENCY: Final[float] = 0.7
MIN_LANGUAGE_CONFIDENCE: Final[float] = 0.8
MIN_REPORTED_CONFIDENCE: Final[float] = 0.1
# guesses from one or two titles are unreliable
MIN_TITLE_COUNT: Final[int] = 3

# langdetect is non-deterministic unless seeded
DetectorFactory.seed = 0


def langdetect_guesser(text: str) -> list[tuple[str, float]]:
    """Language candidates of ``text`` as ``(code, confidence)``, best first."""

    try:
        candidates = detect_langs(text)
    except LangDetectException as exc:
        log.debug("No language candidates for %r: %s", text[:40], exc)
        return []
    return [(candidate.lang, candidate.prob) for candidate in candidates]


def _format_script(script: ScriptFrequency) -> str:
    return f"{script.code} ({script.frequency:.1%})"


def detect_language_and_script(
    release: Release,
    *,
    guess_language: LanguageGuesser = langdetect_guesser,
) -> PassResult:
    """Fill in a missing script and language; existing values are never touched."""

    titles = release.all_titles
    text = "\n".join(titles)
    messages: list[ProviderMessage] = []
    updates: dict[str, object] = {}

    if release.script is None:
        scripts = detect_scripts(text)
        detected = ", ".join(map(_format_script, scripts)) or "none"
        messages.append(
            ProviderMessage(
                f"Detected scripts of the titles: {detected}",
                MessageType.DEBUG,
            )
        )
        if scripts and scripts[0].frequency > MIN_SCRIPT_FREQUENCY:
            updates["script"] = scripts[0]
        else:
            messages.append(
                ProviderMessage(
                    "Script of the titles is ambiguous, none was set", MessageType.WARNING
                )
            )

    if release.language is None and len(titles) >= MIN_TITLE_COUNT:
        candidates = guess_language(text)
        reported = [
            f"{code} ({confidence:.1%})"
            for code, confidence in candidates
            if confidence > MIN_REPORTED_CONFIDENCE
        ]
        messages.append(
            ProviderMessage(
                f"Guessed language of the titles: {', '.join(reported) or 'none'}",
                MessageType.DEBUG,
            )
        )
        if candidates:
            code, confidence = max(candidates, key=lambda candidate: candidate[1])
            if confidence > MIN_LANGUAGE_CONFIDENCE:
                updates["language"] = Language(code, confidence)

    if not updates:
        return PassResult(release, tuple(messages))
    return PassResult(replace(release, **updates), tuple(messages))
