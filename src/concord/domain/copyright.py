"""Copyright line helpers."""

from __future__ import annotations

import re
from typing import Literal

type CopyrightSymbol = Literal["©", "℗"]

_COPYRIGHT_MARKER = re.compile(r"\(c\)", re.IGNORECASE)
_PHONOGRAM_MARKER = re.compile(r"\(p\)", re.IGNORECASE)


def format_copyright_symbols(
    copyright: str,
    expected_symbol: CopyrightSymbol | None = None,
) -> str:
    """Replace the first ``(c)`` and ``(p)`` markers by their symbols.

    The expected symbol is prepended unless the line already carries one of the symbols.
    """

    copyright = _COPYRIGHT_MARKER.sub("©", copyright, count=1)
    copyright = _PHONOGRAM_MARKER.sub("℗", copyright, count=1)
    if expected_symbol and "©" not in copyright and "℗" not in copyright:
        copyright = f"{expected_symbol} {copyright}"
    return copyright
