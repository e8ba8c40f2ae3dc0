"""Validation and comparison of Global Trade Item Numbers (barcodes)."""

from __future__ import annotations

import re
from typing import TYPE_CHECKING, Final

from .errors import InvalidGTINError

if TYPE_CHECKING:
    from collections.abc import Iterable

GTIN_LENGTHS: Final[frozenset[int]] = frozenset({8, 12, 13, 14})
_DIGITS = re.compile(r"^\d+$")

type GTINLike = str | int


def _checksum(gtin: str) -> int:
    length = len(gtin)
    # factors alternate between 1 and 3, starting with 1 for the last digit
    return sum(int(digit) * (1 if (length - index) % 2 else 3) for index, digit in enumerate(gtin))


def ensure_valid_gtin(gtin: GTINLike) -> str:
    """Return the GTIN as string or raise ``InvalidGTINError``."""

    value = str(gtin)
    if len(value) not in GTIN_LENGTHS:
        raise InvalidGTINError(f"GTIN '{value}' has an invalid length")
    if not _DIGITS.match(value):
        raise InvalidGTINError(f"GTIN '{value}' contains invalid non-numeric characters")
    if _checksum(value) % 10:
        raise InvalidGTINError(f"Checksum of GTIN '{value}' is invalid")
    return value


def is_valid_gtin(gtin: GTINLike) -> bool:
    try:
        ensure_valid_gtin(gtin)
    except InvalidGTINError:
        return False
    return True


def check_digit(gtin: GTINLike) -> int:
    """Calculate the check digit; the last position must hold the digit or a placeholder."""

    value = str(gtin)[:-1] + "0"
    return (10 - _checksum(value) % 10) % 10


def is_equal_gtin(a: GTINLike, b: GTINLike, *, strict: bool = False) -> bool:
    """Compare two GTINs, ignoring leading zeros unless ``strict`` is set."""

    if strict:
        return str(a) == str(b)
    return int(a) == int(b)


def unique_gtin_set(gtins: Iterable[GTINLike]) -> set[int]:
    return {int(gtin) for gtin in gtins}
