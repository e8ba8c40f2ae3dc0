"""Domain primitives: scalar aliases + small value objects."""

from __future__ import annotations

from dataclasses import dataclass

type CountryCode = str
type GTIN = str
type Mbid = str
type Isrc = str
type DurationMs = int
type UnixSeconds = int


@dataclass(frozen=True, slots=True)
class PartialDate:
    year: int | None = None
    month: int | None = None
    day: int | None = None

    @property
    def is_empty(self) -> bool:
        return self.year is None and self.month is None and self.day is None

    def __str__(self) -> str:
        parts: list[str] = []
        if self.year is not None:
            parts.append(f"{self.year:04d}")
            if self.month is not None:
                parts.append(f"{self.month:02d}")
                if self.day is not None:
                    parts.append(f"{self.day:02d}")
        return "-".join(parts)


@dataclass(frozen=True, slots=True)
class Language:
    """ISO 639 language code with an optional detection confidence."""

    code: str
    confidence: float | None = None


@dataclass(frozen=True, slots=True)
class ScriptFrequency:
    """ISO 15924 script code and the share of classified letters written in it."""

    code: str
    frequency: float
