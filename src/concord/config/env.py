"""Environment variable loaders for configuration."""

from __future__ import annotations

import os
from typing import TYPE_CHECKING

from .errors import ConfigurationError, MissingConfigurationError

if TYPE_CHECKING:
    from collections.abc import Sequence


def require_env_vars(names: Sequence[str]) -> dict[str, str]:
    """Return the given environment variables or raise if any are missing/blank."""

    missing: list[str] = []
    values: dict[str, str] = {}
    for name in names:
        value = os.getenv(name)
        if value is None or not value.strip():
            missing.append(name)
            continue
        values[name] = value

    if missing:
        raise MissingConfigurationError(missing)

    return values


def env_int(name: str, default: int, *, minimum: int | None = None) -> int:
    """Read an integer variable, falling back to ``default`` when unset or blank."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw.strip())
    except ValueError as exc:
        raise ConfigurationError(
            f"{name} must be an integer, got {raw!r}", variable=name
        ) from exc
    if minimum is not None and value < minimum:
        raise ConfigurationError(
            f"{name} must be at least {minimum}, got {value}", variable=name
        )
    return value


def env_list(name: str, default: Sequence[str] = ()) -> tuple[str, ...]:
    """Read a comma separated variable into a tuple of stripped, non-empty items."""

    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return tuple(default)
    return tuple(item.strip() for item in raw.split(",") if item.strip())
