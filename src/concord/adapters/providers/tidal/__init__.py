"""Tidal provider adapter."""

from __future__ import annotations

from .lookup import TidalReleaseLookup
from .provider import TidalProvider, TidalResponseError

__all__ = ["TidalProvider", "TidalReleaseLookup", "TidalResponseError"]
