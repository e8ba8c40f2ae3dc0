"""iTunes provider adapter."""

from __future__ import annotations

from .provider import ITunesProvider, ITunesReleaseLookup, get_source_image

__all__ = ["ITunesProvider", "ITunesReleaseLookup", "get_source_image"]
