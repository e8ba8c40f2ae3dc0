"""Metadata providers and the machinery they share."""

from __future__ import annotations

from .base import (
    CacheEntry,
    EntityId,
    LookupOptions,
    LookupStage,
    MetadataProvider,
    ReleaseLookup,
    ReleaseSpecifier,
)
from .registry import ProviderRegistry, build_default_registry

__all__ = [
    "CacheEntry",
    "EntityId",
    "LookupOptions",
    "LookupStage",
    "MetadataProvider",
    "ProviderRegistry",
    "ReleaseLookup",
    "ReleaseSpecifier",
    "build_default_registry",
]
