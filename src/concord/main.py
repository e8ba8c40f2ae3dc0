#!/usr/bin/env python3

# ruff: noqa: T201

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from signal import SIGINT, signal
from typing import TYPE_CHECKING

from dotenv import load_dotenv

from concord.adapters.providers import LookupOptions, build_default_registry
from concord.common import configure_logging
from concord.config import ConfigurationError, get_lookup_config
from concord.domain.errors import InvalidLookupStateError, ReleaseLookupError
from concord.domain.lookup_state import LookupState, decode_lookup_state, encode_lookup_state
from concord.lookup import CombinedReleaseLookup

if TYPE_CHECKING:
    from collections.abc import Sequence
    from types import FrameType

    from concord.adapters.providers import ProviderRegistry
    from concord.domain.model import Release

log = logging.getLogger(__name__)


def _parse_args(argv: Sequence[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Look up a release with several metadata providers and merge the results"
    )
    parser.add_argument("--gtin", type=str, help="GTIN (barcode) of the release")
    parser.add_argument(
        "--url",
        action="append",
        default=[],
        help="Release URL of a supported provider (repeatable)",
    )
    parser.add_argument(
        "--provider",
        action="append",
        default=[],
        metavar="NAME=ID",
        help="Provider name and release ID (repeatable)",
    )
    parser.add_argument(
        "--region",
        action="append",
        default=[],
        help="Preferred region as two letter country code (repeatable, defaults to config)",
    )
    parser.add_argument(
        "--ts",
        type=int,
        help="Only use snapshots taken before this UNIX timestamp",
    )
    parser.add_argument(
        "--permalink",
        type=str,
        help="Replay the lookup encoded in a permalink query string",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    parser.add_argument(
        "--debug-http", action="store_true", help="Also log the requests of the HTTP client"
    )
    return parser.parse_args(list(argv))


def _parse_provider_id(value: str) -> tuple[str, str]:
    name, separator, provider_id = value.partition("=")
    if not separator or not name.strip() or not provider_id.strip():
        raise ValueError(f"Invalid provider ID '{value}', expected NAME=ID")
    return name.strip(), provider_id.strip()


def _build_lookup_options(args: argparse.Namespace) -> LookupOptions:
    config = get_lookup_config()
    regions = tuple(region.upper() for region in args.region) or config.regions
    return LookupOptions(
        regions=regions,
        snapshot_max_timestamp=args.ts,
        snapshot_fallback=config.snapshot_fallback,
    )


def _build_lookup(args: argparse.Namespace, registry: ProviderRegistry) -> CombinedReleaseLookup:
    options = _build_lookup_options(args)
    if args.permalink:
        state: LookupState = decode_lookup_state(args.permalink)
        return CombinedReleaseLookup.from_lookup_state(registry, state, options=options)

    provider_ids = [_parse_provider_id(value) for value in args.provider]
    if not (args.gtin or args.url or provider_ids):
        raise ValueError("Nothing to look up, pass --gtin, --url, --provider or --permalink")
    return CombinedReleaseLookup(
        registry,
        gtin=args.gtin,
        provider_ids=provider_ids,
        urls=args.url,
        options=options,
    )


async def _lookup_release(args: argparse.Namespace) -> Release:
    registry = build_default_registry()
    try:
        lookup = _build_lookup(args, registry)
        return await lookup.get_merged_release()
    finally:
        await registry.aclose()


def _json_default(value: object) -> object:
    if isinstance(value, set | frozenset):
        return sorted(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def release_to_json(release: Release) -> str:
    return json.dumps(asdict(release), default=_json_default, ensure_ascii=False, indent=2)


def main(argv: Sequence[str] | None = None) -> None:
    """Main application entry point."""
    args_list = list(argv) if argv is not None else list(sys.argv[1:])
    parsed_args = _parse_args(args_list)
    configure_logging(
        level=logging.DEBUG if parsed_args.verbose else logging.INFO,
        library_level=logging.DEBUG if parsed_args.debug_http else None,
    )

    try:
        release = asyncio.run(_lookup_release(parsed_args))
    except ConfigurationError as exc:
        log.error("Invalid configuration of %s: %s", exc.variable or "concord", exc)  # noqa: TRY400
        sys.exit(2)
    except (ValueError, InvalidLookupStateError):
        log.exception("Invalid lookup request")
        sys.exit(2)
    except ReleaseLookupError as exc:
        log.error("Lookup failed: %s", exc)  # noqa: TRY400
        sys.exit(1)

    print(release_to_json(release))
    print(f"?{encode_lookup_state(release.info, permalink=True)}")


def sigint_handler(_signal_received: int, _frame: FrameType | None) -> None:
    """Handle SIGINT (Ctrl+C) gracefully."""
    log.info("Closed by user (Ctrl+C)")
    sys.exit(0)


def run() -> None:
    load_dotenv()
    signal(SIGINT, sigint_handler)
    main()


if __name__ == "__main__":
    run()
