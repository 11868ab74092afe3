#!/usr/bin/env python3
"""
One-shot album artwork lookup from the command line.
- Resolve by album id, Apple Music URL, or song + artist search.
- Prints the artwork record (static URL, animated manifest, video URL) as JSON.
"""

import argparse
import asyncio
import json
import logging
import sys

from catalog.types import ArtworkError
from config.settings import DEFAULT_STOREFRONT
from engine.artwork_resolver import build_artwork_resolver
from input.intent_router import ArtworkRequest


def build_parser():
    parser = argparse.ArgumentParser(description="Resolve Apple Music album artwork.")
    parser.add_argument("--id", dest="album_id", help="Apple Music album id.")
    parser.add_argument("--url", dest="source_url", help="Apple Music album or track URL.")
    parser.add_argument("--song", "-s", help="Song title to search for.")
    parser.add_argument("--artist", "-a", help="Artist name to search for.")
    parser.add_argument("--album", dest="album_name", help="Album name to improve search matching.")
    parser.add_argument("--duration", dest="duration_ms", type=int, help="Track duration in milliseconds.")
    parser.add_argument("--storefront", default=DEFAULT_STOREFRONT, help="Catalog region code.")
    parser.add_argument("--verbose", "-v", action="store_true", help="Log catalog traffic to stderr.")
    return parser


def main(argv=None):
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s [%(levelname)s] %(message)s",
        stream=sys.stderr,
    )
    request = ArtworkRequest(
        song=args.song,
        artist=args.artist,
        album_id=args.album_id,
        source_url=args.source_url,
        album_name=args.album_name,
        duration_ms=args.duration_ms,
        storefront=args.storefront,
    )
    try:
        result = asyncio.run(build_artwork_resolver().resolve(request))
    except ArtworkError as exc:
        print(json.dumps({"error": exc.message}, indent=2))
        return 1
    print(json.dumps(result.to_dict(), indent=2))
    return 0


if __name__ == "__main__":
    sys.exit(main())
