"""Application settings constants."""

from __future__ import annotations

import os

# Apple Music web front end and catalog API.
WEB_ORIGIN = "https://music.apple.com"
BROWSE_PAGE_URL = f"{WEB_ORIGIN}/us/browse"
CATALOG_API_BASE = "https://amp-api.music.apple.com/v1"

BROWSER_USER_AGENT = (
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_STOREFRONT = os.getenv("ARTWORK_DEFAULT_STOREFRONT", "us")

# Single cache slot for the scraped developer token.
TOKEN_CACHE_KEY = "apple_music_token"
TOKEN_TTL_SECONDS = int(os.getenv("ARTWORK_TOKEN_TTL_SECONDS", "3600"))
TOKEN_CACHE_PATH = os.getenv("ARTWORK_TOKEN_CACHE_PATH") or None

HTTP_TIMEOUT_SECONDS = float(os.getenv("ARTWORK_HTTP_TIMEOUT_SECONDS", "15"))

# Both {w} and {h} in artwork templates are replaced with this size.
ARTWORK_SIZE_PX = 1200

SEARCH_LIMIT = 10
MIN_MATCH_SCORE = 0.6
DURATION_TOLERANCE_MS = 2000

HOST = os.getenv("HOST", "0.0.0.0")
PORT = int(os.getenv("PORT", "3000"))
LOG_DIR = os.getenv("ARTWORK_LOG_DIR") or None
LOG_LEVEL = os.getenv("ARTWORK_LOG_LEVEL", "INFO").upper()
TRUST_PROXY = os.getenv("ARTWORK_TRUST_PROXY", "").strip().lower() in {"1", "true", "yes"}
