#!/usr/bin/env python3
"""HTTP surface for album artwork resolution."""

import logging
import os

from fastapi import FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn
from uvicorn.middleware.proxy_headers import ProxyHeadersMiddleware

from catalog.types import (
    ArtworkError,
    AuthExpiredError,
    CredentialError,
    FetchError,
    NotFoundError,
    ParseError,
    UserError,
)
from config.settings import DEFAULT_STOREFRONT, HOST, LOG_DIR, LOG_LEVEL, PORT, TRUST_PROXY
from engine.artwork_resolver import ArtworkResolver, build_artwork_resolver
from input.intent_router import ArtworkRequest

APP_NAME = "Artwork Resolver"

_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Max-Age": "86400",
}

_ERROR_STATUS = (
    (UserError, 400),
    (NotFoundError, 404),
    (CredentialError, 502),
    (AuthExpiredError, 502),
    (FetchError, 502),
    (ParseError, 502),
)


def _setup_logging(log_dir, level=LOG_LEVEL):
    root = logging.getLogger("")
    root.setLevel(level)
    formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(message)s")
    if not any(isinstance(handler, logging.StreamHandler) for handler in root.handlers):
        console = logging.StreamHandler()
        console.setFormatter(formatter)
        root.addHandler(console)
    if not log_dir:
        return
    os.makedirs(log_dir, exist_ok=True)
    log_path = os.path.join(log_dir, "artwork.log")
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler):
            if os.path.abspath(getattr(handler, "baseFilename", "")) == os.path.abspath(log_path):
                return
    file_handler = logging.FileHandler(log_path)
    file_handler.setFormatter(formatter)
    file_handler.setLevel(level)
    root.addHandler(file_handler)


def _parse_duration(*values):
    for raw in values:
        text = (raw or "").strip()
        if not text:
            continue
        try:
            return int(text)
        except ValueError:
            logging.debug("Ignoring non-numeric duration %r", raw)
    return None


def _error_response(message, status_code):
    return JSONResponse({"error": message}, status_code=status_code)


app = FastAPI(
    title=APP_NAME,
    description="Resolves Apple Music album artwork and animated previews.",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_methods=["GET", "OPTIONS"],
    allow_headers=["Content-Type"],
    max_age=86400,
)

if TRUST_PROXY:
    app.add_middleware(ProxyHeadersMiddleware, trusted_hosts="*")


@app.on_event("startup")
async def startup():
    _setup_logging(LOG_DIR)
    app.state.resolver = build_artwork_resolver()
    logging.info("%s ready (storefront=%s)", APP_NAME, DEFAULT_STOREFRONT)


def _get_resolver() -> ArtworkResolver:
    resolver = getattr(app.state, "resolver", None)
    if resolver is None:
        resolver = build_artwork_resolver()
        app.state.resolver = resolver
    return resolver


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    if exc.status_code == 404:
        message = "Not found"
    elif exc.status_code == 405:
        message = "Method not allowed"
    return _error_response(message, exc.status_code)


@app.get("/health")
async def health():
    return {"status": "ok"}


# Preflights carrying Origin and Access-Control-Request-Method are answered by the
# CORS middleware; this answers bare OPTIONS requests.
@app.options("/")
@app.options("/artwork")
async def artwork_options():
    return Response(status_code=204, headers=_CORS_HEADERS)


@app.get("/")
@app.get("/artwork")
async def artwork(
    s: str | None = Query(None),
    song: str | None = Query(None),
    a: str | None = Query(None),
    artist: str | None = Query(None),
    album_id: str | None = Query(None, alias="id"),
    source_url: str | None = Query(None, alias="url"),
    storefront: str | None = Query(None),
    album_name: str | None = Query(None, alias="albumName"),
    duration: str | None = Query(None),
    duration_ms: str | None = Query(None, alias="durationMs"),
):
    request = ArtworkRequest(
        song=s or song,
        artist=a or artist,
        album_id=album_id,
        source_url=source_url,
        album_name=album_name,
        duration_ms=_parse_duration(duration, duration_ms),
        storefront=(storefront or "").strip() or DEFAULT_STOREFRONT,
    )
    try:
        result = await _get_resolver().resolve(request)
    except ArtworkError as exc:
        for error_type, status_code in _ERROR_STATUS:
            if isinstance(exc, error_type):
                break
        else:
            status_code = 500
        if status_code >= 500:
            logging.warning("Artwork request failed: %s", exc.message)
        return _error_response(exc.message, status_code)
    except Exception:
        logging.exception("Error handling artwork request")
        return _error_response("Unknown error", 500)
    return result.to_dict()


def run():
    _setup_logging(LOG_DIR)
    logging.info("Server starting on port %s...", PORT)
    uvicorn.run(app, host=HOST, port=PORT)


if __name__ == "__main__":
    run()
