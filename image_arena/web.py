# image_arena/web.py
from __future__ import annotations

import logging
import uuid
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.responses import FileResponse, JSONResponse

from image_arena import config
from image_arena.assets import CACHE_CONTROL, content_type, resolve_asset
from image_arena.db import ImageStore
from image_arena.errors import ArenaError, InvalidInput, RateLimited
from image_arena.rate_limit import DualRateLimiter
from image_arena.session_cookie import new_session_id, sign_session, unsign_session
from image_arena.voting import VoteHandler

log = logging.getLogger("image-arena.web")


def client_ip(request: Request) -> str:
    fwd = request.headers.get("x-forwarded-for")
    if fwd and fwd.split(",")[0].strip():
        return fwd.split(",")[0].strip()
    for header in ("x-real-ip", "cf-connecting-ip"):
        v = (request.headers.get(header) or "").strip()
        if v:
            return v
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def _error_response(err: ArenaError) -> JSONResponse:
    headers = {}
    if isinstance(err, RateLimited):
        headers["Retry-After"] = str(max(1, int(round(err.retry_after))))
    return JSONResponse({"error": err.message}, status_code=err.status_code, headers=headers)


async def _vote_fields(request: Request) -> tuple:
    ctype = (request.headers.get("content-type") or "").lower()
    if ctype.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            raise InvalidInput()
        if not isinstance(body, dict):
            raise InvalidInput()
        return body.get("winnerId"), body.get("loserId")
    form = await request.form()
    return form.get("winnerId"), form.get("loserId")


def create_app(
    store: ImageStore | None = None,
    limiter: DualRateLimiter | None = None,
    handler: VoteHandler | None = None,
    assets_dir: str | Path | None = None,
    session_secret: str | None = None,
) -> FastAPI:
    store = store or (handler.store if handler else ImageStore())
    limiter = limiter or (handler.limiter if handler else DualRateLimiter.from_config())
    handler = handler or VoteHandler(store, limiter)
    assets_root = Path(assets_dir or config.ASSETS_DIR)
    secret = session_secret or config.SESSION_SECRET

    app = FastAPI()
    app.state.store = store
    app.state.limiter = limiter
    app.state.handler = handler

    @app.exception_handler(ArenaError)
    async def on_arena_error(request: Request, exc: ArenaError):
        if exc.status_code >= 500:
            log.error("request failed path=%s status=%s error=%s", request.url.path, exc.status_code, exc.message)
        return _error_response(exc)

    @app.get("/healthz")
    async def healthz():
        return {"ok": True}

    @app.get("/api/compare")
    async def compare():
        image_a, image_b = handler.next_pair()
        return JSONResponse(
            {"imageA": image_a.summary(), "imageB": image_b.summary()},
            headers={"Cache-Control": "private, max-age=0, must-revalidate"},
        )

    @app.post("/api/compare")
    async def vote(request: Request):
        rid = uuid.uuid4().hex[:10]
        cookie = request.cookies.get(config.SESSION_COOKIE_NAME)
        session_id = unsign_session(secret, cookie) or new_session_id()
        try:
            winner_id, loser_id = await _vote_fields(request)
            handler.submit_vote(winner_id, loser_id, client_ip(request), session_id)
        except ArenaError as e:
            log.info("vote rejected rid=%s status=%s error=%s", rid, e.status_code, e.message)
            return _error_response(e)
        except Exception:
            log.exception("vote internal error rid=%s", rid)
            return JSONResponse({"error": "internal error"}, status_code=500)

        resp = JSONResponse({"success": True})
        resp.set_cookie(
            config.SESSION_COOKIE_NAME,
            sign_session(secret, session_id),
            max_age=config.SESSION_MAX_AGE_SEC,
            path="/",
            httponly=True,
            samesite="lax",
            secure=config.COOKIE_SECURE,
        )
        return resp

    @app.get("/api/leaderboard")
    async def leaderboard(limit: int = config.LEADERBOARD_SIZE, order: str = "top"):
        order = (order or "top").lower()
        if order not in ("top", "bottom"):
            raise InvalidInput("order must be 'top' or 'bottom'")
        images = store.top(limit) if order == "top" else store.bottom(limit)
        return {
            "order": order,
            "images": [img.summary() for img in images],
            "totalImages": store.count(),
        }

    @app.get(config.ASSET_URL_PREFIX + "/{path:path}")
    async def asset(path: str):
        real = resolve_asset(assets_root, path)
        return FileResponse(real, media_type=content_type(real), headers={"Cache-Control": CACHE_CONTROL})

    return app
