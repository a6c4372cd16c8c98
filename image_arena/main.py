# image_arena/main.py
from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import uvicorn
from dotenv import load_dotenv


def _load_env() -> None:
    """Load .env from project root reliably."""
    root_env = Path(__file__).resolve().parents[1] / ".env"
    load_dotenv(dotenv_path=root_env)


async def _run_server(app, host: str, port: int, log: logging.Logger) -> None:
    while True:
        try:
            uv_cfg = uvicorn.Config(app=app, host=host, port=port, log_config=None, reload=False)
            server = uvicorn.Server(uv_cfg)
            log.info("HTTP server: http://%s:%s", host, port)
            await server.serve()
            if server.should_exit:
                log.info("HTTP server stopped")
                return
            log.warning("HTTP server stopped; restarting in 3s")
            await asyncio.sleep(3)
        except asyncio.CancelledError:
            raise
        except Exception:
            log.exception("HTTP server crashed; restarting in 5s")
            await asyncio.sleep(5)


async def main() -> None:
    _load_env()

    # config reads the environment at import time, so import after .env is loaded
    from image_arena import config
    from image_arena.logging_setup import setup_logging
    from image_arena.web import create_app

    setup_logging()
    log = logging.getLogger("image-arena")
    log.info("Starting Image Arena")
    log.info(
        "Config flags: DB_PATH=%s ASSETS_DIR=%s SESSION_SECRET=%s K=%s RATE_IP=%s RATE_SESSION=%s WINDOW=%ss",
        config.DB_PATH,
        config.ASSETS_DIR,
        "default" if config.SESSION_SECRET == config.DEFAULT_SESSION_SECRET else "set",
        config.ELO_K_FACTOR,
        config.RATE_MAX_PER_IP,
        config.RATE_MAX_PER_SESSION,
        config.RATE_WINDOW_SEC,
    )
    if config.COOKIE_SECURE and config.SESSION_SECRET == config.DEFAULT_SESSION_SECRET:
        log.warning("SESSION_SECRET is not set in production; session cookies use the default secret")

    app = create_app()
    app.state.store.init_db()
    await _run_server(app, config.HOST, config.PORT, log)


def run() -> None:
    asyncio.run(main())


if __name__ == "__main__":
    run()
