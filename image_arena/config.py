# image_arena/config.py
import os
from pathlib import Path

from dotenv import dotenv_values

_ROOT = Path(__file__).resolve().parent.parent
_ENV_PATH = _ROOT / ".env"


def _read_env_file() -> dict[str, str]:
    if not _ENV_PATH.exists():
        return {}
    return {k: v for k, v in dotenv_values(_ENV_PATH).items() if v is not None}


_ENV_FILE_VALUES = _read_env_file()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    if v is not None and str(v).strip() != "":
        return str(v)
    return _ENV_FILE_VALUES.get(name, default)


def _env_int(name: str, default: int) -> int:
    try:
        return int(_env(name, str(default)))
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    try:
        return float(_env(name, str(default)))
    except ValueError:
        return default


APP_ENV = _env("APP_ENV", _env("NODE_ENV", "development")).strip().lower()

# ================== STORAGE ==================
DB_PATH = Path(_env("DB_PATH", str(_ROOT / "data" / "image_arena.db")))

# ================== RATING ==================
DEFAULT_RATING = 1200.0
ELO_K_FACTOR = _env_float("ELO_K_FACTOR", 32.0)

# redraws of the second offset before falling back to a scan
SAMPLER_MAX_REDRAWS = _env_int("SAMPLER_MAX_REDRAWS", 8)

LEADERBOARD_SIZE = _env_int("LEADERBOARD_SIZE", 5)

# ================== LIMITS ==================
RATE_WINDOW_SEC = _env_float("RATE_WINDOW_SEC", 60.0)
RATE_MAX_PER_IP = _env_int("RATE_MAX_PER_IP", 30)
RATE_MAX_PER_SESSION = _env_int("RATE_MAX_PER_SESSION", 20)
RATE_CLEANUP_INTERVAL_SEC = _env_float("RATE_CLEANUP_INTERVAL_SEC", 5 * 60.0)
RATE_CLEANUP_CHANCE = _env_float("RATE_CLEANUP_CHANCE", 0.1)

# ================== SESSION ==================
DEFAULT_SESSION_SECRET = "default-secret-change-in-production"
SESSION_SECRET = _env("SESSION_SECRET", DEFAULT_SESSION_SECRET)
SESSION_COOKIE_NAME = _env("SESSION_COOKIE_NAME", "__session")
SESSION_MAX_AGE_SEC = _env_int("SESSION_MAX_AGE_SEC", 60 * 60 * 24 * 7)
COOKIE_SECURE = APP_ENV == "production"

# ================== ASSETS ==================
ASSETS_DIR = Path(_env("ASSETS_DIR", str(_ROOT / "data" / "optimized")))
ASSET_URL_PREFIX = "/" + _env("ASSET_URL_PREFIX", "/external-images").strip("/")
IMAGE_EXTENSIONS = (".jpg", ".jpeg", ".png", ".gif", ".webp", ".bmp", ".svg")

# ================== SERVER ==================
HOST = _env("HOST", "0.0.0.0")
# Railway and similar platforms expose dynamic HTTP port in PORT.
PORT = _env_int("PORT", 8080)
