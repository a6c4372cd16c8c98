# image_arena/assets.py
from __future__ import annotations

from pathlib import Path

from image_arena.errors import Forbidden, NotFound

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
    ".bmp": "image/bmp",
    ".svg": "image/svg+xml",
}

CACHE_CONTROL = "public, max-age=31536000"


def resolve_asset(root: str | Path, relative: str | None) -> Path:
    """Map a url path under the asset prefix to a file inside ``root``.

    Symlinks and ``..`` segments are resolved before the containment check,
    so nothing outside ``root`` is ever returned.
    """
    if not relative:
        raise NotFound("Not Found")
    root_real = Path(root).resolve()
    candidate = root_real / relative
    if not candidate.exists():
        raise NotFound("Not Found")
    real = candidate.resolve()
    if real != root_real and root_real not in real.parents:
        raise Forbidden()
    if not real.is_file():
        raise NotFound("Not Found")
    return real


def content_type(path: str | Path) -> str:
    return CONTENT_TYPES.get(Path(path).suffix.lower(), "application/octet-stream")
