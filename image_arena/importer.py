# image_arena/importer.py
from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from image_arena import config
from image_arena.db import ImageStore
from image_arena.errors import NotFound

log = logging.getLogger("image-arena.import")


@dataclass
class ImportReport:
    found: int
    inserted: int
    cleared: int = 0


def scan_images(directory: str | Path) -> list[Path]:
    d = Path(directory)
    return sorted(
        p for p in d.iterdir()
        if p.is_file() and p.suffix.lower() in config.IMAGE_EXTENSIONS
    )


def build_rows(files: list[Path], url_prefix: str = config.ASSET_URL_PREFIX) -> list[tuple[str, str]]:
    prefix = "/" + url_prefix.strip("/")
    return [(p.stem, f"{prefix}/{p.name}") for p in files]


def import_directory(
    store: ImageStore,
    directory: str | Path,
    url_prefix: str = config.ASSET_URL_PREFIX,
    clear: bool = False,
) -> ImportReport:
    d = Path(directory)
    if not d.is_dir():
        raise NotFound(f"Image folder not found at: {d}")

    cleared = store.clear() if clear else 0
    if cleared:
        log.info("cleared existing images count=%s", cleared)

    files = scan_images(d)
    if not files:
        log.warning("no image files found dir=%s", d)
        return ImportReport(found=0, inserted=0, cleared=cleared)

    inserted = store.add_images(build_rows(files, url_prefix))
    log.info("imported images dir=%s found=%s inserted=%s", d, len(files), inserted)
    return ImportReport(found=len(files), inserted=inserted, cleared=cleared)
