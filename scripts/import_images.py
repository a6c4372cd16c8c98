from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dotenv import load_dotenv


def run(directory: str | None, prefix: str | None, clear: bool) -> int:
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))
    load_dotenv(root / ".env")

    from image_arena import config
    from image_arena.db import ImageStore
    from image_arena.errors import NotFound
    from image_arena.importer import import_directory
    from image_arena.logging_setup import setup_logging

    setup_logging()
    log = logging.getLogger("image-arena.import")

    src = Path(directory) if directory else config.ASSETS_DIR
    store = ImageStore(config.DB_PATH)
    try:
        report = import_directory(store, src, url_prefix=prefix or config.ASSET_URL_PREFIX, clear=clear)
    except NotFound as e:
        log.error("%s", e.message)
        return 1

    print(f"Successfully imported {report.inserted} new images from {src}")
    print(f"Total images processed: {report.found}")
    print(f"Images in database: {store.count()}")
    return 0


def main() -> None:
    parser = argparse.ArgumentParser(description="Register a folder of images for comparison.")
    parser.add_argument("directory", nargs="?", help="Folder to scan (default: ASSETS_DIR)")
    parser.add_argument("--prefix", help="URL prefix for image locators (default: ASSET_URL_PREFIX)")
    parser.add_argument("--clear", action="store_true", help="Delete all images before importing")
    args = parser.parse_args()
    raise SystemExit(run(args.directory, args.prefix, args.clear))


if __name__ == "__main__":
    main()
