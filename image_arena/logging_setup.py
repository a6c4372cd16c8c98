import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def setup_logging(log_dir: str | os.PathLike | None = None) -> None:
    log_path = Path(log_dir or os.getenv("LOG_DIR", "logs") or "logs")
    log_path.mkdir(parents=True, exist_ok=True)

    log_level = (os.getenv("LOG_LEVEL", "INFO") or "INFO").upper()
    max_mb = int(os.getenv("LOG_MAX_MB", "10") or "10")
    backup_count = int(os.getenv("LOG_BACKUP_COUNT", "5") or "5")

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    fmt = logging.Formatter(LOG_FORMAT)
    file_handler = RotatingFileHandler(
        log_path / "app.log",
        maxBytes=max_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8",
    )
    file_handler.setFormatter(fmt)

    stream_handler = logging.StreamHandler()
    stream_handler.setFormatter(fmt)

    root.addHandler(file_handler)
    root.addHandler(stream_handler)

    # uvicorn installs its own handlers; route everything through root instead
    for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        logging.getLogger(name).handlers.clear()
        logging.getLogger(name).propagate = True
    # Per-request access lines are noise next to the vote logs.
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
