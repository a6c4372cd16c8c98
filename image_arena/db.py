# image_arena/db.py
from __future__ import annotations

import logging
import sqlite3
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from image_arena import config
from image_arena.errors import NotFound, StoreFailure

log = logging.getLogger("image-arena.db")

DEFAULT_RATING = config.DEFAULT_RATING

# largest value an sqlite INTEGER PRIMARY KEY can hold
MAX_ID = 2**63 - 1


@dataclass(frozen=True)
class Image:
    id: int
    name: str
    url: str
    rating: float
    created_ts: float = 0.0
    updated_ts: float = 0.0

    @classmethod
    def from_row(cls, r: sqlite3.Row) -> "Image":
        return cls(
            id=int(r["id"]),
            name=str(r["name"] or ""),
            url=str(r["url"] or ""),
            rating=float(r["rating"] if r["rating"] is not None else DEFAULT_RATING),
            created_ts=float(r["created_ts"] or 0.0),
            updated_ts=float(r["updated_ts"] or 0.0),
        )

    def summary(self) -> dict:
        return {"id": self.id, "name": self.name, "url": self.url, "rating": self.rating}


class ImageStore:
    """SQLite-backed table of images and their ratings."""

    def __init__(self, db_path: str | Path | None = None):
        self.db_path = Path(db_path or config.DB_PATH)
        self._ready = False

    def _con(self) -> sqlite3.Connection:
        self.db_path.parent.mkdir(parents=True, exist_ok=True)
        con = sqlite3.connect(self.db_path)
        con.row_factory = sqlite3.Row
        con.execute("PRAGMA journal_mode=WAL;")
        return con

    def init_db(self) -> None:
        if self._ready:
            return
        con = self._con()
        try:
            con.executescript(f"""
            CREATE TABLE IF NOT EXISTS images(
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                name TEXT NOT NULL,
                url TEXT NOT NULL UNIQUE,
                rating REAL NOT NULL DEFAULT {float(DEFAULT_RATING)},
                created_ts REAL NOT NULL,
                updated_ts REAL NOT NULL
            );

            CREATE INDEX IF NOT EXISTS images_rating_desc_idx ON images(rating DESC);
            CREATE INDEX IF NOT EXISTS images_rating_asc_idx ON images(rating ASC);
            CREATE INDEX IF NOT EXISTS images_created_ts_idx ON images(created_ts);
            """)
            con.commit()
        finally:
            con.close()
        self._ready = True

    # ---------- Reads ----------
    def _query(self, sql: str, params: tuple = ()) -> list[sqlite3.Row]:
        self.init_db()
        con = self._con()
        try:
            return con.execute(sql, params).fetchall()
        except sqlite3.Error as e:
            log.exception("image read failed path=%s", self.db_path)
            raise StoreFailure("Failed to load images") from e
        finally:
            con.close()

    def count(self) -> int:
        rows = self._query("SELECT COUNT(*) AS n FROM images")
        return int(rows[0]["n"] or 0) if rows else 0

    def sample(self, offset: int) -> Image | None:
        """Row at ``offset`` in id order, or None when past the end."""
        if int(offset) < 0:
            return None
        rows = self._query("SELECT * FROM images ORDER BY id ASC LIMIT 1 OFFSET ?", (int(offset),))
        return Image.from_row(rows[0]) if rows else None

    def first_other(self, image_id: int) -> Image | None:
        rows = self._query("SELECT * FROM images WHERE id != ? ORDER BY id ASC LIMIT 1", (int(image_id),))
        return Image.from_row(rows[0]) if rows else None

    def get_by_id(self, image_id: int) -> Image | None:
        if not 0 < int(image_id) <= MAX_ID:
            return None
        rows = self._query("SELECT * FROM images WHERE id=?", (int(image_id),))
        return Image.from_row(rows[0]) if rows else None

    def _ranked(self, direction: str, limit: int) -> list[Image]:
        lim = max(1, min(500, int(limit)))
        rows = self._query(f"SELECT * FROM images ORDER BY rating {direction}, id ASC LIMIT ?", (lim,))
        return [Image.from_row(r) for r in rows]

    def top(self, limit: int = config.LEADERBOARD_SIZE) -> list[Image]:
        return self._ranked("DESC", limit)

    def bottom(self, limit: int = config.LEADERBOARD_SIZE) -> list[Image]:
        return self._ranked("ASC", limit)

    # ---------- Writes ----------
    def apply_update(self, id_a: int, rating_a: float, id_b: int, rating_b: float) -> None:
        """Write both ratings in one transaction, or neither."""
        self.init_db()
        now = time.time()
        con = self._con()
        try:
            con.execute("BEGIN IMMEDIATE")
            for image_id, rating in ((id_a, rating_a), (id_b, rating_b)):
                cur = con.execute(
                    "UPDATE images SET rating=?, updated_ts=? WHERE id=?",
                    (max(0.0, float(rating)), now, int(image_id)),
                )
                if cur.rowcount == 0:
                    con.rollback()
                    raise NotFound()
            con.commit()
        except sqlite3.Error as e:
            con.rollback()
            log.exception("rating update failed id_a=%s id_b=%s", id_a, id_b)
            raise StoreFailure() from e
        finally:
            con.close()

    def add_images(self, rows: Iterable[tuple[str, str]]) -> int:
        """Insert (name, url) rows at the default rating, skipping known urls."""
        self.init_db()
        now = time.time()
        data = [(str(name), str(url), float(DEFAULT_RATING), now, now) for name, url in rows]
        if not data:
            return 0
        con = self._con()
        try:
            before = con.total_changes
            con.executemany(
                "INSERT OR IGNORE INTO images(name, url, rating, created_ts, updated_ts) "
                "VALUES(?,?,?,?,?)",
                data,
            )
            con.commit()
            return int(con.total_changes - before)
        except sqlite3.Error as e:
            con.rollback()
            raise StoreFailure("Failed to import images") from e
        finally:
            con.close()

    def clear(self) -> int:
        self.init_db()
        con = self._con()
        try:
            cur = con.execute("DELETE FROM images")
            con.commit()
            return int(cur.rowcount)
        finally:
            con.close()
