from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, Optional

from app.config import settings

def _lower(value: Optional[str]) -> Optional[str]:
    return value.lower() if value is not None else None

def _connect(db_path: Path) -> sqlite3.Connection:
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    # sqlite's built-in lower() only folds ASCII; Greek needs Python's.
    conn.create_function("py_lower", 1, _lower, deterministic=True)
    return conn

@contextmanager
def get_conn(db_path: Optional[Path] = None) -> Iterator[sqlite3.Connection]:
    conn = _connect(db_path or settings.DB_PATH)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()

def init_db(db_path: Optional[Path] = None) -> None:
    path = db_path or settings.DB_PATH
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_conn(path) as conn:
        # ---- Vocabulary (item store) ----
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS vocabulary (
                id TEXT PRIMARY KEY,
                original TEXT NOT NULL,
                translation TEXT NOT NULL,
                context TEXT NOT NULL DEFAULT '',
                timestamp REAL NOT NULL DEFAULT 0,
                video_id TEXT NOT NULL DEFAULT '',
                date_added TEXT,
                review_count INTEGER NOT NULL DEFAULT 0,
                last_reviewed TEXT
            );
            """
        )
        conn.execute("CREATE INDEX IF NOT EXISTS idx_vocabulary_date_added ON vocabulary (date_added);")
