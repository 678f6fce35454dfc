from __future__ import annotations

import sqlite3
from pathlib import Path
from typing import Iterable, List, Optional

from app.db.database import get_conn
from app.models.vocab import VocabularyRecord, format_instant, parse_instant

_COLUMNS = "id, original, translation, context, timestamp, video_id, date_added, review_count, last_reviewed"

def _row_to_record(r: sqlite3.Row) -> VocabularyRecord:
    return VocabularyRecord(
        id=r["id"], original=r["original"], translation=r["translation"],
        context=r["context"], timestamp=float(r["timestamp"]), video_id=r["video_id"],
        date_added=parse_instant(r["date_added"]), review_count=int(r["review_count"]),
        last_reviewed=parse_instant(r["last_reviewed"]),
    )

def _record_params(record: VocabularyRecord) -> tuple:
    return (
        record.id, record.original, record.translation, record.context,
        record.timestamp, record.video_id, format_instant(record.date_added),
        record.review_count, format_instant(record.last_reviewed),
    )

_UPSERT = f"""INSERT INTO vocabulary ({_COLUMNS})
              VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
              ON CONFLICT(id) DO UPDATE SET
                  original=excluded.original, translation=excluded.translation,
                  context=excluded.context, timestamp=excluded.timestamp,
                  video_id=excluded.video_id, date_added=excluded.date_added,
                  review_count=excluded.review_count, last_reviewed=excluded.last_reviewed"""


class VocabRepo:
    """Item store for vocabulary records, keyed by record id."""

    def __init__(self, db_path: Optional[Path] = None):
        self.db_path = db_path

    def list_all(self) -> List[VocabularyRecord]:
        with get_conn(self.db_path) as conn:
            rows = conn.execute(f"SELECT {_COLUMNS} FROM vocabulary ORDER BY date_added ASC, id ASC").fetchall()
        return [_row_to_record(r) for r in rows]

    def get(self, record_id: str) -> Optional[VocabularyRecord]:
        with get_conn(self.db_path) as conn:
            r = conn.execute(f"SELECT {_COLUMNS} FROM vocabulary WHERE id = ?", (record_id,)).fetchone()
        if not r:
            return None
        return _row_to_record(r)

    def find_by_original_text(self, text: str) -> Optional[VocabularyRecord]:
        with get_conn(self.db_path) as conn:
            r = conn.execute(
                f"""SELECT {_COLUMNS} FROM vocabulary
                     WHERE py_lower(original) = ?
                     ORDER BY date_added ASC LIMIT 1""",
                (text.lower(),),
            ).fetchone()
        if not r:
            return None
        return _row_to_record(r)

    def put(self, record: VocabularyRecord) -> VocabularyRecord:
        with get_conn(self.db_path) as conn:
            conn.execute(_UPSERT, _record_params(record))
        return record

    def put_many(self, records: Iterable[VocabularyRecord]) -> int:
        params = [_record_params(r) for r in records]
        with get_conn(self.db_path) as conn:
            conn.executemany(_UPSERT, params)
        return len(params)

    def delete(self, record_id: str) -> None:
        with get_conn(self.db_path) as conn:
            conn.execute("DELETE FROM vocabulary WHERE id = ?", (record_id,))

    def delete_all(self) -> None:
        with get_conn(self.db_path) as conn:
            conn.execute("DELETE FROM vocabulary")
