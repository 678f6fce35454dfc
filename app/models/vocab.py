from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Optional


def parse_instant(value: Any) -> Optional[datetime]:
    """Parse an ISO-8601 string into an aware datetime (naive values are UTC)."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        dt = value
    else:
        text = str(value).strip()
        # JavaScript's toISOString() ends in "Z"
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        dt = datetime.fromisoformat(text)
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def format_instant(value: Optional[datetime]) -> Optional[str]:
    if value is None:
        return None
    return value.isoformat()


@dataclass(frozen=True)
class VocabularyRecord:
    """One saved vocabulary entry.

    Records are immutable; scheduling updates return a new copy.
    `review_count == 0` exactly when `last_reviewed` is None.
    """
    id: str
    original: str
    translation: str
    context: str = ""
    timestamp: float = 0.0
    video_id: str = ""
    date_added: Optional[datetime] = None
    review_count: int = 0
    last_reviewed: Optional[datetime] = None

    def to_dict(self) -> dict:
        data = {
            "id": self.id,
            "original": self.original,
            "translation": self.translation,
            "context": self.context,
            "timestamp": self.timestamp,
            "videoId": self.video_id,
            "dateAdded": format_instant(self.date_added),
            "reviewCount": self.review_count,
        }
        if self.last_reviewed is not None:
            data["lastReviewed"] = format_instant(self.last_reviewed)
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "VocabularyRecord":
        return cls(
            id=str(data["id"]),
            original=str(data["original"]),
            translation=str(data["translation"]),
            context=str(data.get("context") or ""),
            timestamp=float(data.get("timestamp") or 0),
            video_id=str(data.get("videoId") or ""),
            date_added=parse_instant(data.get("dateAdded")),
            review_count=int(data.get("reviewCount") or 0),
            last_reviewed=parse_instant(data.get("lastReviewed")),
        )


@dataclass(frozen=True)
class DueInfo:
    due_date: Optional[datetime]
    is_due: bool


@dataclass(frozen=True)
class StudyItem:
    """A queued record together with the due info it was ranked by."""
    record: VocabularyRecord
    due: DueInfo

    def to_dict(self) -> dict:
        data = self.record.to_dict()
        data["dueDate"] = format_instant(self.due.due_date)
        data["isDue"] = self.due.is_due
        return data


@dataclass(frozen=True)
class StudyQueue:
    total_items: int = 0
    due_items: int = 0
    mastered_items: int = 0
    study_items: list[StudyItem] = field(default_factory=list)

    @property
    def records(self) -> list[VocabularyRecord]:
        return [item.record for item in self.study_items]

    def to_dict(self) -> dict:
        return {
            "totalItems": self.total_items,
            "dueItems": self.due_items,
            "masteredItems": self.mastered_items,
            "studyItems": [item.to_dict() for item in self.study_items],
        }
