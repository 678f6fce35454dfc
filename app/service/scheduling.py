from __future__ import annotations

import math
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum, IntEnum
from functools import cmp_to_key
from typing import Iterable, Optional

from app.models.vocab import DueInfo, StudyItem, StudyQueue, VocabularyRecord

# Days until the next review, indexed by how many reviews a record already has.
INTERVAL_LADDER: tuple[int, ...] = (1, 3, 7, 14, 30, 90, 180)
MASTERED_THRESHOLD = 5
DAILY_LIMIT_MIN = 5
DAILY_LIMIT_MAX = 20
DAILY_LIMIT_DIVISOR = 5


class ReviewQuality(IntEnum):
    """Answer buttons shown during study.

    Recorded for the learner's benefit only: every answer moves a record one
    step up the ladder.
    """
    AGAIN = 1
    HARD = 2
    GOOD = 3
    EASY = 4


class RecordState(str, Enum):
    NEW = "new"
    DUE = "due"
    SCHEDULED = "scheduled"


def interval_for(review_count: int) -> timedelta:
    index = min(max(review_count, 0), len(INTERVAL_LADDER) - 1)
    return timedelta(days=INTERVAL_LADDER[index])


def compute_due_info(record: VocabularyRecord, now: datetime) -> DueInfo:
    if record.last_reviewed is None:
        # never reviewed: due straight away, no due date
        return DueInfo(due_date=None, is_due=True)
    due_date = record.last_reviewed + interval_for(record.review_count)
    return DueInfo(due_date=due_date, is_due=due_date <= now)


def record_state(record: VocabularyRecord, now: datetime) -> RecordState:
    if record.review_count == 0:
        return RecordState.NEW
    if compute_due_info(record, now).is_due:
        return RecordState.DUE
    return RecordState.SCHEDULED


def _cmp(x, y) -> int:
    return (x > y) - (x < y)


def rank_for_study(a: StudyItem, b: StudyItem) -> int:
    """Comparator for study order; each rule only breaks ties of the previous one.

    1. due before not due
    2. never reviewed before reviewed
    3. earlier due date first, when both have one
    4. earlier date added first, records without one last
    5. id, so the order is total
    """
    if a.due.is_due != b.due.is_due:
        return -1 if a.due.is_due else 1

    a_new, b_new = a.record.review_count == 0, b.record.review_count == 0
    if a_new != b_new:
        return -1 if a_new else 1

    if a.due.due_date is not None and b.due.due_date is not None:
        result = _cmp(a.due.due_date, b.due.due_date)
        if result:
            return result

    a_added, b_added = a.record.date_added, b.record.date_added
    if (a_added is None) != (b_added is None):
        return 1 if a_added is None else -1
    if a_added is not None and b_added is not None:
        result = _cmp(a_added, b_added)
        if result:
            return result

    return _cmp(a.record.id, b.record.id)


def daily_limit(total: int) -> int:
    limit = math.ceil(total / DAILY_LIMIT_DIVISOR)
    return min(DAILY_LIMIT_MAX, max(DAILY_LIMIT_MIN, limit))


def build_study_queue(records: Iterable[VocabularyRecord], now: datetime) -> StudyQueue:
    items = [StudyItem(record=r, due=compute_due_info(r, now)) for r in records]
    items.sort(key=cmp_to_key(rank_for_study))
    limit = min(daily_limit(len(items)), len(items))
    return StudyQueue(
        total_items=len(items),
        due_items=sum(1 for it in items if it.due.is_due),
        mastered_items=sum(1 for it in items if it.record.review_count >= MASTERED_THRESHOLD),
        study_items=items[:limit],
    )


def apply_review(record: VocabularyRecord, now: datetime, explicit_review_count: Optional[int] = None) -> VocabularyRecord:
    if explicit_review_count is None:
        review_count = record.review_count + 1
    else:
        review_count = explicit_review_count
    return replace(record, review_count=review_count, last_reviewed=now)


@dataclass
class StudySession:
    """Position in one study queue.

    The session never persists anything; `answer` hands the updated record
    back so the caller can write it to the item store.
    """
    queue: StudyQueue
    position: int = 0
    answers: list[ReviewQuality] = field(default_factory=list)

    @property
    def is_complete(self) -> bool:
        return self.position >= len(self.queue.study_items)

    @property
    def remaining(self) -> int:
        return max(len(self.queue.study_items) - self.position, 0)

    @property
    def current(self) -> Optional[StudyItem]:
        if self.is_complete:
            return None
        return self.queue.study_items[self.position]

    def answer(self, now: datetime, quality: ReviewQuality = ReviewQuality.GOOD) -> VocabularyRecord:
        item = self.current
        if item is None:
            raise IndexError("Study session is already complete.")
        updated = apply_review(item.record, now)
        self.answers.append(ReviewQuality(quality))
        self.position += 1
        return updated

    def restart(self) -> None:
        self.position = 0
        self.answers.clear()
