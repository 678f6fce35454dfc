from __future__ import annotations

import logging
import math
import uuid
from dataclasses import replace
from datetime import datetime
from typing import List, Optional

from app.config import settings
from app.data.vocab_repo import VocabRepo
from app.models.vocab import StudyItem, StudyQueue, VocabularyRecord
from app.service.scheduling import (
    ReviewQuality,
    StudySession,
    apply_review,
    build_study_queue,
    compute_due_info,
)

logger = logging.getLogger(__name__)


class VocabError(ValueError):
    pass


class VocabNotFound(LookupError):
    pass


def new_record_id() -> str:
    return uuid.uuid4().hex


# sort key -> (record attribute extractor, descending)
SORT_ORDERS = {
    "date-desc": (lambda r: r.date_added, True),
    "date-asc": (lambda r: r.date_added, False),
    "alpha-asc": (lambda r: r.original.casefold(), False),
    "alpha-desc": (lambda r: r.original.casefold(), True),
    "review-count-asc": (lambda r: r.review_count, False),
    "review-count-desc": (lambda r: r.review_count, True),
    "last-reviewed-asc": (lambda r: r.last_reviewed, False),
    "last-reviewed-desc": (lambda r: r.last_reviewed, True),
}


def sort_records(records: List[VocabularyRecord], sort: str) -> List[VocabularyRecord]:
    """Order records for the vocabulary list; records missing the key go last."""
    key, descending = SORT_ORDERS[sort]
    present = [r for r in records if key(r) is not None]
    missing = [r for r in records if key(r) is None]
    return sorted(present, key=key, reverse=descending) + missing


def _import_problem(record: VocabularyRecord) -> Optional[str]:
    """Why an imported record cannot be stored, or None when it is consistent."""
    if not math.isfinite(record.timestamp) or record.timestamp < 0:
        return "timestamp must be a non-negative number"
    if record.review_count < 0:
        return "negative review count"
    if (record.review_count == 0) != (record.last_reviewed is None):
        return "review count and last reviewed disagree"
    if record.date_added and record.last_reviewed and record.date_added > record.last_reviewed:
        return "reviewed before it was added"
    return None


class VocabService:
    """Service layer for the vocabulary collection.

    Validation lives here, SQL lives in VocabRepo and every scheduling
    decision is delegated to app.service.scheduling. Callers pass `now`
    explicitly so the service never reads the clock itself.
    """

    def __init__(self, repo: VocabRepo):
        self.repo = repo

    def _clean_text(self, value: str, field_name: str) -> str:
        value = (value or "").strip()
        if not value:
            raise VocabError(f"{field_name} cannot be empty.")
        if len(value) > settings.MAX_TEXT_LENGTH:
            raise VocabError(f"{field_name} too long (max {settings.MAX_TEXT_LENGTH}).")
        return value

    def _clean_context(self, context: Optional[str]) -> str:
        context = (context or "").strip()
        if len(context) > settings.MAX_CONTEXT_LENGTH:
            raise VocabError(f"Context too long (max {settings.MAX_CONTEXT_LENGTH}).")
        return context

    def _clean_timestamp(self, timestamp: Optional[float]) -> float:
        timestamp = float(timestamp or 0)
        if not math.isfinite(timestamp) or timestamp < 0:
            raise VocabError("Timestamp must be a non-negative number.")
        return timestamp

    def _require(self, record_id: str) -> VocabularyRecord:
        record = self.repo.get(record_id)
        if record is None:
            raise VocabNotFound(f"Vocabulary item {record_id!r} not found.")
        return record

    # -------------------------
    # Collection
    # -------------------------
    def save_word(self, original: str, translation: str, now: datetime, context: str = "",
                  timestamp: float = 0, video_id: str = "") -> VocabularyRecord:
        """Save a translated word.

        Saving a word that is already collected refreshes its translation and
        counts as a review of it.
        """
        original = self._clean_text(original, "Original text")
        translation = self._clean_text(translation, "Translation")
        context = self._clean_context(context)
        timestamp = self._clean_timestamp(timestamp)

        existing = self.repo.find_by_original_text(original)
        if existing:
            refreshed = replace(
                existing,
                translation=translation,
                context=context or existing.context,
                timestamp=timestamp or existing.timestamp,
                video_id=video_id or existing.video_id,
            )
            record = self.repo.put(apply_review(refreshed, now))
            logger.info("Re-saved %r as implicit review (review_count=%d)", original, record.review_count)
            return record

        record = VocabularyRecord(
            id=new_record_id(),
            original=original,
            translation=translation,
            context=context,
            timestamp=timestamp,
            video_id=video_id or "",
            date_added=now,
        )
        self.repo.put(record)
        logger.info("Saved new word %r (id=%s)", original, record.id)
        return record

    def list_words(self, search: Optional[str] = None, sort: str = "date-desc") -> List[VocabularyRecord]:
        """List the collection, optionally filtered by a case-insensitive search
        over original and translation text."""
        if sort not in SORT_ORDERS:
            raise VocabError(f"Unknown sort order {sort!r}.")
        records = self.repo.list_all()
        needle = (search or "").strip().lower()
        if needle:
            records = [r for r in records
                       if needle in r.original.lower() or needle in r.translation.lower()]
        return sort_records(records, sort)

    def get_word(self, record_id: str) -> VocabularyRecord:
        return self._require(record_id)

    def update_word(self, record_id: str, translation: Optional[str] = None,
                    context: Optional[str] = None) -> VocabularyRecord:
        record = self._require(record_id)
        if translation is not None:
            record = replace(record, translation=self._clean_text(translation, "Translation"))
        if context is not None:
            record = replace(record, context=self._clean_context(context))
        return self.repo.put(record)

    def delete_word(self, record_id: str) -> None:
        self._require(record_id)
        self.repo.delete(record_id)
        logger.info("Deleted vocabulary item %s", record_id)

    def delete_all(self) -> None:
        self.repo.delete_all()
        logger.info("Cleared vocabulary collection")

    # -------------------------
    # Study
    # -------------------------
    def study_queue(self, now: datetime) -> StudyQueue:
        return build_study_queue(self.repo.list_all(), now)

    def study_session(self, now: datetime, queue_ids: Optional[List[str]] = None,
                      position: int = 0) -> StudySession:
        """Start a session, or resume one whose queue order was fixed earlier.

        Items deleted since the queue was built are dropped; stats are always
        taken over the current collection.
        """
        queue = self.study_queue(now)
        if queue_ids is not None:
            items = []
            for record_id in queue_ids:
                record = self.repo.get(record_id)
                if record is not None:
                    items.append(StudyItem(record=record, due=compute_due_info(record, now)))
            queue = replace(queue, study_items=items)
        return StudySession(queue=queue, position=max(position, 0))

    def answer(self, session: StudySession, now: datetime, quality: int, card_id: Optional[str] = None,
               expected_review_count: Optional[int] = None) -> VocabularyRecord:
        """Answer the session's current card.

        `card_id` and `expected_review_count` describe the card as it was shown;
        a stale or repeated submission is rejected instead of reviewing twice.
        """
        quality = self._clean_quality(quality)
        current = session.current
        if current is None:
            raise VocabError("Study session is already complete.")
        if card_id is not None and current.record.id != card_id:
            raise VocabError("This card is no longer the current one in the session.")
        if expected_review_count is not None and current.record.review_count != expected_review_count:
            raise VocabError("This card has already been answered.")
        updated = self.repo.put(session.answer(now, quality))
        logger.info("Answered %s with %s (review_count=%d)", updated.id, quality.name, updated.review_count)
        return updated

    def _clean_quality(self, quality: int) -> ReviewQuality:
        try:
            return ReviewQuality(quality)
        except ValueError as e:
            raise VocabError(f"Unknown review quality {quality!r}.") from e

    def record_review(self, record_id: str, now: datetime, review_count: Optional[int] = None,
                      quality: Optional[int] = None) -> VocabularyRecord:
        if review_count is not None and review_count < 0:
            raise VocabError("Review count cannot be negative.")
        if quality is not None:
            quality = self._clean_quality(quality)
        record = self._require(record_id)
        updated = self.repo.put(apply_review(record, now, review_count))
        logger.info("Reviewed %s (quality=%s, review_count=%d)",
                    record_id, quality.name if quality is not None else "-", updated.review_count)
        return updated

    # -------------------------
    # Import / export
    # -------------------------
    def export_words(self) -> list[dict]:
        return [r.to_dict() for r in self.repo.list_all()]

    def import_words(self, items: list) -> int:
        """Import serialized records; existing ids are overwritten.

        Rows without original text or translation are skipped.
        """
        if not isinstance(items, list):
            raise VocabError("Import data must be a list.")
        records = []
        for index, it in enumerate(items):
            if not isinstance(it, dict):
                logger.warning("Skipping import row %d: not an object", index)
                continue
            original = str(it.get("original") or "").strip()
            translation = str(it.get("translation") or "").strip()
            if not original or not translation:
                logger.warning("Skipping import row %d: missing original or translation", index)
                continue
            data = dict(it, original=original, translation=translation, id=it.get("id") or new_record_id())
            try:
                record = VocabularyRecord.from_dict(data)
            except (TypeError, ValueError) as e:
                logger.warning("Skipping import row %d: %s", index, e)
                continue
            problem = _import_problem(record)
            if problem:
                logger.warning("Skipping import row %d: %s", index, problem)
                continue
            records.append(record)
        count = self.repo.put_many(records)
        logger.info("Imported %d of %d vocabulary items", count, len(items))
        return count
