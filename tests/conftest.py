from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from app.data.vocab_repo import VocabRepo
from app.db.database import init_db
from app.main import app
from app.models.vocab import VocabularyRecord
from app.service.vocab_service import VocabService
from app.web.dependencies import get_now, get_vocab_service

DAY0 = datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)


def days(n: float) -> timedelta:
    return timedelta(days=n)


def make_record(id: str, reviews: int = 0, last_reviewed: datetime | None = None,
                added: datetime | None = DAY0, original: str | None = None) -> VocabularyRecord:
    return VocabularyRecord(
        id=id,
        original=original or f"λέξη-{id}",
        translation=f"word-{id}",
        date_added=added,
        review_count=reviews,
        last_reviewed=last_reviewed,
    )


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def repo(tmp_path):
    db_path = tmp_path / "vocab.db"
    init_db(db_path)
    return VocabRepo(db_path)


@pytest.fixture
def service(repo):
    return VocabService(repo)


@pytest.fixture
def clock():
    return Clock(DAY0)


@pytest.fixture
def client(service, clock):
    app.dependency_overrides[get_vocab_service] = lambda: service
    app.dependency_overrides[get_now] = clock
    yield TestClient(app)
    app.dependency_overrides.clear()
