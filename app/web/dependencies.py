from __future__ import annotations
from datetime import datetime, timezone

from app.data.vocab_repo import VocabRepo
from app.service.vocab_service import VocabService

vocab_service = VocabService(VocabRepo())

def get_vocab_service() -> VocabService:
    return vocab_service

def get_now() -> datetime:
    """The only place the web layer reads the clock."""
    return datetime.now(timezone.utc)
