from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path

def _env_path(name: str, default: Path) -> Path:
    value = os.environ.get(name)
    return Path(value) if value else default

@dataclass(frozen=True)
class Settings:
    DB_PATH: Path = field(default_factory=lambda: _env_path("VOCAB_DB_PATH", Path(__file__).resolve().parent.parent / "vocab.db"))
    LOG_LEVEL: str = field(default_factory=lambda: os.environ.get("VOCAB_LOG_LEVEL", "INFO"))
    MAX_TEXT_LENGTH: int = 500
    MAX_CONTEXT_LENGTH: int = 2000

settings = Settings()
