from __future__ import annotations
from fastapi import FastAPI

from app.db.database import init_db
from app.logging_config import configure_logging
from app.web.routers import study, vocab

app = FastAPI(title="Greek Vocabulary Study")

@app.on_event("startup")
def on_startup() -> None:
    configure_logging()
    init_db()

app.include_router(vocab.router)
app.include_router(study.router)
