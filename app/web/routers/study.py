from __future__ import annotations
from pathlib import Path
from typing import Optional
from urllib.parse import urlencode

from fastapi import APIRouter, Depends, Form, Request
from fastapi.responses import HTMLResponse, RedirectResponse
from fastapi.templating import Jinja2Templates

from app.service.scheduling import ReviewQuality
from app.service.vocab_service import VocabError, VocabService
from app.web.dependencies import get_now, get_vocab_service

router = APIRouter()
templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _split_ids(ids: str | None) -> list[str] | None:
    if ids is None:
        return None
    return [i for i in ids.split(",") if i]


def _study_url(ids: list[str], pos: int) -> str:
    return "/study?" + urlencode({"ids": ",".join(ids), "pos": pos})


@router.get("/study", response_class=HTMLResponse)
def study_page(request: Request, ids: str | None = None, pos: int = 0,
               service: VocabService = Depends(get_vocab_service), now=Depends(get_now)):
    """Flashcard page.

    The queue order is fixed when the session starts and carried in the URL,
    so answering a card never reshuffles the rest of the session.
    """
    session = service.study_session(now, _split_ids(ids), pos)
    queue_ids = [item.record.id for item in session.queue.study_items]
    return templates.TemplateResponse(
        request,
        "study.html",
        {
            "session": session,
            "queue": session.queue,
            "current": session.current,
            "queue_ids": ",".join(queue_ids),
            "qualities": list(ReviewQuality),
            "error": None,
        },
    )


@router.post("/study/answer")
def answer_card(request: Request, ids: str = Form(""), pos: int = Form(0), quality: int = Form(...),
                card_id: Optional[str] = Form(None), review_count: Optional[int] = Form(None),
                service: VocabService = Depends(get_vocab_service), now=Depends(get_now)):
    queue_ids = _split_ids(ids) or []
    session = service.study_session(now, queue_ids, pos)
    try:
        service.answer(session, now, quality, card_id=card_id, expected_review_count=review_count)
    except VocabError as e:
        return templates.TemplateResponse(
            request,
            "study.html",
            {
                "session": session,
                "queue": session.queue,
                "current": session.current,
                "queue_ids": ids,
                "qualities": list(ReviewQuality),
                "error": str(e),
            },
            status_code=400,
        )
    return RedirectResponse(url=_study_url(queue_ids, session.position), status_code=303)


@router.post("/study/restart")
def restart(ids: str = Form("")):
    """Study the same cards again from the top."""
    return RedirectResponse(url=_study_url(_split_ids(ids) or [], 0), status_code=303)
