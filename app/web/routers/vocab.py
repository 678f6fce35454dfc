from __future__ import annotations
import json
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import Response
from pydantic import BaseModel, Field

from app.web.dependencies import get_now, get_vocab_service
from app.service.vocab_service import VocabError, VocabNotFound, VocabService

router = APIRouter(prefix="/api/vocabulary")


class SaveWordIn(BaseModel):
    original: str
    translation: str
    context: str = ""
    timestamp: float = Field(default=0, ge=0, allow_inf_nan=False)
    videoId: str = ""


class UpdateWordIn(BaseModel):
    translation: Optional[str] = None
    context: Optional[str] = None


class ReviewIn(BaseModel):
    id: str
    reviewCount: Optional[int] = Field(default=None, ge=0)
    quality: Optional[int] = None


def _fail(e: Exception) -> HTTPException:
    if isinstance(e, VocabNotFound):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("")
def list_words(q: Optional[str] = None, sort: str = "date-desc", service: VocabService = Depends(get_vocab_service)):
    try:
        records = service.list_words(search=q, sort=sort)
    except VocabError as e:
        raise _fail(e)
    return [r.to_dict() for r in records]


@router.post("", status_code=201)
def save_word(body: SaveWordIn, service: VocabService = Depends(get_vocab_service), now=Depends(get_now)):
    """Save a clicked word; saving a known word again counts as a review."""
    try:
        record = service.save_word(body.original, body.translation, now, context=body.context,
                                   timestamp=body.timestamp, video_id=body.videoId)
    except VocabError as e:
        raise _fail(e)
    return record.to_dict()


@router.delete("", status_code=204)
def clear_words(service: VocabService = Depends(get_vocab_service)):
    service.delete_all()
    return Response(status_code=204)


@router.get("/export")
def export_words(service: VocabService = Depends(get_vocab_service)):
    """Export the whole collection as a JSON file."""
    data = json.dumps(service.export_words(), ensure_ascii=False, indent=2).encode("utf-8")
    return Response(
        content=data,
        media_type="application/json",
        headers={"Content-Disposition": 'attachment; filename="vocabulary.json"'},
    )


@router.post("/import")
async def import_words(json_file: UploadFile = File(...), service: VocabService = Depends(get_vocab_service)):
    raw = await json_file.read()
    try:
        items = json.loads(raw.decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Invalid JSON: {e}")
    try:
        count = service.import_words(items)
    except VocabError as e:
        raise _fail(e)
    return {"imported": count}


@router.get("/review")
def study_items(service: VocabService = Depends(get_vocab_service), now=Depends(get_now)):
    """Today's study queue plus collection stats."""
    return service.study_queue(now).to_dict()


@router.post("/review")
def review_word(body: ReviewIn, service: VocabService = Depends(get_vocab_service), now=Depends(get_now)):
    try:
        record = service.record_review(body.id, now, review_count=body.reviewCount, quality=body.quality)
    except (VocabError, VocabNotFound) as e:
        raise _fail(e)
    return record.to_dict()


@router.get("/{record_id}")
def get_word(record_id: str, service: VocabService = Depends(get_vocab_service)):
    try:
        return service.get_word(record_id).to_dict()
    except VocabNotFound as e:
        raise _fail(e)


@router.patch("/{record_id}")
def update_word(record_id: str, body: UpdateWordIn, service: VocabService = Depends(get_vocab_service)):
    try:
        record = service.update_word(record_id, translation=body.translation, context=body.context)
    except (VocabError, VocabNotFound) as e:
        raise _fail(e)
    return record.to_dict()


@router.delete("/{record_id}", status_code=204)
def delete_word(record_id: str, service: VocabService = Depends(get_vocab_service)):
    try:
        service.delete_word(record_id)
    except VocabNotFound as e:
        raise _fail(e)
    return Response(status_code=204)
