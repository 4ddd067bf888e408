from __future__ import annotations
import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..gemini_client import GeminiClient, GeminiError, get_gemini_client, get_optional_gemini_client
from ..parsing import parse_flashcard_pairs, parse_key_points, parse_video_notes
from ..prompts import flashcards_prompt, keypoints_prompt, video_notes_prompt
from ..schemas import Flashcard, Note
from .auth import User, get_current_user, require_ai_quota


router = APIRouter(prefix="/notes", tags=["notes"])

logger = logging.getLogger(__name__)


class CreateNoteRequest(BaseModel):
    title: Optional[str] = None
    content: str = ""
    topic: str = ""
    tags: List[str] = Field(default_factory=list)


class UpdateNoteRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    topic: Optional[str] = None
    tags: Optional[List[str]] = None


class TagRequest(BaseModel):
    tag: str


class VideoNoteRequest(BaseModel):
    video_url: str
    topic: str
    transcript: Optional[str] = None


class GeneratedFlashcards(BaseModel):
    created: List[Flashcard]
    total: int


def _clean_tags(tags: List[str]) -> List[str]:
    seen: List[str] = []
    for tag in tags:
        t = tag.strip()
        if t and t not in seen:
            seen.append(t)
    return seen


def _get_or_404(db: Session, username: str, note_id: str) -> Note:
    note = store.get_note(db, username, note_id)
    if note is None:
        raise HTTPException(status_code=404, detail="note not found")
    return note


async def _extract_key_points(client: Optional[GeminiClient], content: str) -> List[str]:
    if client is None or not content.strip():
        return []
    try:
        text = await client.generate(keypoints_prompt(content), thinking_budget=0)
    except GeminiError as e:
        logger.warning("Key point extraction failed: %s", e)
        return []
    return parse_key_points(text)


@router.get("", response_model=List[Note])
def list_notes(
    topic: Optional[str] = None,
    tag: Optional[str] = None,
    q: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    notes = store.load_notes(db, user.username)
    if topic:
        notes = [n for n in notes if n.topic == topic]
    if tag:
        notes = [n for n in notes if tag in n.tags]
    if q:
        needle = q.lower()
        notes = [n for n in notes if needle in n.title.lower() or needle in n.content.lower()]
    notes.sort(key=lambda n: n.updated_at, reverse=True)
    return notes


@router.post("", response_model=Note, status_code=201)
def create_note(req: CreateNoteRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    topic = req.topic.strip()
    title = (req.title or "").strip() or (f"Notes on {topic}" if topic else "New Note")
    now = datetime.utcnow()
    note = Note(
        id=store.new_id("note"),
        title=title,
        content=req.content,
        topic=topic,
        tags=_clean_tags(req.tags),
        key_points=[],
        created_at=now,
        updated_at=now,
        source_type="manual",
    )
    return store.save_note(db, user.username, note)


@router.get("/{note_id}", response_model=Note)
def get_note(note_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return _get_or_404(db, user.username, note_id)


@router.put("/{note_id}", response_model=Note)
async def update_note(
    note_id: str,
    req: UpdateNoteRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    client: Optional[GeminiClient] = Depends(get_optional_gemini_client),
):
    existing = _get_or_404(db, user.username, note_id)
    content = req.content if req.content is not None else existing.content
    key_points = existing.key_points
    # Key points are only refreshed when the content moved or none exist yet
    if not key_points or content != existing.content:
        key_points = await _extract_key_points(client, content)
    updated = existing.model_copy(
        update={
            "title": req.title.strip() if req.title is not None else existing.title,
            "content": content,
            "topic": req.topic.strip() if req.topic is not None else existing.topic,
            "tags": _clean_tags(req.tags) if req.tags is not None else existing.tags,
            "key_points": key_points,
            "updated_at": datetime.utcnow(),
        }
    )
    return store.save_note(db, user.username, updated)


@router.delete("/{note_id}", status_code=204)
def delete_note(note_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not store.delete_note(db, user.username, note_id):
        raise HTTPException(status_code=404, detail="note not found")
    return Response(status_code=204)


@router.post("/{note_id}/tags", response_model=Note)
def add_tag(note_id: str, req: TagRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    note = _get_or_404(db, user.username, note_id)
    tag = req.tag.strip()
    if not tag:
        raise HTTPException(status_code=400, detail="tag is required")
    if tag not in note.tags:
        note = note.model_copy(update={"tags": note.tags + [tag], "updated_at": datetime.utcnow()})
        store.save_note(db, user.username, note)
    return note


@router.delete("/{note_id}/tags/{tag}", response_model=Note)
def remove_tag(note_id: str, tag: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    note = _get_or_404(db, user.username, note_id)
    if tag in note.tags:
        note = note.model_copy(update={"tags": [t for t in note.tags if t != tag], "updated_at": datetime.utcnow()})
        store.save_note(db, user.username, note)
    return note


@router.post("/{note_id}/flashcards", response_model=GeneratedFlashcards, status_code=201)
async def create_flashcards_from_note(
    note_id: str,
    user: User = Depends(require_ai_quota),
    db: Session = Depends(get_db),
    client: GeminiClient = Depends(get_gemini_client),
):
    note = _get_or_404(db, user.username, note_id)
    pairs = []
    if note.content.strip():
        try:
            text = await client.generate(flashcards_prompt(note.content), thinking_budget=0)
            pairs = parse_flashcard_pairs(text)
        except GeminiError as e:
            logger.warning("Flashcard generation failed for note %s: %s", note.id, e)
    cards = [
        Flashcard(
            id=store.new_id("card"),
            front=front,
            back=back,
            note_id=note.id,
            topic=note.topic,
            difficulty="medium",
            repetitions=0,
        )
        for front, back in pairs
    ]
    store.save_flashcards(db, user.username, cards)
    total = len(store.load_flashcards(db, user.username))
    return GeneratedFlashcards(created=cards, total=total)


@router.post("/video", response_model=Note, status_code=201)
async def create_video_note(
    req: VideoNoteRequest,
    user: User = Depends(require_ai_quota),
    db: Session = Depends(get_db),
    client: GeminiClient = Depends(get_gemini_client),
):
    topic = req.topic.strip()
    transcript = (req.transcript or "").strip() or topic
    if not transcript:
        raise HTTPException(status_code=400, detail="transcript or topic is required")
    try:
        text = await client.generate(video_notes_prompt(transcript))
    except GeminiError as e:
        logger.error("Video note generation failed: %s", e)
        raise HTTPException(status_code=502, detail="AI service error")
    parsed = parse_video_notes(text)
    if parsed is None:
        parsed = {"title": "", "summary": text.strip(), "key_points": []}
    now = datetime.utcnow()
    note = Note(
        id=store.new_id("note"),
        title=parsed["title"] or f"Video notes on {topic or 'video'}",
        content=parsed["summary"],
        topic=topic,
        tags=[],
        key_points=parsed["key_points"],
        created_at=now,
        updated_at=now,
        source_type="video",
        source_url=req.video_url,
    )
    return store.save_note(db, user.username, note)
