from __future__ import annotations
from datetime import datetime, timedelta
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Response
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..schemas import Difficulty, Flashcard
from .auth import User, get_current_user


router = APIRouter(prefix="/flashcards", tags=["flashcards"])


# Fixed offsets, not an adaptive scheduler
REVIEW_INTERVAL_DAYS: Dict[str, int] = {"easy": 7, "medium": 3, "hard": 1}


class CreateFlashcardRequest(BaseModel):
    front: str
    back: str
    note_id: str = ""
    topic: str = ""
    difficulty: Difficulty = "medium"


class ReviewRequest(BaseModel):
    difficulty: Difficulty


class ReviewResponse(BaseModel):
    flashcard: Flashcard
    days_until_review: int


class DifficultyBucket(BaseModel):
    count: int
    percent: float


class FlashcardSummary(BaseModel):
    topic: Optional[str] = None
    total: int
    due: int
    difficulty: Dict[str, DifficultyBucket]


def schedule_review(card: Flashcard, difficulty: str, now: Optional[datetime] = None) -> Flashcard:
    now = now or datetime.utcnow()
    days = REVIEW_INTERVAL_DAYS[difficulty]
    return card.model_copy(
        update={
            "difficulty": difficulty,
            "last_reviewed": now,
            "next_review": now + timedelta(days=days),
            "repetitions": card.repetitions + 1,
        }
    )


def is_due(card: Flashcard, now: Optional[datetime] = None) -> bool:
    if card.next_review is None:
        return True
    return card.next_review <= (now or datetime.utcnow())


def summarize(cards: List[Flashcard], now: Optional[datetime] = None) -> Dict[str, object]:
    total = len(cards)
    buckets: Dict[str, DifficultyBucket] = {}
    for level in REVIEW_INTERVAL_DAYS:
        count = sum(1 for c in cards if c.difficulty == level)
        buckets[level] = DifficultyBucket(count=count, percent=round(count / total * 100, 1) if total else 0.0)
    return {"total": total, "due": sum(1 for c in cards if is_due(c, now)), "difficulty": buckets}


def _topic_cards(db: Session, username: str, topic: Optional[str]) -> List[Flashcard]:
    cards = store.load_flashcards(db, username)
    if topic:
        cards = [c for c in cards if c.topic == topic]
    return cards


@router.get("", response_model=List[Flashcard])
def list_flashcards(
    topic: Optional[str] = None,
    view: Literal["all", "due", "difficult"] = "all",
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    cards = _topic_cards(db, user.username, topic)
    if view == "due":
        now = datetime.utcnow()
        cards = [c for c in cards if is_due(c, now)]
    elif view == "difficult":
        cards = [c for c in cards if c.difficulty == "hard"]
    return cards


@router.get("/summary", response_model=FlashcardSummary)
def flashcard_summary(
    topic: Optional[str] = None,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    cards = _topic_cards(db, user.username, topic)
    return FlashcardSummary(topic=topic, **summarize(cards))


@router.post("", response_model=Flashcard, status_code=201)
def create_flashcard(req: CreateFlashcardRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    front = req.front.strip()
    back = req.back.strip()
    if not front or not back:
        raise HTTPException(status_code=400, detail="front and back are required")
    card = Flashcard(
        id=store.new_id("card"),
        front=front,
        back=back,
        note_id=req.note_id,
        topic=req.topic.strip(),
        difficulty=req.difficulty,
        repetitions=0,
    )
    return store.save_flashcard(db, user.username, card)


@router.post("/{card_id}/review", response_model=ReviewResponse)
def review_flashcard(
    card_id: str,
    req: ReviewRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    card = store.get_flashcard(db, user.username, card_id)
    if card is None:
        raise HTTPException(status_code=404, detail="flashcard not found")
    updated = schedule_review(card, req.difficulty)
    store.save_flashcard(db, user.username, updated)
    return ReviewResponse(flashcard=updated, days_until_review=REVIEW_INTERVAL_DAYS[req.difficulty])


@router.delete("/{card_id}", status_code=204)
def delete_flashcard(card_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not store.delete_flashcard(db, user.username, card_id):
        raise HTTPException(status_code=404, detail="flashcard not found")
    return Response(status_code=204)
