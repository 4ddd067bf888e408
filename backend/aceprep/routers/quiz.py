from __future__ import annotations
import logging
from datetime import datetime
from typing import Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..gemini_client import GeminiClient, GeminiError, get_gemini_client
from ..parsing import parse_questions
from ..prompts import questions_prompt, topic_questions_prompt
from ..schemas import Note, QuizQuestion, QuizResult
from ..settings import settings
from ..stats import round_half_up
from .auth import User, get_current_user, require_ai_quota


router = APIRouter(prefix="/quiz", tags=["quiz"])

logger = logging.getLogger(__name__)


QUIZ_TOPICS: List[str] = [
    "AP Calculus AB",
    "AP Calculus BC",
    "AP Statistics",
    "AP Biology",
    "AP Chemistry",
    "AP Physics 1",
    "AP Physics 2",
    "AP Environmental Science",
    "AP U.S. History",
    "AP World History",
    "AP European History",
    "AP English Language",
    "AP English Literature",
    "AP Psychology",
    "SAT Math",
    "SAT Reading",
    "SAT Writing",
]


class GenerateQuizRequest(BaseModel):
    source: Literal["topic", "notes"] = "topic"
    topic: Optional[str] = None
    note_ids: List[str] = Field(default_factory=list)
    count: Optional[int] = Field(default=None, ge=1, le=20)


class GenerateQuizResponse(BaseModel):
    topic: str
    source: Literal["topic", "notes"]
    fallback: bool = False
    questions: List[QuizQuestion]


class SubmitQuizRequest(BaseModel):
    topic: str
    questions: List[QuizQuestion]
    # question id -> chosen answer id
    answers: Dict[str, str] = Field(default_factory=dict)


class SubmitQuizResponse(BaseModel):
    result: QuizResult
    correct: int


def score_quiz(questions: List[QuizQuestion], answers: Dict[str, str]) -> int:
    correct = 0
    for q in questions:
        chosen = answers.get(q.id)
        if chosen is not None and any(a.id == chosen and a.is_correct for a in q.answers):
            correct += 1
    return correct


def _select_notes(db: Session, username: str, note_ids: List[str], topic: Optional[str]) -> List[Note]:
    notes = store.load_notes(db, username)
    if note_ids:
        wanted = set(note_ids)
        return [n for n in notes if n.id in wanted]
    if topic:
        return [n for n in notes if n.topic == topic]
    return []


async def _ask_for_questions(client: GeminiClient, prompt: str) -> List[QuizQuestion]:
    try:
        text = await client.generate(prompt)
    except GeminiError as e:
        logger.error("Question generation failed: %s", e)
        raise HTTPException(status_code=502, detail="Failed to generate questions.")
    questions = parse_questions(text)
    if not questions:
        logger.warning("AI returned no usable questions")
    return questions


@router.get("/topics", response_model=List[str])
def list_topics():
    return QUIZ_TOPICS


@router.post("/generate", response_model=GenerateQuizResponse)
async def generate_quiz(
    req: GenerateQuizRequest,
    user: User = Depends(require_ai_quota),
    db: Session = Depends(get_db),
    client: GeminiClient = Depends(get_gemini_client),
):
    count = req.count or settings.quiz_question_count
    topic = (req.topic or "").strip()
    if req.source == "notes":
        notes = _select_notes(db, user.username, req.note_ids, topic)
        notes = [n for n in notes if n.content.strip()]
        if notes:
            content = "\n".join(n.content for n in notes)
            questions = await _ask_for_questions(client, questions_prompt(content, count))
            return GenerateQuizResponse(topic=topic or notes[0].topic, source="notes", questions=questions)
        if not topic:
            raise HTTPException(status_code=400, detail="Please select at least one note to create a quiz.")
        questions = await _ask_for_questions(client, topic_questions_prompt(topic, count))
        return GenerateQuizResponse(topic=topic, source="topic", fallback=True, questions=questions)
    if not topic:
        raise HTTPException(status_code=400, detail="topic is required")
    questions = await _ask_for_questions(client, topic_questions_prompt(topic, count))
    return GenerateQuizResponse(topic=topic, source="topic", questions=questions)


@router.post("/results", response_model=SubmitQuizResponse, status_code=201)
def submit_quiz(req: SubmitQuizRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    topic = req.topic.strip()
    if not topic:
        raise HTTPException(status_code=400, detail="topic is required")
    if not req.questions:
        raise HTTPException(status_code=400, detail="quiz has no questions")
    correct = score_quiz(req.questions, req.answers)
    result = QuizResult(
        id=store.new_id("quiz"),
        topic=topic,
        score=round_half_up(correct / len(req.questions) * 100),
        date=datetime.utcnow(),
        questions_count=len(req.questions),
    )
    store.save_quiz_result(db, user.username, result)
    return SubmitQuizResponse(result=result, correct=correct)


@router.get("/results", response_model=List[QuizResult])
def list_quiz_results(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    results = store.load_quiz_results(db, user.username)
    results.sort(key=lambda r: r.date, reverse=True)
    return results
