from __future__ import annotations
from datetime import datetime
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, Field


Difficulty = Literal["easy", "medium", "hard"]
SourceType = Literal["manual", "video", "import"]


class Note(BaseModel):
	id: str
	title: str = ""
	content: str = ""
	topic: str = ""
	tags: List[str] = Field(default_factory=list)
	key_points: List[str] = Field(default_factory=list)
	created_at: datetime
	updated_at: datetime
	source_type: SourceType = "manual"
	source_url: Optional[str] = None


class Flashcard(BaseModel):
	id: str
	front: str
	back: str
	note_id: str = ""
	topic: str = ""
	difficulty: Difficulty = "medium"
	last_reviewed: Optional[datetime] = None
	next_review: Optional[datetime] = None
	repetitions: int = 0


class QuizResult(BaseModel):
	id: str
	topic: str
	score: int
	date: datetime
	questions_count: int


class EssayResult(BaseModel):
	id: str
	topic: str
	score: float
	letter_grade: Optional[str] = None
	date: datetime


class StudyClass(BaseModel):
	id: str
	name: str
	topics: List[str] = Field(default_factory=list)


class QuizAnswer(BaseModel):
	id: str
	text: str
	is_correct: bool = False


class QuizQuestion(BaseModel):
	id: str
	text: str
	answers: List[QuizAnswer]
	explanation: str = ""


class EssayGrading(BaseModel):
	score: float
	letter_grade: Optional[str] = None
	rubric_scores: Optional[Dict[str, float]] = None
	key_points: List[str] = Field(default_factory=list)
	suggestions: List[str] = Field(default_factory=list)
	feedback: str = ""
