from __future__ import annotations
import math
from datetime import datetime
from typing import Dict, List, Sequence, Union

from pydantic import BaseModel

from .schemas import EssayResult, QuizResult


RECENT_ACTIVITY_LIMIT = 5


class TopicStat(BaseModel):
	name: str
	quiz_score: int
	essay_score: float
	progress: int


class ActivityItem(BaseModel):
	type: str
	topic: str
	score: str
	date: datetime


class StatsSummary(BaseModel):
	quizzes_taken: int
	essays_submitted: int
	average_quiz_score: int
	average_essay_score: float
	topics: List[TopicStat]
	recent_activity: List[ActivityItem]


def round_half_up(value: float) -> int:
	return int(math.floor(value + 0.5))


def round_tenths_half_up(value: float) -> float:
	"""One decimal place, ties rounded up."""
	return math.floor(value * 10 + 0.5) / 10


def _mean(values: Sequence[Union[int, float]]) -> float:
	return sum(values) / len(values) if values else 0.0


def _format_essay_score(result: EssayResult) -> str:
	if result.letter_grade:
		return result.letter_grade
	return f"{result.score:g}/10"


def compute_stats(quiz_results: List[QuizResult], essay_results: List[EssayResult]) -> StatsSummary:
	by_topic: Dict[str, Dict[str, List[float]]] = {}
	for q in quiz_results:
		by_topic.setdefault(q.topic, {"quiz": [], "essay": []})["quiz"].append(q.score)
	for e in essay_results:
		by_topic.setdefault(e.topic, {"quiz": [], "essay": []})["essay"].append(e.score)

	topics = []
	for name, scores in by_topic.items():
		quiz_avg = round_half_up(_mean(scores["quiz"])) if scores["quiz"] else 0
		topics.append(
			TopicStat(
				name=name,
				quiz_score=quiz_avg,
				essay_score=round_tenths_half_up(_mean(scores["essay"])),
				progress=quiz_avg,
			)
		)

	activity = [
		ActivityItem(type="quiz", topic=q.topic, score=f"{q.score}%", date=q.date) for q in quiz_results
	] + [
		ActivityItem(type="essay", topic=e.topic, score=_format_essay_score(e), date=e.date) for e in essay_results
	]
	activity.sort(key=lambda a: a.date, reverse=True)

	return StatsSummary(
		quizzes_taken=len(quiz_results),
		essays_submitted=len(essay_results),
		average_quiz_score=round_half_up(_mean([q.score for q in quiz_results])),
		average_essay_score=round_tenths_half_up(_mean([e.score for e in essay_results])),
		topics=topics,
		recent_activity=activity[:RECENT_ACTIVITY_LIMIT],
	)
