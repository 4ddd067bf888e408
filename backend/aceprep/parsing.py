"""Best-effort decoding of model output.

The model is asked for JSON but often wraps it in markdown fences or adds
chatter around it. Everything here degrades to an empty/default value instead
of raising; callers decide whether an empty result is an error.
"""
from __future__ import annotations
import json
import logging
import re
from typing import Any, Dict, List, Optional, Tuple

from .schemas import EssayGrading, QuizAnswer, QuizQuestion

logger = logging.getLogger(__name__)

_FENCE_RE = re.compile(r"```(?:json)?\n?", re.IGNORECASE)
_BULLET_RE = re.compile(r"^\s*(?:[-*•]\s*|\d+[.)]\s+)")


def response_text(raw: Any) -> str:
	try:
		text = raw["candidates"][0]["content"]["parts"][0]["text"]
	except (KeyError, IndexError, TypeError):
		return ""
	return text if isinstance(text, str) else ""


def strip_code_fences(text: str) -> str:
	return _FENCE_RE.sub("", text or "").strip()


def parse_json(text: str, default: Any = None) -> Any:
	cleaned = strip_code_fences(text)
	if not cleaned:
		return default
	try:
		return json.loads(cleaned)
	except ValueError:
		pass
	# Fall back to the outermost array/object embedded in surrounding prose
	starts = [i for i in (cleaned.find("["), cleaned.find("{")) if i != -1]
	if starts:
		first = min(starts)
		closer = "]" if cleaned[first] == "[" else "}"
		last = cleaned.rfind(closer)
		if last > first:
			try:
				return json.loads(cleaned[first : last + 1])
			except ValueError:
				pass
	logger.info("Model output was not valid JSON; using default")
	return default


def _as_str(value: Any) -> str:
	return str(value).strip() if value is not None else ""


def parse_questions(text: str) -> List[QuizQuestion]:
	data = parse_json(text, [])
	if isinstance(data, dict) and isinstance(data.get("questions"), list):
		data = data["questions"]
	if not isinstance(data, list):
		return []
	questions: List[QuizQuestion] = []
	for i, item in enumerate(data):
		if not isinstance(item, dict):
			continue
		q_text = _as_str(item.get("text") or item.get("question"))
		raw_answers = item.get("answers")
		if not q_text or not isinstance(raw_answers, list):
			continue
		q_id = _as_str(item.get("id")) or f"q{i + 1}"
		answers: List[QuizAnswer] = []
		for j, a in enumerate(raw_answers):
			if not isinstance(a, dict) or not _as_str(a.get("text")):
				continue
			answers.append(
				QuizAnswer(
					id=_as_str(a.get("id")) or f"{q_id}-a{j + 1}",
					text=_as_str(a.get("text")),
					is_correct=bool(a.get("isCorrect", a.get("is_correct", False))),
				)
			)
		if len(answers) < 2:
			continue
		questions.append(
			QuizQuestion(id=q_id, text=q_text, answers=answers, explanation=_as_str(item.get("explanation")))
		)
	return questions


def parse_key_points(text: str) -> List[str]:
	data = parse_json(text, None)
	if isinstance(data, list):
		return [p for p in (_as_str(v) for v in data) if p]
	points = []
	for line in strip_code_fences(text).splitlines():
		point = _BULLET_RE.sub("", line).strip()
		if point:
			points.append(point)
	return points


def parse_flashcard_pairs(text: str) -> List[Tuple[str, str]]:
	data = parse_json(text, [])
	if isinstance(data, dict) and isinstance(data.get("flashcards"), list):
		data = data["flashcards"]
	if not isinstance(data, list):
		return []
	pairs = []
	for item in data:
		if not isinstance(item, dict):
			continue
		front = _as_str(item.get("front"))
		back = _as_str(item.get("back"))
		if front and back:
			pairs.append((front, back))
	return pairs


def parse_video_notes(text: str) -> Optional[Dict[str, Any]]:
	data = parse_json(text, None)
	if not isinstance(data, dict):
		return None
	key_points = data.get("keyPoints") or data.get("key_points") or []
	return {
		"title": _as_str(data.get("title")),
		"summary": _as_str(data.get("summary") or data.get("content")),
		"key_points": [p for p in (_as_str(v) for v in key_points) if p] if isinstance(key_points, list) else [],
	}


def _as_number(value: Any) -> Optional[float]:
	if isinstance(value, bool):
		return None
	if isinstance(value, (int, float)):
		return float(value)
	if isinstance(value, str):
		try:
			return float(value.strip())
		except ValueError:
			return None
	return None


def parse_essay_grading(text: str) -> Optional[EssayGrading]:
	data = parse_json(text, None)
	if not isinstance(data, dict):
		return None
	score = _as_number(data.get("overallScore"))
	if score is None:
		score = _as_number(data.get("score"))
	if score is None:
		return None
	rubric: Dict[str, float] = {}
	raw_rubric = data.get("rubricScores")
	if isinstance(raw_rubric, dict):
		for key, value in raw_rubric.items():
			number = _as_number(value)
			if number is not None:
				rubric[str(key)] = number
	suggestions = data.get("suggestions")
	key_points = data.get("keyPoints")
	return EssayGrading(
		score=score,
		letter_grade=_as_str(data.get("letterGrade")) or None,
		rubric_scores=rubric or None,
		key_points=[_as_str(v) for v in key_points if _as_str(v)] if isinstance(key_points, list) else [],
		suggestions=[_as_str(v) for v in suggestions if _as_str(v)] if isinstance(suggestions, list) else [],
		feedback=_as_str(data.get("feedback")),
	)
