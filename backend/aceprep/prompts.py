from __future__ import annotations
from typing import Optional


class UnknownTaskType(ValueError):
	pass


TASK_TYPES = ("questions", "topic-questions", "keypoints", "flashcards", "video-notes", "essay-grading")

DEFAULT_QUESTION_COUNT = 5

_QUESTION_FORMAT = (
	'The output should be a valid JSON array of objects, where each object has the following format: '
	'{ "id": "string", "text": "string", "answers": [{ "id": "string", "text": "string", "isCorrect": boolean }], '
	'"explanation": "string" }. Ensure only one answer is correct.'
)

_ESSAY_FORMAT = (
	'The output should be a valid JSON object with the format: { "overallScore": number, "letterGrade": "string", '
	'"rubricScores": { "contentAccuracy": number, "clarityOrganization": number, "depthAnalysis": number, '
	'"useOfEvidence": number, "writingStyleMechanics": number }, "keyPoints": ["string"], '
	'"feedback": "string", "suggestions": ["string"] }.'
)


def questions_prompt(content: str, count: int = DEFAULT_QUESTION_COUNT) -> str:
	return f"Generate {count} multiple choice questions on the notes provided. {_QUESTION_FORMAT} Notes: {content}"


def topic_questions_prompt(topic: str, count: int = DEFAULT_QUESTION_COUNT) -> str:
	return f'Generate {count} multiple choice questions on the topic of "{topic}". {_QUESTION_FORMAT}'


def keypoints_prompt(content: str) -> str:
	return (
		"Extract the key points from the following text as a list. "
		"Return ONLY a JSON array of short strings.\n"
		f"{content}"
	)


def flashcards_prompt(content: str) -> str:
	return (
		"Generate flashcards (front: question, back: answer) from these notes. "
		'Return ONLY a JSON array of objects with keys "front" and "back".\n'
		f"{content}"
	)


def video_notes_prompt(transcript: str) -> str:
	return (
		"Summarize the following video transcript and extract key points. "
		'Return ONLY a JSON object with keys "title" (string), "summary" (string) and "keyPoints" (array of strings).\n'
		f"{transcript}"
	)


def essay_grading_prompt(prompt: str, essay_content: str) -> str:
	return (
		"Please grade the following essay based on the provided prompt. Provide a score from 1 to 10, "
		"a letter grade, rubric scores from 1 to 10, detailed feedback, the key points the essay makes, "
		f"and a list of suggestions for improvement. {_ESSAY_FORMAT} \n\n"
		f'Essay Prompt: "{prompt}"\n\n'
		f'Essay Content: "{essay_content}"'
	)


def build_prompt(
	task_type: str,
	*,
	content: Optional[str] = None,
	topic: Optional[str] = None,
	count: Optional[int] = None,
	transcript: Optional[str] = None,
	prompt: Optional[str] = None,
	essay_content: Optional[str] = None,
) -> str:
	"""Render the prompt for a task-type tag. Missing fields render as empty text."""
	n = count or DEFAULT_QUESTION_COUNT
	if task_type == "questions":
		return questions_prompt(content or "", n)
	if task_type == "topic-questions":
		return topic_questions_prompt(topic or "", n)
	if task_type == "keypoints":
		return keypoints_prompt(content or "")
	if task_type == "flashcards":
		return flashcards_prompt(content or "")
	if task_type == "video-notes":
		return video_notes_prompt(transcript or "")
	if task_type == "essay-grading":
		return essay_grading_prompt(prompt or "", essay_content or "")
	raise UnknownTaskType(task_type)
