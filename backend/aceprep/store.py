"""Per-user document store.

Every collection is keyed by ``(username, id)``; the username is the partition
key and no function here ever reads or writes across partitions. Writes are
plain upserts (``Session.merge``) with no conflict detection.
"""
from __future__ import annotations
import json
import time
import uuid
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from .models import NoteRecord, FlashcardRecord, QuizResultRecord, EssayResultRecord, StudyClassRecord
from .schemas import Note, Flashcard, QuizResult, EssayResult, StudyClass


def new_id(prefix: str) -> str:
	millis = int(time.time() * 1000)
	return f"{prefix}-{millis}-{uuid.uuid4().hex[:6]}"


def _dump_list(values: Iterable[str]) -> str:
	return json.dumps([str(v) for v in values])


def _load_list(raw: Optional[str]) -> List[str]:
	if not raw:
		return []
	try:
		data = json.loads(raw)
	except ValueError:
		return []
	return [str(v) for v in data] if isinstance(data, list) else []


# ---- notes ----

def _note_from_row(row: NoteRecord) -> Note:
	return Note(
		id=row.id,
		title=row.title,
		content=row.content,
		topic=row.topic,
		tags=_load_list(row.tags_json),
		key_points=_load_list(row.key_points_json),
		created_at=row.created_at,
		updated_at=row.updated_at,
		source_type=row.source_type,
		source_url=row.source_url,
	)


def _note_to_row(username: str, note: Note) -> NoteRecord:
	return NoteRecord(
		username=username,
		id=note.id,
		title=note.title,
		content=note.content,
		topic=note.topic,
		tags_json=_dump_list(note.tags),
		key_points_json=_dump_list(note.key_points),
		source_type=note.source_type,
		source_url=note.source_url,
		created_at=note.created_at,
		updated_at=note.updated_at,
	)


def save_notes(db: Session, username: str, notes: Iterable[Note]) -> None:
	for note in notes:
		db.merge(_note_to_row(username, note))
	db.commit()


def save_note(db: Session, username: str, note: Note) -> Note:
	save_notes(db, username, [note])
	return note


def load_notes(db: Session, username: str) -> List[Note]:
	rows = db.query(NoteRecord).filter(NoteRecord.username == username).all()
	return [_note_from_row(r) for r in rows]


def get_note(db: Session, username: str, note_id: str) -> Optional[Note]:
	row = db.get(NoteRecord, (username, note_id))
	return _note_from_row(row) if row else None


def delete_note(db: Session, username: str, note_id: str) -> bool:
	row = db.get(NoteRecord, (username, note_id))
	if row is None:
		return False
	db.delete(row)
	db.commit()
	return True


# ---- flashcards ----

def _card_from_row(row: FlashcardRecord) -> Flashcard:
	return Flashcard(
		id=row.id,
		front=row.front,
		back=row.back,
		note_id=row.note_id,
		topic=row.topic,
		difficulty=row.difficulty,
		last_reviewed=row.last_reviewed,
		next_review=row.next_review,
		repetitions=row.repetitions,
	)


def save_flashcards(db: Session, username: str, cards: Iterable[Flashcard]) -> None:
	for card in cards:
		db.merge(FlashcardRecord(username=username, **card.model_dump()))
	db.commit()


def save_flashcard(db: Session, username: str, card: Flashcard) -> Flashcard:
	save_flashcards(db, username, [card])
	return card


def load_flashcards(db: Session, username: str) -> List[Flashcard]:
	rows = (
		db.query(FlashcardRecord)
		.filter(FlashcardRecord.username == username)
		.order_by(FlashcardRecord.created_at.desc())
		.all()
	)
	return [_card_from_row(r) for r in rows]


def get_flashcard(db: Session, username: str, card_id: str) -> Optional[Flashcard]:
	row = db.get(FlashcardRecord, (username, card_id))
	return _card_from_row(row) if row else None


def delete_flashcard(db: Session, username: str, card_id: str) -> bool:
	row = db.get(FlashcardRecord, (username, card_id))
	if row is None:
		return False
	db.delete(row)
	db.commit()
	return True


# ---- results ----

def save_quiz_result(db: Session, username: str, result: QuizResult) -> QuizResult:
	db.merge(QuizResultRecord(username=username, **result.model_dump()))
	db.commit()
	return result


def load_quiz_results(db: Session, username: str) -> List[QuizResult]:
	rows = db.query(QuizResultRecord).filter(QuizResultRecord.username == username).all()
	return [
		QuizResult(id=r.id, topic=r.topic, score=r.score, date=r.date, questions_count=r.questions_count)
		for r in rows
	]


def save_essay_result(db: Session, username: str, result: EssayResult) -> EssayResult:
	db.merge(EssayResultRecord(username=username, **result.model_dump()))
	db.commit()
	return result


def load_essay_results(db: Session, username: str) -> List[EssayResult]:
	rows = db.query(EssayResultRecord).filter(EssayResultRecord.username == username).all()
	return [
		EssayResult(id=r.id, topic=r.topic, score=r.score, letter_grade=r.letter_grade, date=r.date)
		for r in rows
	]


# ---- classes ----

def _class_from_row(row: StudyClassRecord) -> StudyClass:
	return StudyClass(id=row.id, name=row.name, topics=_load_list(row.topics_json))


def _class_to_row(username: str, study_class: StudyClass) -> StudyClassRecord:
	return StudyClassRecord(
		username=username,
		id=study_class.id,
		name=study_class.name,
		topics_json=_dump_list(study_class.topics),
	)


def save_classes(db: Session, username: str, classes: Iterable[StudyClass]) -> None:
	for study_class in classes:
		db.merge(_class_to_row(username, study_class))
	db.commit()


def save_class(db: Session, username: str, study_class: StudyClass) -> StudyClass:
	save_classes(db, username, [study_class])
	return study_class


def load_classes(db: Session, username: str) -> List[StudyClass]:
	rows = (
		db.query(StudyClassRecord)
		.filter(StudyClassRecord.username == username)
		.order_by(StudyClassRecord.created_at)
		.all()
	)
	return [_class_from_row(r) for r in rows]


def get_class(db: Session, username: str, class_id: str) -> Optional[StudyClass]:
	row = db.get(StudyClassRecord, (username, class_id))
	return _class_from_row(row) if row else None


def delete_class(db: Session, username: str, class_id: str) -> bool:
	row = db.get(StudyClassRecord, (username, class_id))
	if row is None:
		return False
	db.delete(row)
	db.commit()
	return True
