from __future__ import annotations
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Integer, Float, Text
from .db import Base


class AuthUser(Base):
	__tablename__ = "auth_users"
	# Primary key is username
	username = Column(String(128), primary_key=True, index=True)
	password_hash = Column(String(256), nullable=False)
	email = Column(String(256), nullable=True)
	phone = Column(String(32), nullable=True)
	requests_used = Column(Integer, default=0, nullable=False)
	requests_limit = Column(Integer, default=1000, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)


class AuthSession(Base):
	__tablename__ = "auth_sessions"
	session_id = Column(String(64), primary_key=True)
	username = Column(String(128), nullable=False, index=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	last_activity_at = Column(DateTime, default=datetime.utcnow, nullable=False)


# Study collections. Every row is owned by exactly one username (the partition key);
# list-valued fields are JSON strings.

class NoteRecord(Base):
	__tablename__ = "notes"
	username = Column(String(128), primary_key=True)
	id = Column(String(64), primary_key=True)
	title = Column(String(256), nullable=False, default="")
	content = Column(Text, nullable=False, default="")
	topic = Column(String(256), nullable=False, default="")
	tags_json = Column(Text, nullable=False, default="[]")
	key_points_json = Column(Text, nullable=False, default="[]")
	source_type = Column(String(16), nullable=False, default="manual")
	source_url = Column(String(1024), nullable=True)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
	updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class FlashcardRecord(Base):
	__tablename__ = "flashcards"
	username = Column(String(128), primary_key=True)
	id = Column(String(64), primary_key=True)
	front = Column(Text, nullable=False)
	back = Column(Text, nullable=False)
	# Not a foreign key: the note may have been deleted
	note_id = Column(String(64), nullable=False, default="")
	topic = Column(String(256), nullable=False, default="")
	difficulty = Column(String(8), nullable=False, default="medium")
	last_reviewed = Column(DateTime, nullable=True)
	next_review = Column(DateTime, nullable=True)
	repetitions = Column(Integer, default=0, nullable=False)
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class QuizResultRecord(Base):
	__tablename__ = "quiz_results"
	username = Column(String(128), primary_key=True)
	id = Column(String(64), primary_key=True)
	topic = Column(String(256), nullable=False)
	score = Column(Integer, nullable=False)
	date = Column(DateTime, default=datetime.utcnow, nullable=False)
	questions_count = Column(Integer, nullable=False)


class EssayResultRecord(Base):
	__tablename__ = "essay_results"
	username = Column(String(128), primary_key=True)
	id = Column(String(64), primary_key=True)
	topic = Column(String(256), nullable=False)
	score = Column(Float, nullable=False)
	letter_grade = Column(String(8), nullable=True)
	date = Column(DateTime, default=datetime.utcnow, nullable=False)


class StudyClassRecord(Base):
	__tablename__ = "study_classes"
	username = Column(String(128), primary_key=True)
	id = Column(String(64), primary_key=True)
	name = Column(String(256), nullable=False)
	topics_json = Column(Text, nullable=False, default="[]")
	created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
