from __future__ import annotations
import logging
from datetime import datetime
from io import BytesIO
from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..gemini_client import GeminiClient, GeminiError, get_gemini_client
from ..parsing import parse_essay_grading
from ..prompts import essay_grading_prompt
from ..schemas import EssayGrading, EssayResult
from ..settings import settings
from .auth import User, get_current_user, require_ai_quota

try:
	import pytesseract  # type: ignore
	from PIL import Image  # type: ignore
except ImportError:
	# Defer import errors until the OCR endpoint is actually called
	pytesseract = None  # type: ignore
	Image = None  # type: ignore


router = APIRouter(prefix="/essay", tags=["essay"])

logger = logging.getLogger(__name__)


class EssayType(BaseModel):
	id: str
	name: str
	description: str
	prompt: Optional[str] = None


ESSAY_TYPES: List[EssayType] = [
	EssayType(
		id="ap-dbq",
		name="AP Document-Based Question (DBQ)",
		description="Analyze and synthesize historical data and documents",
		prompt=(
			"Evaluate the extent to which the Progressive movement of the early 20th century (1890-1920) effectively "
			"addressed the political and social problems of the era. Use the provided documents and your knowledge of "
			"U.S. history to develop your argument."
		),
	),
	EssayType(
		id="ap-leq",
		name="AP Long Essay Question (LEQ)",
		description="Develop an argument about a historical topic using specific evidence",
		prompt=(
			"Evaluate the extent to which technological innovations changed American society in the period from 1865 "
			"to 1920. Provide specific historical evidence to support your argument."
		),
	),
	EssayType(
		id="ap-frq-science",
		name="AP Science Free Response",
		description="Answer scientific questions with calculations, explanations, and analysis",
		prompt=(
			"Describe the process of cellular respiration and explain how it relates to the laws of thermodynamics. "
			"Include specific chemical equations and identify where in the cell each stage occurs."
		),
	),
	EssayType(
		id="ap-frq-math",
		name="AP Math Free Response",
		description="Solve complex mathematical problems with detailed work shown",
	),
	EssayType(
		id="ap-argument",
		name="AP English Argument Essay",
		description="Defend, challenge, or qualify a claim about a specific topic",
	),
	EssayType(
		id="ap-synthesis",
		name="AP English Synthesis Essay",
		description="Synthesize information from multiple texts to support an argument",
	),
	EssayType(
		id="ap-rhetorical",
		name="AP English Rhetorical Analysis",
		description="Analyze how an author uses rhetorical strategies to make an argument",
	),
	EssayType(
		id="sat-essay",
		name="SAT Essay",
		description="Analyze how an author builds an argument to persuade an audience",
		prompt=(
			"Read the passage and analyze how the author uses evidence, reasoning, and stylistic or persuasive elements "
			"to build an argument and make it effective. Your essay should not explain whether you agree with the "
			"author's claims, but rather analyze how the author builds the argument."
		),
	),
	EssayType(
		id="college-app",
		name="College Application Essay",
		description="Personal statement for college applications",
	),
	EssayType(
		id="scholarship",
		name="Scholarship Essay",
		description="Essay for scholarship applications",
	),
]

_ESSAY_TYPES_BY_ID = {t.id: t for t in ESSAY_TYPES}


class GradeEssayRequest(BaseModel):
	essay_type: str
	essay_content: str
	prompt: Optional[str] = None


class GradeEssayResponse(BaseModel):
	grading: EssayGrading
	result: EssayResult


def _resolve_prompt(essay_type: EssayType, override: Optional[str]) -> str:
	if override and override.strip():
		return override.strip()
	if essay_type.prompt:
		return essay_type.prompt
	return f"Write a {essay_type.name}: {essay_type.description}."


async def _grade(
	client: GeminiClient,
	db: Session,
	username: str,
	essay_type_id: str,
	content: str,
	prompt_override: Optional[str] = None,
) -> GradeEssayResponse:
	essay_type = _ESSAY_TYPES_BY_ID.get(essay_type_id)
	if essay_type is None:
		raise HTTPException(status_code=404, detail="unknown essay type")
	text = (content or "").strip()
	if len(text) < settings.essay_min_chars:
		raise HTTPException(
			status_code=400,
			detail=f"Please write at least {settings.essay_min_chars} characters for a proper evaluation.",
		)
	# Safety clamp to avoid extremely long prompts
	if len(text) > settings.essay_max_chars:
		text = text[: settings.essay_max_chars]
	try:
		model_out = await client.generate(essay_grading_prompt(_resolve_prompt(essay_type, prompt_override), text))
	except GeminiError as e:
		logger.error("Essay grading failed: %s", e)
		raise HTTPException(status_code=502, detail="There was an error grading the essay. Please try again.")
	grading = parse_essay_grading(model_out)
	if grading is None:
		logger.warning("Unparseable essay grading output: %.200s", model_out)
		raise HTTPException(status_code=502, detail="The AI returned an unexpected format.")
	result = EssayResult(
		id=store.new_id("essay"),
		topic=essay_type.name,
		score=grading.score,
		letter_grade=grading.letter_grade,
		date=datetime.utcnow(),
	)
	store.save_essay_result(db, username, result)
	return GradeEssayResponse(grading=grading, result=result)


@router.get("/types", response_model=List[EssayType])
def list_essay_types(q: Optional[str] = None):
	if not q:
		return ESSAY_TYPES
	needle = q.lower()
	return [t for t in ESSAY_TYPES if needle in t.name.lower() or needle in t.description.lower()]


@router.post("/grade", response_model=GradeEssayResponse)
async def grade_essay(
	req: GradeEssayRequest,
	user: User = Depends(require_ai_quota),
	db: Session = Depends(get_db),
	client: GeminiClient = Depends(get_gemini_client),
):
	return await _grade(client, db, user.username, req.essay_type, req.essay_content, req.prompt)


@router.post("/grade/image", response_model=GradeEssayResponse)
async def grade_essay_image(
	essay_type: str = Form(...),
	prompt: Optional[str] = Form(default=None),
	file: UploadFile = File(...),
	user: User = Depends(require_ai_quota),
	db: Session = Depends(get_db),
	client: GeminiClient = Depends(get_gemini_client),
):
	if pytesseract is None or Image is None:
		raise HTTPException(
			status_code=500,
			detail="OCR dependencies not installed. Install system package 'tesseract-ocr' and Python packages 'pytesseract' and 'Pillow'",
		)
	try:
		content = await file.read()
		img = Image.open(BytesIO(content))
		text = pytesseract.image_to_string(img)
	except Exception as e:
		raise HTTPException(status_code=400, detail=f"Failed to OCR image: {e}")
	return await _grade(client, db, user.username, essay_type, text, prompt)


@router.get("/results", response_model=List[EssayResult])
def list_essay_results(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	results = store.load_essay_results(db, user.username)
	results.sort(key=lambda r: r.date, reverse=True)
	return results
