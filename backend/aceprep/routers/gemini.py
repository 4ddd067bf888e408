import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Depends, Request
from fastapi.responses import JSONResponse
from pydantic import AliasChoices, BaseModel, Field

from ..gemini_client import GeminiClient, GeminiError, get_gemini_client
from ..prompts import TASK_TYPES, UnknownTaskType, build_prompt
from .auth import User, require_ai_quota

router = APIRouter(prefix="/gemini", tags=["gemini"])

logger = logging.getLogger(__name__)


class TaskRequest(BaseModel):
	type: str
	content: Optional[str] = None
	topic: Optional[str] = None
	count: Optional[int] = None
	transcript: Optional[str] = None
	prompt: Optional[str] = None
	essay_content: Optional[str] = Field(default=None, validation_alias=AliasChoices("essay_content", "essayContent"))


class GenerateRequest(BaseModel):
	prompt: str


def known_task(req: TaskRequest) -> TaskRequest:
	# Declared ahead of the quota and client dependencies so a bad type costs nothing
	if req.type not in TASK_TYPES:
		raise UnknownTaskType(req.type)
	return req


async def unknown_task_handler(request: Request, exc: UnknownTaskType):
	return JSONResponse({"error": "Invalid type"}, status_code=400)


@router.post("")
async def run_task(
	req: TaskRequest = Depends(known_task),
	user: User = Depends(require_ai_quota),
	client: GeminiClient = Depends(get_gemini_client),
):
	"""Build the prompt for a task type, forward it and return the upstream body as-is."""
	prompt = build_prompt(
		req.type,
		content=req.content,
		topic=req.topic,
		count=req.count,
		transcript=req.transcript,
		prompt=req.prompt,
		essay_content=req.essay_content,
	)
	try:
		raw = await client.generate_raw(prompt)
	except GeminiError as e:
		if e.details is not None:
			return JSONResponse({"error": str(e), "details": e.details}, status_code=e.status_code)
		logger.exception("Error in Gemini task %s", req.type)
		return JSONResponse({"error": str(e)}, status_code=500)
	return {"result": raw}


@router.post("/generate")
async def generate(
	req: GenerateRequest,
	user: User = Depends(require_ai_quota),
	client: GeminiClient = Depends(get_gemini_client),
):
	try:
		text = await client.generate(req.prompt)
	except GeminiError as e:
		logger.error("Free-form generation failed for %s: %s", user.username, e)
		raise HTTPException(status_code=502, detail=str(e))
	return {"text": text}
