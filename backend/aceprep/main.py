import asyncio
import logging

from fastapi import FastAPI

from .db import Base, SessionLocal, engine
from .cleanup import purge_stale_sessions
from .settings import settings
from .prompts import UnknownTaskType
from .routers import auth
from .routers import gemini
from .routers import notes
from .routers import flashcards
from .routers import quiz
from .routers import essay
from .routers import classes
from .routers import stats

logging.basicConfig(
	level=settings.log_level.upper(),
	format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="AcePrep API")
app.include_router(auth.router)
app.include_router(gemini.router)
app.add_exception_handler(UnknownTaskType, gemini.unknown_task_handler)
app.include_router(notes.router)
app.include_router(flashcards.router)
app.include_router(quiz.router)
app.include_router(essay.router)
app.include_router(classes.router)
app.include_router(stats.router)


@app.get("/info")
def root():
	return {"status": "ok", "gemini_configured": bool(settings.gemini_api_key)}


def _run_cleanup() -> None:
	db = SessionLocal()
	try:
		purge_stale_sessions(db)
	except Exception:
		logger.exception("Session cleanup failed")
	finally:
		db.close()


async def _cleanup_watcher():
	while True:
		await asyncio.sleep(24 * 60 * 60)
		_run_cleanup()


@app.on_event("startup")
async def startup_event():
	Base.metadata.create_all(bind=engine)
	_run_cleanup()
	asyncio.create_task(_cleanup_watcher())
