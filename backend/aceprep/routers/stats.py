from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..stats import StatsSummary, compute_stats
from .auth import User, get_current_user

router = APIRouter(prefix="/stats", tags=["stats"])


@router.get("", response_model=StatsSummary)
def get_stats(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
	quizzes = store.load_quiz_results(db, user.username)
	essays = store.load_essay_results(db, user.username)
	return compute_stats(quizzes, essays)
