from __future__ import annotations
import logging
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .. import store
from ..db import get_db
from ..schemas import StudyClass
from .auth import User, get_current_user


router = APIRouter(prefix="/classes", tags=["classes"])

logger = logging.getLogger(__name__)

EXPORT_FILENAME = "aceprep-classes.json"


class ClassNameRequest(BaseModel):
    name: str


class TopicRequest(BaseModel):
    topic: str


class ImportResponse(BaseModel):
    imported: int


def _get_or_404(db: Session, username: str, class_id: str) -> StudyClass:
    study_class = store.get_class(db, username, class_id)
    if study_class is None:
        raise HTTPException(status_code=404, detail="class not found")
    return study_class


def _required_name(name: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise HTTPException(status_code=400, detail="class name is required")
    return cleaned


@router.get("", response_model=List[StudyClass])
def list_classes(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    return store.load_classes(db, user.username)


@router.post("", response_model=StudyClass, status_code=201)
def create_class(req: ClassNameRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    study_class = StudyClass(id=store.new_id("class"), name=_required_name(req.name), topics=[])
    logger.info("User %s added class %s", user.username, study_class.name)
    return store.save_class(db, user.username, study_class)


@router.get("/export")
def export_classes(user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    classes = store.load_classes(db, user.username)
    return JSONResponse(
        [c.model_dump() for c in classes],
        headers={"Content-Disposition": f'attachment; filename="{EXPORT_FILENAME}"'},
    )


@router.post("/import", response_model=ImportResponse)
def import_classes(classes: List[StudyClass], user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    # All-or-nothing: one bad entry rejects the whole file before anything is written
    prepared = []
    for study_class in classes:
        update = {"name": _required_name(study_class.name)}
        if not study_class.id.strip():
            update["id"] = store.new_id("class")
        prepared.append(study_class.model_copy(update=update))
    store.save_classes(db, user.username, prepared)
    logger.info("User %s imported %d classes", user.username, len(prepared))
    return ImportResponse(imported=len(prepared))


@router.patch("/{class_id}", response_model=StudyClass)
def rename_class(
    class_id: str,
    req: ClassNameRequest,
    user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    study_class = _get_or_404(db, user.username, class_id)
    renamed = study_class.model_copy(update={"name": _required_name(req.name)})
    return store.save_class(db, user.username, renamed)


@router.delete("/{class_id}", status_code=204)
def delete_class(class_id: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    if not store.delete_class(db, user.username, class_id):
        raise HTTPException(status_code=404, detail="class not found")
    return Response(status_code=204)


@router.post("/{class_id}/topics", response_model=StudyClass, status_code=201)
def add_topic(class_id: str, req: TopicRequest, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    study_class = _get_or_404(db, user.username, class_id)
    topic = req.topic.strip()
    if not topic:
        raise HTTPException(status_code=400, detail="topic is required")
    if topic in study_class.topics:
        raise HTTPException(status_code=409, detail="topic already exists")
    updated = study_class.model_copy(update={"topics": study_class.topics + [topic]})
    return store.save_class(db, user.username, updated)


@router.delete("/{class_id}/topics/{topic}", response_model=StudyClass)
def remove_topic(class_id: str, topic: str, user: User = Depends(get_current_user), db: Session = Depends(get_db)):
    study_class = _get_or_404(db, user.username, class_id)
    if topic not in study_class.topics:
        raise HTTPException(status_code=404, detail="topic not found")
    updated = study_class.model_copy(update={"topics": [t for t in study_class.topics if t != topic]})
    return store.save_class(db, user.username, updated)
