from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.models.session_db.session_crud import complete_session, get_session_utm_params, start_session, \
    submit_answer, update_session
from app.schemas.login.login_base import MessageResponse
from app.schemas.session.session_base import AnswerOut, AnswerSubmit, SessionComplete, SessionStart, \
    SessionStartOut, SessionUpdate, SessionUtmOut

session_router = APIRouter(prefix="/session", tags=["Session"])


@session_router.post("/start", response_model=SessionStartOut)
def start(payload: SessionStart, db: Session = Depends(get_db)):
    return {"session_id": start_session(db, payload.quiz_id, payload.utm_params)}


@session_router.post("/update", response_model=MessageResponse)
def update(payload: SessionUpdate, db: Session = Depends(get_db)):
    update_session(db, payload.session_id, payload.last_question_id)
    return {"message": "Session updated"}


@session_router.post("/answers", response_model=AnswerOut, status_code=201)
def answer(payload: AnswerSubmit, db: Session = Depends(get_db)):
    return {"answer_id": submit_answer(db, payload.session_id, payload.question_id, payload.selected_option_id)}


@session_router.post("/complete", response_model=MessageResponse)
def complete(payload: SessionComplete, db: Session = Depends(get_db)):
    complete_session(db, payload.session_id, payload.final_profile)
    return {"message": "Session completed"}


@session_router.get("/{session_id}/utms", response_model=SessionUtmOut)
def utms(session_id: UUID, db: Session = Depends(get_db)):
    return {"session_id": session_id, "utm_params": get_session_utm_params(db, session_id)}
