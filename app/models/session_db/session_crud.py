import logging
from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.orm import Session
from app.core.database import transaction
from app.core.exceptions import NotFoundError, ValidationError
from app.models.quiz_db.answer_option_db import AnswerOption
from app.models.quiz_db.question_db import Question
from app.models.quiz_db.quiz_db import Quiz
from app.models.session_db.session_db import UserSession
from app.models.session_db.user_answer_db import UserAnswer

logger = logging.getLogger(__name__)


def clean_utm_params(utm_params: Optional[Dict[str, Any]]) -> Optional[Dict[str, str]]:
    """Keeps non-empty string values only; an empty result is stored as NULL."""
    if not utm_params:
        return None
    cleaned = {
        key: value.strip()
        for key, value in utm_params.items()
        if isinstance(value, str) and value.strip()
    }
    return cleaned or None


def _get_session_or_404(db: Session, session_id: UUID) -> UserSession:
    session = db.query(UserSession).filter(UserSession.id == session_id).first()
    if not session:
        raise NotFoundError("Session not found")
    return session


def start_session(db: Session, quiz_id: int, utm_params: Optional[Dict[str, Any]] = None) -> UUID:
    with transaction(db):
        quiz = db.query(Quiz.id).filter(Quiz.id == quiz_id).first()
        if not quiz:
            raise NotFoundError("Quiz not found")

        session = UserSession(
            quiz_id=quiz_id,
            started_at=datetime.utcnow(),
            last_question_viewed=None,
            is_completed=False,
            utm_params=clean_utm_params(utm_params),
        )
        db.add(session)
        db.flush()
        session_id = session.id

    logger.info("Session %s started for quiz %s", session_id, quiz_id)
    return session_id


def update_session(db: Session, session_id: UUID, last_question_id: int) -> UserSession:
    with transaction(db):
        session = _get_session_or_404(db, session_id)
        question = db.query(Question.id).filter(
            Question.id == last_question_id,
            Question.quiz_id == session.quiz_id,
        ).first()
        if not question:
            raise ValidationError("Question does not belong to this quiz")
        session.last_question_viewed = last_question_id
    return session


def submit_answer(db: Session, session_id: UUID, question_id: int, selected_option_id: int) -> UUID:
    with transaction(db):
        session = _get_session_or_404(db, session_id)

        question = db.query(Question).filter(
            Question.id == question_id,
            Question.quiz_id == session.quiz_id,
        ).first()
        if not question:
            raise ValidationError("Question does not belong to this quiz")

        option = db.query(AnswerOption.id).filter(
            AnswerOption.id == selected_option_id,
            AnswerOption.question_id == question_id,
        ).first()
        if not option:
            raise ValidationError("Option does not belong to this question")

        # append-only; the latest answer per question wins in analytics
        answer = UserAnswer(
            session_id=session.id,
            question_id=question_id,
            selected_option_id=selected_option_id,
            answered_at=datetime.utcnow(),
        )
        db.add(answer)
        db.flush()
        answer_id = answer.id

    logger.debug("Answer %s recorded for session %s", answer_id, session_id)
    return answer_id


def complete_session(db: Session, session_id: UUID, final_profile: Optional[str] = None) -> UserSession:
    with transaction(db):
        session = _get_session_or_404(db, session_id)
        session.is_completed = True
        session.final_profile = final_profile or "Completed"

    logger.info("Session %s completed", session_id)
    return session


def get_session_utm_params(db: Session, session_id: UUID) -> Optional[Dict[str, str]]:
    session = _get_session_or_404(db, session_id)
    return session.utm_params or None
