from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.quiz_db.quiz_crud import create_quiz, delete_quiz, get_quiz_for_editing, get_quiz_summaries, \
    update_quiz
from app.models.user_db.user_db import User
from app.schemas.common.page_response import PageResponse
from app.schemas.quiz.quiz_base import QuizCreate, QuizOut, QuizSummary, QuizUpdate

quiz_router = APIRouter(prefix="/admin", tags=["Quiz"])


@quiz_router.post("/quiz", response_model=QuizOut, status_code=201)
def create_quiz_route(
    quiz_in: QuizCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return create_quiz(db, quiz_in, user_id=current_user.id)


@quiz_router.get("/quiz/{quiz_id}", response_model=QuizOut)
def get_quiz(quiz_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    return get_quiz_for_editing(db, quiz_id, current_user)


@quiz_router.put("/quiz/{quiz_id}", response_model=QuizOut)
def update_quiz_route(
    quiz_id: int,
    quiz_in: QuizUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return update_quiz(db, quiz_id, quiz_in, current_user)


@quiz_router.delete("/quiz/{quiz_id}", status_code=204)
def delete_quiz_route(quiz_id: int, db: Session = Depends(get_db), current_user: User = Depends(get_current_user)):
    delete_quiz(db, quiz_id, current_user)
    return None


@quiz_router.get("/quiz-summary", response_model=PageResponse[QuizSummary])
def quiz_summary(
    view_mode: str = Query("mine", pattern="^(mine|all)$"),
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    total, items = get_quiz_summaries(db, current_user, show_all=view_mode == "all", page=page, size=size)

    return PageResponse[QuizSummary](
        page=page,
        size=size,
        total=total,
        has_next=(page * size) < total,
        has_prev=page > 1,
        items=items
    )
