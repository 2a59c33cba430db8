from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.exceptions import NotFoundError
from app.models.quiz_db.content_crud import get_quiz_by_domain, get_quiz_content
from app.schemas.content.content_base import DomainLookup, QuizContent

content_router = APIRouter(prefix="/content", tags=["Content"])


@content_router.get("/quiz/{quiz_id}", response_model=QuizContent)
def quiz_content(quiz_id: int, db: Session = Depends(get_db)):
    return get_quiz_content(db, quiz_id)


@content_router.get("/domain/{domain}", response_model=DomainLookup)
def quiz_by_domain(domain: str, db: Session = Depends(get_db)):
    quiz_id = get_quiz_by_domain(db, domain)
    if quiz_id is None:
        raise NotFoundError("No active quiz for this domain")
    return {"quiz_id": quiz_id}
