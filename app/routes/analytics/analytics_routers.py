import logging
from datetime import date
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.security import get_current_user
from app.models.user_db.user_db import User
from app.schemas.analytics.analytics_base import AnswerDistribution, DailyActivity, DropRate, QuestionDetail, \
    QuizStats, UtmPerformance
from app.services.analytics import analytics_service

analytics_router = APIRouter(prefix="/analytics", tags=["Analytics"])
logger = logging.getLogger(__name__)


@analytics_router.get("/drop-rate/{quiz_id}", response_model=List[DropRate])
def drop_rate(
    quiz_id: int,
    include_archived: bool = False,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return analytics_service.get_drop_rate(db, quiz_id, current_user, start_date, end_date, include_archived)


@analytics_router.get("/question-details/{quiz_id}", response_model=List[QuestionDetail])
def question_details(
    quiz_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return analytics_service.get_question_details(db, quiz_id, current_user, start_date, end_date)


@analytics_router.get("/answer-distribution/{quiz_id}/{question_id}", response_model=List[AnswerDistribution])
def answer_distribution(
    quiz_id: int,
    question_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return analytics_service.get_answer_distribution(db, quiz_id, question_id, current_user, start_date, end_date)


@analytics_router.get("/utm-performance/{quiz_id}", response_model=List[UtmPerformance])
def utm_performance(
    quiz_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return analytics_service.get_utm_performance(db, quiz_id, current_user, start_date, end_date)


@analytics_router.get("/quiz-stats/{quiz_id}", response_model=QuizStats)
def quiz_stats(
    quiz_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return analytics_service.get_quiz_stats(db, quiz_id, current_user, start_date, end_date)


@analytics_router.get("/daily-activity/{quiz_id}", response_model=List[DailyActivity])
def daily_activity(
    quiz_id: int,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    days: Optional[int] = Query(None, ge=1, le=365),
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    logger.debug("Daily activity for quiz %s (%s..%s, %s days)", quiz_id, start_date, end_date, days)
    return analytics_service.get_daily_activity(db, quiz_id, current_user, start_date, end_date, days)
