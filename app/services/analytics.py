"""
Funnel analytics for a quiz: drop-off, per-question detail, answer distribution,
UTM attribution and daily activity.

Every public method checks ownership first. Date bounds filter on session start,
both ends inclusive on whole days.
"""
import functools
import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import DateTime, and_, case, distinct, func, or_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, aliased
from app.core.config import settings
from app.core.exceptions import NotFoundError, ValidationError
from app.models.quiz_db.answer_option_db import AnswerOption
from app.models.quiz_db.question_db import Question
from app.models.quiz_db.quiz_crud import get_owned_quiz
from app.models.session_db.session_db import UserSession
from app.models.session_db.user_answer_db import UserAnswer
from app.models.user_db.user_db import User
from app.services.interaction_types import is_interactive

logger = logging.getLogger(__name__)


def percentage(part: float, whole: float) -> float:
    if not whole:
        return 0.0
    return round(part * 100.0 / whole, 2)


def date_bounds(start: Optional[date], end: Optional[date]) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Start from 00:00 of the first day, end at 23:59:59.999999 of the last."""
    if start and end and start > end:
        raise ValidationError("start_date must not be after end_date")
    start_dt = datetime.combine(start, time.min) if start else None
    end_dt = datetime.combine(end, time.max) if end else None
    return start_dt, end_dt


def _as_date(value) -> date:
    # SQLite hands DATE() back as text
    if isinstance(value, str):
        return date.fromisoformat(value[:10])
    if isinstance(value, datetime):
        return value.date()
    return value


def logs_query_errors(method):
    @functools.wraps(method)
    def wrapper(self, *args, **kwargs):
        try:
            return method(self, *args, **kwargs)
        except SQLAlchemyError:
            logger.exception("Analytics query %s failed", method.__name__)
            raise
    return wrapper


class AnalyticsService:
    """Read-only aggregations over sessions and answers"""

    def _session_filters(self, quiz_id: int, start: Optional[date], end: Optional[date]) -> list:
        start_dt, end_dt = date_bounds(start, end)
        conditions = [UserSession.quiz_id == quiz_id]
        if start_dt:
            conditions.append(UserSession.started_at >= start_dt)
        if end_dt:
            conditions.append(UserSession.started_at <= end_dt)
        return conditions

    def _funnel_rows(self, db: Session, quiz_id: int, start: Optional[date], end: Optional[date],
                     include_archived: bool = False) -> list:
        """
        One row per question: (id, text, type, sequence_order, reached, answered).

        A session reached a question when its last viewed question sits at or after it,
        or when it has not viewed anything yet. Answered counts distinct reached sessions
        with at least one answer to the question.
        """
        last_question = aliased(Question)
        sessions = db.query(
            UserSession.id.label("id"),
            last_question.sequence_order.label("last_order"),
        ).outerjoin(
            last_question, last_question.id == UserSession.last_question_viewed
        ).filter(*self._session_filters(quiz_id, start, end)).subquery()

        query = db.query(
            Question.id,
            Question.question_text,
            Question.interaction_type,
            Question.sequence_order,
            func.count(distinct(sessions.c.id)).label("reached"),
            func.count(distinct(UserAnswer.session_id)).label("answered"),
        ).outerjoin(
            sessions,
            or_(sessions.c.last_order.is_(None), sessions.c.last_order >= Question.sequence_order),
        ).outerjoin(
            UserAnswer,
            and_(UserAnswer.session_id == sessions.c.id, UserAnswer.question_id == Question.id),
        ).filter(Question.quiz_id == quiz_id)

        if not include_archived:
            query = query.filter(Question.is_archived.is_(False))

        return query.group_by(
            Question.id, Question.question_text, Question.interaction_type, Question.sequence_order
        ).order_by(Question.sequence_order, Question.id).all()

    @logs_query_errors
    def get_drop_rate(self, db: Session, quiz_id: int, caller: User, start: Optional[date] = None,
                      end: Optional[date] = None, include_archived: bool = False) -> List[Dict[str, Any]]:
        get_owned_quiz(db, quiz_id, caller)

        results = []
        for question_id, text, _, _, reached, answered in self._funnel_rows(db, quiz_id, start, end, include_archived):
            results.append({
                "question_id": question_id,
                "question_text": text,
                "reached_count": reached,
                "answered_count": answered,
                "drop_rate_percentage": percentage(max(reached - answered, 0), reached),
            })
        logger.info("Drop rate for quiz %s: %s questions", quiz_id, len(results))
        return results

    def _average_times(self, db: Session, quiz_id: int, start: Optional[date], end: Optional[date]) -> Dict[int, float]:
        """Seconds from the previous answer in the session (or the session start) to each answer."""
        previous = func.lag(UserAnswer.answered_at, type_=DateTime).over(
            partition_by=UserAnswer.session_id,
            order_by=UserAnswer.answered_at,
        )
        rows = db.query(
            UserAnswer.question_id,
            UserAnswer.answered_at,
            previous.label("previous_at"),
            UserSession.started_at,
        ).join(
            UserSession, UserSession.id == UserAnswer.session_id
        ).filter(*self._session_filters(quiz_id, start, end)).all()

        spent = defaultdict(list)
        for question_id, answered_at, previous_at, started_at in rows:
            since = previous_at or started_at
            spent[question_id].append(max((answered_at - since).total_seconds(), 0.0))

        return {question_id: round(sum(values) / len(values), 2) for question_id, values in spent.items()}

    @logs_query_errors
    def get_question_details(self, db: Session, quiz_id: int, caller: User, start: Optional[date] = None,
                             end: Optional[date] = None) -> List[Dict[str, Any]]:
        get_owned_quiz(db, quiz_id, caller)

        rows = self._funnel_rows(db, quiz_id, start, end)
        times = self._average_times(db, quiz_id, start, end)
        completions = db.query(func.count(UserSession.id)).filter(
            *self._session_filters(quiz_id, start, end),
            UserSession.is_completed.is_(True),
        ).scalar() or 0

        results = []
        for index, (question_id, text, interaction_type, _, views, answered) in enumerate(rows):
            if is_interactive(interaction_type):
                answers = answered
                answer_rate = percentage(answers, views)
                drop_rate = percentage(max(views - answers, 0), views)
            else:
                # being shown is the answer; drop is whoever never got past it
                answers = views
                answer_rate = 100.0 if views else 0.0
                moved_on = rows[index + 1][4] if index + 1 < len(rows) else completions
                drop_rate = percentage(max(views - moved_on, 0), views)

            results.append({
                "question_id": question_id,
                "question_text": text,
                "interaction_type": interaction_type,
                "views": views,
                "answers": answers,
                "answer_rate": answer_rate,
                "drop_rate": drop_rate,
                "avg_time_seconds": times.get(question_id, 0.0),
            })
        return results

    @logs_query_errors
    def get_answer_distribution(self, db: Session, quiz_id: int, question_id: int, caller: User,
                                start: Optional[date] = None, end: Optional[date] = None) -> List[Dict[str, Any]]:
        get_owned_quiz(db, quiz_id, caller)
        question = db.query(Question.id).filter(Question.id == question_id, Question.quiz_id == quiz_id).first()
        if not question:
            raise NotFoundError("Question not found in this quiz")

        # a session may change its mind; only its latest answer counts
        rank = func.row_number().over(
            partition_by=UserAnswer.session_id,
            order_by=(UserAnswer.answered_at.desc(), UserAnswer.id.desc()),
        )
        latest = db.query(
            UserAnswer.selected_option_id.label("option_id"),
            rank.label("rank"),
        ).join(
            UserSession, UserSession.id == UserAnswer.session_id
        ).filter(
            UserAnswer.question_id == question_id,
            *self._session_filters(quiz_id, start, end),
        ).subquery()

        counts = dict(
            db.query(latest.c.option_id, func.count())
            .filter(latest.c.rank == 1)
            .group_by(latest.c.option_id)
            .all()
        )
        total = sum(counts.values())

        options = db.query(AnswerOption).filter(AnswerOption.question_id == question_id).order_by(AnswerOption.id).all()
        results = [
            {
                "option_id": option.id,
                "option_text": option.option_text,
                "associated_value": option.associated_value,
                "is_archived": option.is_archived,
                "selection_count": counts.get(option.id, 0),
                "percentage": percentage(counts.get(option.id, 0), total),
            }
            for option in options
            if not option.is_archived or counts.get(option.id)
        ]
        results.sort(key=lambda r: -r["selection_count"])
        return results

    @logs_query_errors
    def get_utm_performance(self, db: Session, quiz_id: int, caller: User, start: Optional[date] = None,
                            end: Optional[date] = None) -> List[Dict[str, Any]]:
        get_owned_quiz(db, quiz_id, caller)

        source = func.coalesce(UserSession.utm_params["utm_source"].as_string(), "Direct")
        campaign = func.coalesce(UserSession.utm_params["utm_campaign"].as_string(), "N/A")
        total = func.count(UserSession.id)
        completed = func.sum(case((UserSession.is_completed.is_(True), 1), else_=0))

        rows = db.query(
            source.label("utm_source"),
            campaign.label("utm_campaign"),
            total.label("total_sessions"),
            completed.label("completions"),
        ).filter(
            *self._session_filters(quiz_id, start, end)
        ).group_by("utm_source", "utm_campaign").order_by(total.desc()).all()

        return [
            {
                "utm_source": utm_source,
                "utm_campaign": utm_campaign,
                "total_sessions": total_sessions,
                "completions": int(completions or 0),
                "completion_rate": percentage(int(completions or 0), total_sessions),
            }
            for utm_source, utm_campaign, total_sessions, completions in rows
        ]

    @logs_query_errors
    def get_quiz_stats(self, db: Session, quiz_id: int, caller: User, start: Optional[date] = None,
                       end: Optional[date] = None) -> Dict[str, Any]:
        get_owned_quiz(db, quiz_id, caller)

        answered = db.query(
            UserAnswer.session_id.label("session_id"),
            func.count(distinct(UserAnswer.question_id)).label("questions"),
        ).group_by(UserAnswer.session_id).subquery()

        total_sessions, total_completions, questions_answered = db.query(
            func.count(UserSession.id),
            func.sum(case((UserSession.is_completed.is_(True), 1), else_=0)),
            func.sum(func.coalesce(answered.c.questions, 0)),
        ).outerjoin(
            answered, answered.c.session_id == UserSession.id
        ).filter(*self._session_filters(quiz_id, start, end)).one()

        total_sessions = total_sessions or 0
        total_completions = int(total_completions or 0)
        return {
            "total_sessions": total_sessions,
            "total_completions": total_completions,
            "completion_rate": percentage(total_completions, total_sessions),
            "avg_questions_answered": round(int(questions_answered or 0) / total_sessions, 2) if total_sessions else 0.0,
        }

    @logs_query_errors
    def get_daily_activity(self, db: Session, quiz_id: int, caller: User, start: Optional[date] = None,
                           end: Optional[date] = None, days: Optional[int] = None) -> List[Dict[str, Any]]:
        get_owned_quiz(db, quiz_id, caller)

        # a half-open range falls back to the trailing window
        if not start or not end:
            days = days or settings.ANALYTICS_DEFAULT_DAYS
            end = datetime.utcnow().date()
            start = end - timedelta(days=days)

        day = func.date(UserSession.started_at)
        rows = db.query(
            day.label("date"),
            func.count(UserSession.id),
            func.sum(case((UserSession.is_completed.is_(True), 1), else_=0)),
        ).filter(
            *self._session_filters(quiz_id, start, end)
        ).group_by(day).order_by(day).all()

        return [
            {"date": _as_date(bucket), "sessions": sessions, "completions": int(completions or 0)}
            for bucket, sessions, completions in rows
        ]


analytics_service = AnalyticsService()
