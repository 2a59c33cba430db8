import uuid
from datetime import date, datetime, timedelta

import pytest

from app.core.exceptions import AuthorizationError, NotFoundError, ValidationError
from app.models.quiz_db.quiz_crud import create_quiz
from app.models.session_db.session_db import UserSession
from app.models.session_db.user_answer_db import UserAnswer
from app.schemas.quiz.quiz_base import QuizCreate
from app.services.analytics import analytics_service, date_bounds
from helpers import option, question, quiz_payload

DAY_ONE = date(2026, 3, 1)
DAY_TWO = date(2026, 3, 2)


@pytest.fixture
def funnel(db, owner):
    """
    Four questions and four sessions:

    s1 saw everything, answered q1 and q3, completed (facebook/spring)
    s2 stopped on the info screen after answering q1 twice (facebook/spring)
    s3 started without viewing anything (direct)
    s4 saw q1 only, just before midnight on day two (google)
    """
    quiz = create_quiz(db, QuizCreate(**quiz_payload(questions=[
        question(1, options=[option("A"), option("B")]),
        question(2, interaction_type="info_screen", text="", options=[]),
        question(3, options=[option("X"), option("Y")]),
        question(4, interaction_type="result_page", text="Your routine", options=[]),
    ])), user_id=owner.id)
    q1, q2, q3, q4 = quiz.questions
    a, b = q1.options
    x, _ = q3.options

    s1_start = datetime.combine(DAY_ONE, datetime.min.time()) + timedelta(hours=10)
    s2_start = s1_start + timedelta(hours=1)
    sessions = {
        "s1": UserSession(id=uuid.uuid4(), quiz_id=quiz.id, started_at=s1_start, last_question_viewed=q4.id,
                          is_completed=True, final_profile="Completed",
                          utm_params={"utm_source": "facebook", "utm_campaign": "spring"}),
        "s2": UserSession(id=uuid.uuid4(), quiz_id=quiz.id, started_at=s2_start, last_question_viewed=q2.id,
                          is_completed=False, utm_params={"utm_source": "facebook", "utm_campaign": "spring"}),
        "s3": UserSession(id=uuid.uuid4(), quiz_id=quiz.id,
                          started_at=datetime.combine(DAY_TWO, datetime.min.time()) + timedelta(hours=9),
                          last_question_viewed=None, is_completed=False, utm_params=None),
        "s4": UserSession(id=uuid.uuid4(), quiz_id=quiz.id,
                          started_at=datetime.combine(DAY_TWO, datetime.max.time()) - timedelta(milliseconds=500),
                          last_question_viewed=q1.id, is_completed=False, utm_params={"utm_source": "google"}),
    }
    db.add_all(sessions.values())
    db.flush()
    db.add_all([
        UserAnswer(session_id=sessions["s1"].id, question_id=q1.id, selected_option_id=a.id,
                   answered_at=s1_start + timedelta(seconds=10)),
        UserAnswer(session_id=sessions["s1"].id, question_id=q3.id, selected_option_id=x.id,
                   answered_at=s1_start + timedelta(seconds=40)),
        UserAnswer(session_id=sessions["s2"].id, question_id=q1.id, selected_option_id=b.id,
                   answered_at=s2_start + timedelta(seconds=20)),
        UserAnswer(session_id=sessions["s2"].id, question_id=q1.id, selected_option_id=a.id,
                   answered_at=s2_start + timedelta(seconds=25)),
    ])
    db.commit()
    return quiz


def test_date_bounds_cover_whole_days():
    start, end = date_bounds(DAY_ONE, DAY_TWO)
    assert start == datetime(2026, 3, 1, 0, 0, 0)
    assert end == datetime(2026, 3, 2, 23, 59, 59, 999999)
    with pytest.raises(ValidationError):
        date_bounds(DAY_TWO, DAY_ONE)


def test_drop_rate(db, owner, funnel):
    rows = analytics_service.get_drop_rate(db, funnel.id, owner)

    assert [(r["reached_count"], r["answered_count"]) for r in rows] == [(4, 2), (3, 0), (2, 1), (2, 0)]
    assert [r["drop_rate_percentage"] for r in rows] == [50.0, 100.0, 50.0, 100.0]


def test_drop_rate_with_no_sessions_is_zero(db, owner):
    quiz = create_quiz(db, QuizCreate(**quiz_payload()), user_id=owner.id)
    rows = analytics_service.get_drop_rate(db, quiz.id, owner)
    assert all(r["reached_count"] == 0 and r["drop_rate_percentage"] == 0.0 for r in rows)


def test_question_details(db, owner, funnel):
    q1, q2, q3, q4 = analytics_service.get_question_details(db, funnel.id, owner)

    assert (q1["views"], q1["answers"], q1["answer_rate"], q1["drop_rate"]) == (4, 2, 50.0, 50.0)
    # s1 took 10s, s2 took 20s then changed its mind 5s later
    assert q1["avg_time_seconds"] == 11.67

    # viewing an info screen counts as answering it; the drop is who never reached q3
    assert (q2["views"], q2["answers"], q2["answer_rate"], q2["drop_rate"]) == (3, 3, 100.0, 33.33)

    assert (q3["views"], q3["answers"], q3["drop_rate"]) == (2, 1, 50.0)
    assert q3["avg_time_seconds"] == 30.0

    # last screen: drop measured against completions
    assert (q4["views"], q4["answers"], q4["drop_rate"], q4["avg_time_seconds"]) == (2, 2, 50.0, 0.0)


def test_answer_distribution_uses_latest_answer(db, owner, funnel):
    q1 = funnel.questions[0]
    rows = analytics_service.get_answer_distribution(db, funnel.id, q1.id, owner)

    by_text = {r["option_text"]: r for r in rows}
    assert by_text["A"]["selection_count"] == 2
    assert by_text["A"]["percentage"] == 100.0
    assert by_text["B"]["selection_count"] == 0
    assert rows[0]["option_text"] == "A"


def test_answer_distribution_requires_question_of_quiz(db, owner, funnel):
    other = create_quiz(db, QuizCreate(**quiz_payload()), user_id=owner.id)
    with pytest.raises(NotFoundError):
        analytics_service.get_answer_distribution(db, funnel.id, other.questions[0].id, owner)


def test_utm_performance(db, owner, funnel):
    rows = analytics_service.get_utm_performance(db, funnel.id, owner)

    assert rows[0] == {
        "utm_source": "facebook",
        "utm_campaign": "spring",
        "total_sessions": 2,
        "completions": 1,
        "completion_rate": 50.0,
    }
    rest = {(r["utm_source"], r["utm_campaign"]): r["total_sessions"] for r in rows[1:]}
    assert rest == {("Direct", "N/A"): 1, ("google", "N/A"): 1}


def test_quiz_stats(db, owner, funnel):
    stats = analytics_service.get_quiz_stats(db, funnel.id, owner)
    assert stats == {
        "total_sessions": 4,
        "total_completions": 1,
        "completion_rate": 25.0,
        "avg_questions_answered": 0.75,
    }


def test_quiz_stats_end_date_includes_whole_day(db, owner, funnel):
    stats = analytics_service.get_quiz_stats(db, funnel.id, owner, DAY_TWO, DAY_TWO)
    assert stats["total_sessions"] == 2
    assert stats["total_completions"] == 0


def test_daily_activity(db, owner, funnel):
    rows = analytics_service.get_daily_activity(db, funnel.id, owner, DAY_ONE, DAY_TWO)
    assert rows == [
        {"date": DAY_ONE, "sessions": 2, "completions": 1},
        {"date": DAY_TWO, "sessions": 2, "completions": 0},
    ]


def test_daily_activity_half_open_range_uses_trailing_window(db, owner, funnel):
    db.add(UserSession(id=uuid.uuid4(), quiz_id=funnel.id, started_at=datetime.utcnow(), is_completed=True))
    db.commit()

    rows = analytics_service.get_daily_activity(db, funnel.id, owner, start=DAY_ONE, days=7)
    assert rows == [{"date": datetime.utcnow().date(), "sessions": 1, "completions": 1}]


def test_analytics_ownership(db, owner, stranger, admin, funnel):
    with pytest.raises(AuthorizationError):
        analytics_service.get_quiz_stats(db, funnel.id, stranger)
    with pytest.raises(NotFoundError):
        analytics_service.get_drop_rate(db, 9999, owner)
    assert analytics_service.get_quiz_stats(db, funnel.id, admin)["total_sessions"] == 4
