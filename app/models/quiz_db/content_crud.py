import logging
from collections import OrderedDict
from typing import Optional

from sqlalchemy import and_
from sqlalchemy.orm import Session
from app.core.exceptions import NotFoundError, QuizInactiveError
from app.models.quiz_db.answer_option_db import AnswerOption
from app.models.quiz_db.question_db import Question
from app.models.quiz_db.quiz_db import Quiz
from app.schemas.content.content_base import ContentOption, ContentQuestion, QuizContent
from app.schemas.quiz.quiz_base import normalize_domain

logger = logging.getLogger(__name__)

QUESTION_CONTENT_FIELDS = (
    "sequence_order",
    "question_text",
    "interaction_type",
    "image_url",
    "instructions_text",
    "loader_text",
    "popup_question",
    "loader_bars",
    "result_page_config",
    "timeline_projection_config",
    "educational_box_title",
    "educational_box_text",
)


def get_quiz_content(db: Session, quiz_id: int) -> QuizContent:
    """
    Active questions and options of a live quiz, nested question -> options.

    Read-only. A question whose options are all archived is still returned, with an empty list.
    """
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise NotFoundError("Quiz not found")
    if not quiz.is_active:
        raise QuizInactiveError("Quiz is not active")

    rows = db.query(Question, AnswerOption).outerjoin(
        AnswerOption,
        and_(AnswerOption.question_id == Question.id, AnswerOption.is_archived.is_(False)),
    ).filter(
        Question.quiz_id == quiz_id,
        Question.is_archived.is_(False),
    ).order_by(Question.sequence_order, AnswerOption.id).all()

    questions = OrderedDict()
    for question, option in rows:
        if question.id not in questions:
            questions[question.id] = ContentQuestion(
                question_id=question.id,
                **{field: getattr(question, field) for field in QUESTION_CONTENT_FIELDS}
            )
        if option is not None:
            questions[question.id].options.append(ContentOption(
                option_id=option.id,
                option_text=option.option_text,
                associated_value=option.associated_value,
                option_image_url=option.option_image_url,
            ))

    logger.debug("Content for quiz %s: %s questions", quiz_id, len(questions))

    return QuizContent(
        quiz_id=quiz.id,
        quiz_name=quiz.quiz_name,
        product_page_url=quiz.product_page_url,
        brand_logo_url=quiz.brand_logo_url,
        color_primary=quiz.color_primary,
        color_secondary=quiz.color_secondary,
        color_text_default=quiz.color_text_default,
        color_text_hover=quiz.color_text_hover,
        questions=list(questions.values()),
    )


def get_quiz_by_domain(db: Session, domain: str) -> Optional[int]:
    normalized = normalize_domain(domain)
    if not normalized:
        return None
    row = db.query(Quiz.id).filter(Quiz.custom_domain == normalized, Quiz.is_active.is_(True)).first()
    return row[0] if row else None
