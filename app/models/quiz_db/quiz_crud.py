import logging
from typing import Dict, List, Optional, Tuple

from sqlalchemy import case, func
from sqlalchemy.orm import Session
from app.core.config import settings
from app.core.database import transaction
from app.core.exceptions import AuthorizationError, ConflictError, ExternalServiceError, NotFoundError, \
    ValidationError
from app.models.quiz_db.answer_option_db import AnswerOption
from app.models.quiz_db.question_db import Question
from app.models.quiz_db.quiz_db import Quiz
from app.models.session_db.session_db import UserSession
from app.models.session_db.user_answer_db import UserAnswer
from app.models.shop_db.shop_db import Shop
from app.models.user_db.user_db import User
from app.schemas.quiz.quiz_base import AnswerOptionIn, QuestionIn, QuizBase, QuizCreate, QuizOut, QuizSummary, \
    QuizUpdate, continue_option, slugify_value
from app.services.interaction_types import is_interactive
from app.services.shopify import ShopifyPagesClient, page_handle, render_quiz_iframe

logger = logging.getLogger(__name__)

QUIZ_FIELDS = (
    "quiz_name",
    "product_page_url",
    "is_active",
    "brand_logo_url",
    "color_primary",
    "color_secondary",
    "color_text_default",
    "color_text_hover",
    "custom_domain",
)

QUESTION_FIELDS = (
    "sequence_order",
    "question_text",
    "image_url",
    "instructions_text",
    "loader_text",
    "popup_question",
    "loader_bars",
    "result_page_config",
    "educational_box_title",
    "educational_box_text",
)


# Ownership
def get_owned_quiz(db: Session, quiz_id: int, caller: User) -> Quiz:
    quiz = db.query(Quiz).filter(Quiz.id == quiz_id).first()
    if not quiz:
        raise NotFoundError("Quiz not found")
    if not caller.is_admin and quiz.user_id != caller.id:
        raise AuthorizationError("You do not have access to this quiz")
    return quiz


def hydrate_quiz(quiz: Quiz) -> QuizOut:
    """Quiz with its active questions and options only."""
    out = QuizOut.model_validate(quiz)
    archived_questions = {q.id for q in quiz.questions if q.is_archived}
    archived_options = {o.id for q in quiz.questions for o in q.options if o.is_archived}

    out.questions = sorted(
        (q for q in out.questions if q.id not in archived_questions),
        key=lambda q: q.sequence_order,
    )
    for question in out.questions:
        question.options = [o for o in question.options if o.id not in archived_options]
    return out


# Field mapping
def _apply_quiz_fields(quiz: Quiz, payload: QuizBase):
    for field in QUIZ_FIELDS:
        setattr(quiz, field, getattr(payload, field))


def _apply_question_fields(question: Question, payload: QuestionIn):
    for field in QUESTION_FIELDS:
        setattr(question, field, getattr(payload, field))
    question.interaction_type = payload.interaction_type.value
    question.timeline_projection_config = (
        payload.timeline_projection_config.model_dump() if payload.timeline_projection_config else None
    )


def _new_option(payload: AnswerOptionIn) -> AnswerOption:
    return AnswerOption(
        option_text=payload.option_text,
        associated_value=payload.associated_value or slugify_value(payload.option_text),
        option_image_url=payload.option_image_url,
        is_archived=False,
    )


def _new_question(quiz_id: int, payload: QuestionIn) -> Question:
    question = Question(quiz_id=quiz_id, is_archived=False)
    _apply_question_fields(question, payload)
    question.options = [_new_option(o) for o in payload.options]
    return question


def _ensure_domain_free(db: Session, domain: Optional[str], quiz_id: Optional[int] = None):
    if not domain:
        return
    query = db.query(Quiz.id).filter(Quiz.custom_domain == domain)
    if quiz_id is not None:
        query = query.filter(Quiz.id != quiz_id)
    if query.first():
        raise ConflictError(f"Custom domain {domain} is already in use")


# Shopify page linkage (best-effort)
def _shop_pages(db: Session, quiz: Quiz, pages_client=None) -> Tuple[Optional[Shop], Optional[ShopifyPagesClient]]:
    if not quiz.shop_id:
        return None, None
    shop = db.query(Shop).filter(Shop.id == quiz.shop_id).first()
    if not shop or not shop.is_installed:
        return None, None
    return shop, pages_client or ShopifyPagesClient(shop.shop_domain, shop.access_token)


def _sync_shopify_page(db: Session, quiz: Quiz, pages_client=None):
    shop, client = _shop_pages(db, quiz, pages_client)
    if not client:
        return

    body = render_quiz_iframe(quiz.id, shop.shop_domain)
    with client:
        try:
            if quiz.shopify_page_id:
                client.update_page(quiz.shopify_page_id, title=quiz.quiz_name, body_html=body)
                return
            page_id, handle = client.create_page(quiz.quiz_name, body, page_handle(quiz.id))
        except ExternalServiceError as e:
            logger.warning("Shopify page sync failed for quiz %s: %s", quiz.id, e.message)
            return

    with transaction(db):
        quiz.shopify_page_id = page_id
        quiz.shopify_page_handle = handle


# Create
def create_quiz(db: Session, payload: QuizCreate, user_id: Optional[int], shop_id: Optional[int] = None,
                pages_client=None) -> QuizOut:
    with transaction(db):
        if shop_id is not None:
            if not db.query(Shop.id).filter(Shop.id == shop_id).first():
                raise NotFoundError("Shop not found")
            user_id = None
        _ensure_domain_free(db, payload.custom_domain)

        quiz = Quiz(user_id=user_id, shop_id=shop_id)
        _apply_quiz_fields(quiz, payload)
        db.add(quiz)
        db.flush()
        quiz.quiz_start_url = f"{settings.FRONTEND_URL.rstrip('/')}/quiz/{quiz.id}"

        for question_in in payload.questions:
            db.add(_new_question(quiz.id, question_in))
            db.flush()

    logger.info("Quiz %s created with %s questions", quiz.id, len(payload.questions))

    _sync_shopify_page(db, quiz, pages_client)
    return hydrate_quiz(quiz)


# Read
def get_quiz_for_editing(db: Session, quiz_id: int, caller: User) -> QuizOut:
    return hydrate_quiz(get_owned_quiz(db, quiz_id, caller))


# Edit
def _answered_option_ids(db: Session, option_ids: List[int]) -> set:
    if not option_ids:
        return set()
    rows = db.query(UserAnswer.selected_option_id).filter(
        UserAnswer.selected_option_id.in_(option_ids)
    ).distinct().all()
    return {row[0] for row in rows}


def _keep_screen_option(db: Session, question: Question):
    """A non-interactive screen sent without options keeps (or gets back) its single option."""
    if any(not o.is_archived for o in question.options):
        return
    if question.options:
        question.options[0].is_archived = False
    else:
        question.options.append(_new_option(continue_option()))
    db.flush()


def _reconcile_options(db: Session, question: Question, incoming: List[AnswerOptionIn]):
    if not incoming and not is_interactive(question.interaction_type):
        _keep_screen_option(db, question)
        return

    current: Dict[int, AnswerOption] = {o.id: o for o in question.options}
    incoming_ids = [o.id for o in incoming if o.id is not None]

    unknown = [option_id for option_id in incoming_ids if option_id not in current]
    if unknown:
        raise ValidationError(f"Options {unknown} do not belong to question {question.id}")

    removed = [o for o in current.values() if o.id not in incoming_ids and not o.is_archived]
    answered = _answered_option_ids(db, [o.id for o in removed])
    for option in removed:
        if option.id in answered:
            option.is_archived = True
        else:
            question.options.remove(option)

    for option_in in incoming:
        if option_in.id is None:
            question.options.append(_new_option(option_in))
            continue
        option = current[option_in.id]
        option.option_text = option_in.option_text
        option.option_image_url = option_in.option_image_url
        option.is_archived = False
        # recorded answers point at this value; only replace it when asked to
        if option_in.associated_value:
            option.associated_value = option_in.associated_value

    db.flush()


def update_quiz(db: Session, quiz_id: int, payload: QuizUpdate, caller: User, pages_client=None) -> QuizOut:
    with transaction(db):
        quiz = get_owned_quiz(db, quiz_id, caller)
        _ensure_domain_free(db, payload.custom_domain, quiz.id)
        _apply_quiz_fields(quiz, payload)

        existing: Dict[int, Question] = {
            q.id: q for q in db.query(Question).filter(Question.quiz_id == quiz.id).all()
        }
        incoming_ids = [q.id for q in payload.questions if q.id is not None]
        if len(incoming_ids) != len(set(incoming_ids)):
            raise ValidationError("A question id appears more than once")
        unknown = [question_id for question_id in incoming_ids if question_id not in existing]
        if unknown:
            raise ValidationError(f"Questions {unknown} do not belong to this quiz")

        # archive what the payload dropped, options included
        archived = 0
        for question in existing.values():
            if question.id not in incoming_ids and not question.is_archived:
                question.is_archived = True
                for option in question.options:
                    option.is_archived = True
                archived += 1
        db.flush()

        # park survivors on -id so the final orders can be written in any permutation
        for question_id in incoming_ids:
            existing[question_id].sequence_order = -question_id
            existing[question_id].is_archived = False
        db.flush()

        for question_in in payload.questions:
            if question_in.id is None:
                db.add(_new_question(quiz.id, question_in))
                db.flush()
                continue
            question = existing[question_in.id]
            _apply_question_fields(question, question_in)
            db.flush()
            _reconcile_options(db, question, question_in.options)

        has_content = db.query(Question.id).join(
            AnswerOption, AnswerOption.question_id == Question.id
        ).filter(
            Question.quiz_id == quiz.id,
            Question.is_archived.is_(False),
            AnswerOption.is_archived.is_(False),
        ).first()
        if not has_content:
            raise ValidationError("quiz would have no active content")

    logger.info("Quiz %s updated (%s questions, %s archived)", quiz_id, len(payload.questions), archived)

    _sync_shopify_page(db, quiz, pages_client)
    return hydrate_quiz(quiz)


# Delete
def delete_quiz(db: Session, quiz_id: int, caller: User, pages_client=None) -> None:
    quiz = get_owned_quiz(db, quiz_id, caller)

    if quiz.shopify_page_id:
        _, client = _shop_pages(db, quiz, pages_client)
        if client:
            with client:
                try:
                    client.delete_page(quiz.shopify_page_id)
                except ExternalServiceError as e:
                    logger.warning("Could not delete Shopify page %s for quiz %s: %s",
                                   quiz.shopify_page_id, quiz_id, e.message)

    with transaction(db):
        db.delete(quiz)

    logger.info("Quiz %s deleted", quiz_id)


# Summary
def get_quiz_summaries(db: Session, caller: User, show_all: bool = False, page: int = 1,
                       size: int = 20) -> Tuple[int, List[QuizSummary]]:
    sessions = db.query(
        UserSession.quiz_id.label("quiz_id"),
        func.count(UserSession.id).label("starts"),
        func.sum(case((UserSession.is_completed.is_(True), 1), else_=0)).label("completions"),
    ).group_by(UserSession.quiz_id).subquery()

    questions = db.query(
        Question.quiz_id.label("quiz_id"),
        func.count(Question.id).label("active_questions"),
    ).filter(Question.is_archived.is_(False)).group_by(Question.quiz_id).subquery()

    query = db.query(
        Quiz,
        func.coalesce(sessions.c.starts, 0),
        func.coalesce(sessions.c.completions, 0),
        func.coalesce(questions.c.active_questions, 0),
    ).outerjoin(sessions, sessions.c.quiz_id == Quiz.id).outerjoin(questions, questions.c.quiz_id == Quiz.id)

    if not (show_all and caller.is_admin):
        query = query.filter(Quiz.user_id == caller.id)

    total = query.count()
    rows = query.order_by(Quiz.created_at.desc(), Quiz.id.desc()).offset((page - 1) * size).limit(size).all()

    items = []
    for quiz, starts, completions, active_questions in rows:
        starts, completions = int(starts), int(completions)
        items.append(QuizSummary(
            quiz_id=quiz.id,
            quiz_name=quiz.quiz_name,
            product_page_url=quiz.product_page_url,
            is_active=quiz.is_active,
            created_at=quiz.created_at,
            user_id=quiz.user_id,
            total_starts=starts,
            total_completions=completions,
            completion_rate=round(completions * 100.0 / starts, 2) if starts else 0.0,
            active_questions=int(active_questions),
        ))
    return total, items
