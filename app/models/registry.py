"""Imports every mapped class so relationship strings resolve and Base.metadata is complete."""
from app.models.user_db.user_db import User  # noqa: F401
from app.models.token_db.token_db import RefreshToken, EmailToken  # noqa: F401
from app.models.shop_db.shop_db import Shop  # noqa: F401
from app.models.quiz_db.quiz_db import Quiz  # noqa: F401
from app.models.quiz_db.question_db import Question  # noqa: F401
from app.models.quiz_db.answer_option_db import AnswerOption  # noqa: F401
from app.models.session_db.session_db import UserSession  # noqa: F401
from app.models.session_db.user_answer_db import UserAnswer  # noqa: F401
