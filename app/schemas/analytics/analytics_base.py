import datetime
from typing import Optional

from pydantic import BaseModel


class DropRate(BaseModel):
    question_id: int
    question_text: Optional[str] = None
    reached_count: int
    answered_count: int
    drop_rate_percentage: float


class QuestionDetail(BaseModel):
    question_id: int
    question_text: Optional[str] = None
    interaction_type: str
    views: int
    answers: int
    answer_rate: float
    drop_rate: float
    avg_time_seconds: float


class AnswerDistribution(BaseModel):
    option_id: int
    option_text: str
    associated_value: str
    is_archived: bool
    selection_count: int
    percentage: float


class UtmPerformance(BaseModel):
    utm_source: str
    utm_campaign: str
    total_sessions: int
    completions: int
    completion_rate: float


class QuizStats(BaseModel):
    total_sessions: int
    total_completions: int
    completion_rate: float
    avg_questions_answered: float


class DailyActivity(BaseModel):
    date: datetime.date
    sessions: int
    completions: int
