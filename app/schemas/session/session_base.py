from typing import Any, Dict, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class SessionStart(BaseModel):
    quiz_id: int
    utm_params: Optional[Dict[str, Any]] = None


class SessionStartOut(BaseModel):
    session_id: UUID


class SessionUpdate(BaseModel):
    session_id: UUID
    last_question_id: int


class AnswerSubmit(BaseModel):
    session_id: UUID
    question_id: int
    selected_option_id: int


class AnswerOut(BaseModel):
    answer_id: UUID


class SessionComplete(BaseModel):
    session_id: UUID
    final_profile: Optional[str] = Field(None, max_length=255)


class SessionUtmOut(BaseModel):
    session_id: UUID
    utm_params: Optional[Dict[str, str]] = None
