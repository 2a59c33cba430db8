import uuid
from datetime import datetime

from sqlalchemy import Column, String, Integer, Boolean, DateTime, ForeignKey, JSON, Uuid
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.core.database import Base


class UserSession(Base):
    __tablename__ = "user_sessions"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    started_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)
    last_question_viewed = Column(Integer, ForeignKey("questions.id", ondelete="SET NULL"), nullable=True)
    is_completed = Column(Boolean, nullable=False, default=False)
    final_profile = Column(String(255), nullable=True)
    utm_params = Column(JSON().with_variant(JSONB(), "postgresql"), nullable=True)

    quiz = relationship("Quiz", back_populates="sessions")
    answers = relationship(
        "UserAnswer",
        back_populates="session",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="UserAnswer.answered_at",
    )
