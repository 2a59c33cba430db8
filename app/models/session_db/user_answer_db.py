import uuid
from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey, Uuid
from sqlalchemy.orm import relationship
from app.core.database import Base


class UserAnswer(Base):
    __tablename__ = "user_answers"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    session_id = Column(Uuid(as_uuid=True), ForeignKey("user_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    selected_option_id = Column(Integer, ForeignKey("answer_options.id", ondelete="CASCADE"), nullable=False, index=True)
    answered_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    session = relationship("UserSession", back_populates="answers")
