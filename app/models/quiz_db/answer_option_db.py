from sqlalchemy import Column, String, Integer, Boolean, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base


class AnswerOption(Base):
    __tablename__ = "answer_options"

    id = Column(Integer, primary_key=True, index=True)
    question_id = Column(Integer, ForeignKey("questions.id", ondelete="CASCADE"), nullable=False, index=True)
    option_text = Column(String(500), nullable=False)
    associated_value = Column(String(100), nullable=False)
    option_image_url = Column(String(500), nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)

    question = relationship("Question", back_populates="options")
