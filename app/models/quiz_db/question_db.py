from sqlalchemy import Column, String, Integer, Boolean, Text, ForeignKey, Index, JSON
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import relationship
from app.core.database import Base

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Question(Base):
    __tablename__ = "questions"

    id = Column(Integer, primary_key=True, index=True)
    quiz_id = Column(Integer, ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True)
    sequence_order = Column(Integer, nullable=False)
    question_text = Column(Text, nullable=True)  # info screens have none
    interaction_type = Column(String(50), nullable=False)
    image_url = Column(String(500), nullable=True)
    instructions_text = Column(String(500), nullable=True)
    loader_text = Column(String(500), nullable=True)
    popup_question = Column(Text, nullable=True)
    loader_bars = Column(JSONType, nullable=True)
    result_page_config = Column(JSONType, nullable=True)
    timeline_projection_config = Column(JSONType, nullable=True)
    educational_box_title = Column(String(500), nullable=True)
    educational_box_text = Column(Text, nullable=True)
    is_archived = Column(Boolean, nullable=False, default=False)

    quiz = relationship("Quiz", back_populates="questions")
    options = relationship(
        "AnswerOption",
        back_populates="question",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="AnswerOption.id",
    )

    __table_args__ = (
        # archived questions keep their old order and must not block reuse of it
        Index(
            "unique_active_quiz_sequence",
            "quiz_id",
            "sequence_order",
            unique=True,
            postgresql_where=(is_archived.is_(False)),
            sqlite_where=(is_archived.is_(False)),
        ),
    )
