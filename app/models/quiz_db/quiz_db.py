from datetime import datetime

from sqlalchemy import Column, String, Integer, Boolean, DateTime, BigInteger, ForeignKey
from sqlalchemy.orm import relationship
from app.core.database import Base


class Quiz(Base):
    __tablename__ = "quizzes"

    id = Column(Integer, primary_key=True, index=True)
    # a quiz belongs to a builder account or to a Shopify shop, never both
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)
    shop_id = Column(Integer, ForeignKey("shops.id", ondelete="SET NULL"), nullable=True, index=True)

    quiz_name = Column(String(255), nullable=False)
    product_page_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    brand_logo_url = Column(String(500), nullable=True)
    color_primary = Column(String(7), nullable=True)
    color_secondary = Column(String(7), nullable=True)
    color_text_default = Column(String(7), nullable=True)
    color_text_hover = Column(String(7), nullable=True)
    quiz_start_url = Column(String(500), nullable=True)
    custom_domain = Column(String(255), unique=True, nullable=True)
    shopify_page_id = Column(BigInteger, nullable=True)
    shopify_page_handle = Column(String(255), nullable=True)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    owner = relationship("User", back_populates="quizzes")
    shop = relationship("Shop", back_populates="quizzes")
    questions = relationship(
        "Question",
        back_populates="quiz",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="Question.sequence_order",
    )
    sessions = relationship("UserSession", back_populates="quiz", cascade="all, delete-orphan", passive_deletes=True)
