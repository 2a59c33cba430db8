from datetime import datetime

from sqlalchemy import Column, String, Integer, DateTime, Text
from sqlalchemy.orm import relationship
from app.core.database import Base


class Shop(Base):
    __tablename__ = "shops"

    id = Column(Integer, primary_key=True, index=True)
    shop_domain = Column(String(255), unique=True, nullable=False)  # mystore.myshopify.com
    access_token = Column(Text, nullable=False)
    installed_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    uninstalled_at = Column(DateTime, nullable=True)

    quizzes = relationship("Quiz", back_populates="shop")

    @property
    def is_installed(self) -> bool:
        return self.uninstalled_at is None
