from datetime import datetime

from app.schemas.users.user_base import UserBase


class UserOut(UserBase):
    id: int
    role: str
    is_active: bool
    email_verified: bool
    created_at: datetime

    class Config:
        from_attributes = True
