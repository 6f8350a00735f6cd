from datetime import datetime
from pydantic import BaseModel
from typing import Optional
from devforum.schemas.user import UserPublic


class NotificationResponse(BaseModel):
    id: int
    type: str
    message: str
    is_read: bool
    post_id: int
    comment_id: Optional[int] = None
    from_user_id: int
    from_user: Optional[UserPublic] = None
    created_at: datetime

    class Config:
        from_attributes = True


class UnreadCount(BaseModel):
    count: int
