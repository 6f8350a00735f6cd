from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List
from devforum.schemas.user import UserPublic

class CommentUpdate(BaseModel):
    content: str

class CommentView(BaseModel):
    id: int
    post_id: int
    author: UserPublic
    content: str
    image_url: Optional[str] = None
    parent_id: Optional[int] = None
    created_at: datetime
    liked: bool = False
    helpful: bool = False
    like_count: int = 0
    helpful_count: int = 0

    class Config:
        from_attributes = True

class CommentThread(CommentView):
    replies: List["CommentThread"] = []

CommentThread.model_rebuild()
