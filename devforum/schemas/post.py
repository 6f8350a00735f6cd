from pydantic import BaseModel
from datetime import datetime
from typing import Optional, List
from devforum.schemas.user import UserPublic

class PostBase(BaseModel):
    title: str
    description: str = ""
    content: str
    code_snippet: Optional[str] = None
    tags: List[str] = []
    image_url: Optional[str] = None

class PostOut(PostBase):
    id: int
    author_id: int
    created_at: datetime

    class Config:
        from_attributes = True

class PostView(PostOut):
    author: UserPublic
    likes: int = 0
    helpful_count: int = 0
    comment_count: int = 0
    liked: bool = False
    helpful: bool = False
    saved: bool = False

class SaveState(BaseModel):
    saved: bool

class DeleteResult(BaseModel):
    success: bool
