from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel
from devforum.schemas.user import UserPublic


class ReportCreate(BaseModel):
    post_id: int
    reason: Optional[str] = None


class ReportReason(BaseModel):
    reason: Optional[str] = None


class ReportStatusUpdate(BaseModel):
    status: Literal["pending", "resolved"]


class ReportOut(BaseModel):
    id: int
    post_id: int
    user_id: int
    reason: Optional[str] = None
    status: str
    created_at: datetime

    class Config:
        from_attributes = True


class ReportedPost(BaseModel):
    id: int
    title: str
    author: UserPublic

    class Config:
        from_attributes = True


class AdminReportOut(ReportOut):
    post: ReportedPost
    user: UserPublic
