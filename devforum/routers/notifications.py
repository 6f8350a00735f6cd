from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from typing import List
from devforum.db.session import get_db
from devforum.db.models.user import User
from devforum.crud import notification as crud
from devforum.core.security import get_current_user
from devforum.schemas.notifications import NotificationResponse, UnreadCount

router = APIRouter()


# Get notifications
@router.get("/", response_model=List[NotificationResponse])
def get_notifications(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return crud.list_for_user(db, current_user.id)


@router.get("/unread-count", response_model=UnreadCount)
def get_unread_count(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    return {"count": crud.unread_count(db, current_user.id)}


@router.post("/mark-all-read")
def mark_all_notifications_read(
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    crud.mark_all_read(db, current_user.id)
    return {"success": True}


# Mark notification as read
@router.post("/{notification_id}/mark-read")
def mark_notification_read(
    notification_id: int,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    crud.mark_read(db, notification_id, current_user.id)
    return {"success": True}
