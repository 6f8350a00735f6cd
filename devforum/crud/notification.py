import logging
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from devforum.core.exceptions import NotFoundError
from devforum.db.models.notifications import Notification

logger = logging.getLogger(__name__)


def emit(
    db: Session,
    *,
    user_id: int,
    type: str,
    post_id: int,
    from_user_id: int,
    message: str,
    comment_id: Optional[int] = None,
) -> Optional[Notification]:
    """Best-effort notification write.

    Runs after the originating action has been committed. A failure is
    rolled back and logged, never raised, so the caller's action stands.
    """
    try:
        notification = Notification(
            user_id=user_id,
            type=type,
            post_id=post_id,
            comment_id=comment_id,
            from_user_id=from_user_id,
            message=message,
        )
        db.add(notification)
        db.commit()
        db.refresh(notification)
        return notification
    except SQLAlchemyError as e:
        db.rollback()
        logger.error(f"Failed to create {type} notification for user {user_id}: {str(e)}", exc_info=True)
        return None


def list_for_user(db: Session, user_id: int):
    return db.query(Notification)\
        .options(joinedload(Notification.from_user))\
        .filter(Notification.user_id == user_id)\
        .order_by(Notification.created_at.desc(), Notification.id.desc())\
        .all()


def unread_count(db: Session, user_id: int) -> int:
    return db.query(Notification)\
        .filter(Notification.user_id == user_id, Notification.is_read == False)\
        .count()


def mark_read(db: Session, notification_id: int, user_id: int):
    notification = db.query(Notification)\
        .filter(Notification.id == notification_id,
                Notification.user_id == user_id)\
        .first()
    if not notification:
        raise NotFoundError("Notification not found")

    notification.is_read = True
    db.commit()
    return notification


def mark_all_read(db: Session, user_id: int) -> int:
    updated = db.query(Notification)\
        .filter(Notification.user_id == user_id, Notification.is_read == False)\
        .update({Notification.is_read: True}, synchronize_session=False)
    db.commit()
    return updated
