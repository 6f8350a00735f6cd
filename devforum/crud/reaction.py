"""Toggle-style reactions (like / helpful) on posts and comments.

A reaction is a join row keyed by (user, target); its presence is the
"on" state. Counts are always read back from the join table.
"""
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from devforum.core.exceptions import NotFoundError
from devforum.crud import notification as notifications
from devforum.db.models.comment import Comment
from devforum.db.models.like import CommentHelpful, CommentLike, PostHelpful, PostLike
from devforum.db.models.post import Post

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReactionKind:
    model: type
    target_model: type
    target_column: str
    notification_type: str
    message: str

    @property
    def join_column(self):
        return getattr(self.model, self.target_column)


REACTIONS = {
    "post_like": ReactionKind(PostLike, Post, "post_id", "like", "Your post was liked."),
    "post_helpful": ReactionKind(PostHelpful, Post, "post_id", "helpful", "Your post was marked helpful."),
    "comment_like": ReactionKind(CommentLike, Comment, "comment_id", "comment_like", "Someone liked your comment."),
    "comment_helpful": ReactionKind(
        CommentHelpful, Comment, "comment_id", "comment_helpful", "Someone marked your comment as helpful."
    ),
}


@dataclass
class ToggleResult:
    active: bool
    count: int


def _has_reacted(db: Session, kind: ReactionKind, user_id: int, target_id: int) -> bool:
    return db.query(kind.model).filter(
        kind.model.user_id == user_id,
        kind.join_column == target_id
    ).first() is not None


def count_for(db: Session, kind: ReactionKind, target_id: int) -> int:
    return db.query(func.count(kind.model.id)).filter(kind.join_column == target_id).scalar() or 0


def count_by_target(db: Session, kind_name: str, target_ids: Iterable[int]) -> dict:
    kind = REACTIONS[kind_name]
    ids = list(target_ids)
    if not ids:
        return {}
    rows = db.query(kind.join_column, func.count(kind.model.id))\
        .filter(kind.join_column.in_(ids))\
        .group_by(kind.join_column)\
        .all()
    return {target_id: count for target_id, count in rows}


def reacted_target_ids(db: Session, kind_name: str, target_ids: Iterable[int], user_id: Optional[int]) -> set:
    kind = REACTIONS[kind_name]
    ids = list(target_ids)
    if user_id is None or not ids:
        return set()
    rows = db.query(kind.join_column)\
        .filter(kind.join_column.in_(ids), kind.model.user_id == user_id)\
        .all()
    return {row[0] for row in rows}


def toggle(db: Session, user_id: int, target_id: int, kind_name: str) -> ToggleResult:
    kind = REACTIONS[kind_name]
    target = db.query(kind.target_model).filter(kind.target_model.id == target_id).first()
    if not target:
        raise NotFoundError(f"{kind.target_model.__name__} not found")

    inserted = False
    if _has_reacted(db, kind, user_id, target_id):
        # Bulk delete by key: a concurrent toggle that already removed the row is a no-op
        db.query(kind.model).filter(
            kind.model.user_id == user_id,
            kind.join_column == target_id
        ).delete(synchronize_session=False)
        db.commit()
        active = False
    else:
        db.add(kind.model(user_id=user_id, **{kind.target_column: target_id}))
        try:
            db.commit()
            active = inserted = True
        except IntegrityError:
            # Another request inserted the same (user, target) row first
            db.rollback()
            logger.info(f"Concurrent {kind_name} toggle by user {user_id} on {target_id}; reading state")
            active = _has_reacted(db, kind, user_id, target_id)

    count = count_for(db, kind, target_id)

    # Only the request that actually inserted the row notifies
    if inserted and target.author_id != user_id:
        if isinstance(target, Comment):
            post_id, comment_id = target.post_id, target.id
        else:
            post_id, comment_id = target.id, None
        notifications.emit(
            db,
            user_id=target.author_id,
            type=kind.notification_type,
            post_id=post_id,
            comment_id=comment_id,
            from_user_id=user_id,
            message=kind.message,
        )

    return ToggleResult(active=active, count=count)
