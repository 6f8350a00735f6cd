import logging
from collections import defaultdict
from typing import List, Optional

from sqlalchemy.orm import Session, joinedload

from devforum.core import storage
from devforum.core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from devforum.crud import notification as notifications
from devforum.crud.reaction import count_by_target, reacted_target_ids
from devforum.db.models.comment import Comment
from devforum.db.models.like import CommentHelpful, CommentLike
from devforum.db.models.notifications import Notification
from devforum.db.models.post import Post

logger = logging.getLogger(__name__)


def author_payload(user) -> dict:
    return {"id": user.id, "name": user.name, "avatar_url": user.avatar_url}


def to_views(db: Session, comments: List[Comment], viewer_id: Optional[int] = None) -> List[dict]:
    ids = [c.id for c in comments]
    like_counts = count_by_target(db, "comment_like", ids)
    helpful_counts = count_by_target(db, "comment_helpful", ids)
    liked = reacted_target_ids(db, "comment_like", ids, viewer_id)
    helpful = reacted_target_ids(db, "comment_helpful", ids, viewer_id)

    return [
        {
            "id": c.id,
            "post_id": c.post_id,
            "author": author_payload(c.author),
            "content": c.content,
            "image_url": c.image_url,
            "parent_id": c.parent_id,
            "created_at": c.created_at,
            "liked": c.id in liked,
            "helpful": c.id in helpful,
            "like_count": like_counts.get(c.id, 0),
            "helpful_count": helpful_counts.get(c.id, 0),
        }
        for c in comments
    ]


def get_comment(db: Session, comment_id: int) -> Comment:
    comment = db.query(Comment).filter(Comment.id == comment_id).first()
    if not comment:
        raise NotFoundError("Comment not found")
    return comment


def list_comments(db: Session, post_id: int, viewer_id: Optional[int] = None) -> List[dict]:
    """Flat comment list for a post.

    Top-level comments come first, replies follow grouped by parent id,
    each group in creation order.
    """
    comments = db.query(Comment)\
        .options(joinedload(Comment.author))\
        .filter(Comment.post_id == post_id)\
        .order_by(
            Comment.parent_id.is_not(None),
            Comment.parent_id.asc(),
            Comment.created_at.asc(),
            Comment.id.asc()
        )\
        .all()
    return to_views(db, comments, viewer_id)


def build_thread(comments: List[dict]) -> List[dict]:
    """Nest a flat comment list into top-level comments with recursive replies.

    Sibling order follows the input order. Replies whose parent is not in
    the list are left out, and a comment is never placed twice, so cycles
    terminate.
    """
    children = defaultdict(list)
    for comment in comments:
        children[comment["parent_id"]].append(comment)

    placed = set()

    def attach(comment):
        placed.add(comment["id"])
        node = dict(comment)
        node["replies"] = [
            attach(reply) for reply in children.get(comment["id"], [])
            if reply["id"] not in placed
        ]
        return node

    return [attach(comment) for comment in children.get(None, [])]


def create_comment(
    db: Session,
    post_id: int,
    author_id: int,
    content: Optional[str],
    parent_id: Optional[int] = None,
    image_data: Optional[dict] = None,
) -> Comment:
    if not content or not content.strip():
        raise InvalidInputError("Content is required")

    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")

    if parent_id is not None:
        parent = db.query(Comment).filter(Comment.id == parent_id).first()
        if not parent or parent.post_id != post_id:
            raise InvalidInputError("Invalid parent comment")

    comment = Comment(
        post_id=post_id,
        author_id=author_id,
        content=content,
        parent_id=parent_id,
        **(image_data or {})
    )
    db.add(comment)
    db.commit()
    db.refresh(comment)

    if post.author_id != author_id:
        notifications.emit(
            db,
            user_id=post.author_id,
            type="comment",
            post_id=post.id,
            comment_id=comment.id,
            from_user_id=author_id,
            message="Someone commented on your post.",
        )

    return comment


def update_comment(db: Session, comment_id: int, requester_id: int, content: str) -> Comment:
    comment = get_comment(db, comment_id)
    if comment.author_id != requester_id:
        raise ForbiddenError("Not authorized to edit this comment")
    if not content or not content.strip():
        raise InvalidInputError("Content is required")

    comment.content = content
    db.commit()
    db.refresh(comment)
    return comment


def delete_comment(db: Session, comment_id: int, requester_id: int):
    """Delete a comment, its reactions and notifications about it. Replies are left in place."""
    comment = get_comment(db, comment_id)
    if comment.author_id != requester_id:
        raise ForbiddenError("Not authorized to delete this comment")

    image_public_id = comment.image_public_id
    db.query(CommentLike).filter(CommentLike.comment_id == comment_id).delete(synchronize_session=False)
    db.query(CommentHelpful).filter(CommentHelpful.comment_id == comment_id).delete(synchronize_session=False)
    db.query(Notification).filter(Notification.comment_id == comment_id).delete(synchronize_session=False)
    db.delete(comment)
    db.commit()
    logger.info(f"Comment {comment_id} deleted by user {requester_id}")
    storage.destroy_image(image_public_id)
