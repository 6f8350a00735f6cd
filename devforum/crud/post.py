import json
import logging
from typing import List, Optional

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from devforum.core import storage
from devforum.core.exceptions import ForbiddenError, InvalidInputError, NotFoundError
from devforum.crud.comment import author_payload
from devforum.crud.reaction import count_by_target, reacted_target_ids
from devforum.db.models.comment import Comment
from devforum.db.models.like import CommentHelpful, CommentLike, PostHelpful, PostLike
from devforum.db.models.notifications import Notification
from devforum.db.models.post import Post
from devforum.db.models.report import Report
from devforum.db.models.saved_post import SavedPost

logger = logging.getLogger(__name__)


def parse_tags(raw: Optional[str]) -> List[str]:
    """Tags arrive as a JSON array of strings in a form field."""
    if not raw:
        return []
    try:
        tags = json.loads(raw)
    except json.JSONDecodeError:
        raise InvalidInputError("Tags must be a JSON array of strings")
    if not isinstance(tags, list) or not all(isinstance(tag, str) for tag in tags):
        raise InvalidInputError("Tags must be a JSON array of strings")
    return tags


def to_views(db: Session, posts: List[Post], viewer_id: Optional[int] = None) -> List[dict]:
    ids = [p.id for p in posts]
    likes = count_by_target(db, "post_like", ids)
    helpfuls = count_by_target(db, "post_helpful", ids)
    liked = reacted_target_ids(db, "post_like", ids, viewer_id)
    helpful = reacted_target_ids(db, "post_helpful", ids, viewer_id)

    comment_counts = {}
    saved = set()
    if ids:
        comment_counts = dict(
            db.query(Comment.post_id, func.count(Comment.id))
            .filter(Comment.post_id.in_(ids))
            .group_by(Comment.post_id)
            .all()
        )
        if viewer_id is not None:
            saved = {
                row[0] for row in db.query(SavedPost.post_id)
                .filter(SavedPost.post_id.in_(ids), SavedPost.user_id == viewer_id)
                .all()
            }

    return [
        {
            "id": p.id,
            "author_id": p.author_id,
            "author": author_payload(p.author),
            "title": p.title,
            "description": p.description,
            "content": p.content,
            "code_snippet": p.code_snippet,
            "tags": p.tags or [],
            "image_url": p.image_url,
            "created_at": p.created_at,
            "likes": likes.get(p.id, 0),
            "helpful_count": helpfuls.get(p.id, 0),
            "comment_count": comment_counts.get(p.id, 0),
            "liked": p.id in liked,
            "helpful": p.id in helpful,
            "saved": p.id in saved,
        }
        for p in posts
    ]


def get_post(db: Session, post_id: int) -> Post:
    post = db.query(Post).filter(Post.id == post_id).first()
    if not post:
        raise NotFoundError("Post not found")
    return post


def get_post_view(db: Session, post_id: int, viewer_id: Optional[int] = None) -> dict:
    return to_views(db, [get_post(db, post_id)], viewer_id)[0]


def get_posts(db: Session, viewer_id: Optional[int] = None, skip: int = 0, limit: int = 10) -> List[dict]:
    posts = db.query(Post)\
        .options(joinedload(Post.author))\
        .order_by(Post.created_at.desc(), Post.id.desc())\
        .offset(skip)\
        .limit(limit)\
        .all()
    return to_views(db, posts, viewer_id)


def create_post(
    db: Session,
    author_id: int,
    title: Optional[str],
    content: Optional[str],
    description: Optional[str] = None,
    code_snippet: Optional[str] = None,
    tags: Optional[List[str]] = None,
    image_data: Optional[dict] = None,
) -> Post:
    if not title or not title.strip() or not content or not content.strip():
        raise InvalidInputError("Missing required fields")

    post = Post(
        author_id=author_id,
        title=title,
        description=description or "",
        content=content,
        code_snippet=code_snippet or None,
        tags=tags or [],
        **(image_data or {})
    )
    db.add(post)
    db.commit()
    db.refresh(post)
    return post


def update_post(
    db: Session,
    post_id: int,
    requester_id: int,
    changes: dict,
    image_data: Optional[dict] = None,
) -> Post:
    """Apply the non-None fields in ``changes``; a new image replaces the old one."""
    post = get_post(db, post_id)
    if post.author_id != requester_id:
        raise ForbiddenError("Not authorized")

    for key, value in changes.items():
        if value is None:
            continue
        if key in ("title", "content") and not value.strip():
            raise InvalidInputError(f"{key.capitalize()} cannot be empty")
        setattr(post, key, value)

    old_public_id = None
    if image_data:
        old_public_id = post.image_public_id
        post.image_url = image_data["image_url"]
        post.image_public_id = image_data["image_public_id"]

    db.commit()
    db.refresh(post)

    if old_public_id:
        storage.destroy_image(old_public_id)
    return post


def delete_post(db: Session, post_id: int, requester_id: int):
    """Delete a post after removing every row that references it."""
    post = get_post(db, post_id)
    if post.author_id != requester_id:
        raise ForbiddenError("Not authorized")

    image_public_id = post.image_public_id
    comment_ids = select(Comment.id).where(Comment.post_id == post_id)

    db.query(SavedPost).filter(SavedPost.post_id == post_id).delete(synchronize_session=False)
    db.query(PostLike).filter(PostLike.post_id == post_id).delete(synchronize_session=False)
    db.query(PostHelpful).filter(PostHelpful.post_id == post_id).delete(synchronize_session=False)
    db.query(CommentLike).filter(CommentLike.comment_id.in_(comment_ids)).delete(synchronize_session=False)
    db.query(CommentHelpful).filter(CommentHelpful.comment_id.in_(comment_ids)).delete(synchronize_session=False)
    db.query(Comment).filter(Comment.post_id == post_id).delete(synchronize_session=False)
    db.query(Report).filter(Report.post_id == post_id).delete(synchronize_session=False)
    db.query(Notification).filter(Notification.post_id == post_id).delete(synchronize_session=False)
    db.delete(post)
    db.commit()
    logger.info(f"Post {post_id} deleted by user {requester_id}")

    storage.destroy_image(image_public_id)


def save_post(db: Session, post_id: int, user_id: int) -> bool:
    get_post(db, post_id)

    existing = db.query(SavedPost).filter(
        SavedPost.user_id == user_id,
        SavedPost.post_id == post_id
    ).first()
    if existing:
        return True

    db.add(SavedPost(user_id=user_id, post_id=post_id))
    try:
        db.commit()
    except IntegrityError:
        # Saved by a concurrent request
        db.rollback()
    return True


def unsave_post(db: Session, post_id: int, user_id: int) -> bool:
    db.query(SavedPost).filter(
        SavedPost.user_id == user_id,
        SavedPost.post_id == post_id
    ).delete(synchronize_session=False)
    db.commit()
    return False


def get_saved_posts(db: Session, user_id: int) -> List[dict]:
    posts = db.query(Post)\
        .join(SavedPost, Post.id == SavedPost.post_id)\
        .options(joinedload(Post.author))\
        .filter(SavedPost.user_id == user_id)\
        .order_by(SavedPost.created_at.desc(), SavedPost.id.desc())\
        .all()
    return to_views(db, posts, user_id)


def get_liked_posts(db: Session, user_id: int) -> List[dict]:
    posts = db.query(Post)\
        .join(PostLike, Post.id == PostLike.post_id)\
        .options(joinedload(Post.author))\
        .filter(PostLike.user_id == user_id)\
        .order_by(PostLike.id.desc())\
        .all()
    return to_views(db, posts, user_id)
