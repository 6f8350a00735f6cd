import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from devforum.core.exceptions import ConflictError, NotFoundError
from devforum.crud.post import get_post
from devforum.db.models.post import Post
from devforum.db.models.report import Report

logger = logging.getLogger(__name__)

DUPLICATE_REPORT = "You have already reported this post."


def create_report(db: Session, post_id: int, user_id: int, reason: Optional[str] = None) -> Report:
    get_post(db, post_id)

    existing = db.query(Report).filter(
        Report.post_id == post_id,
        Report.user_id == user_id,
        Report.status == "pending"
    ).first()
    if existing:
        raise ConflictError(DUPLICATE_REPORT)

    report = Report(post_id=post_id, user_id=user_id, reason=reason or None)
    db.add(report)
    try:
        db.commit()
    except IntegrityError:
        # Lost the race against a concurrent pending report
        db.rollback()
        raise ConflictError(DUPLICATE_REPORT)
    db.refresh(report)
    logger.info(f"Post {post_id} reported by user {user_id}")
    return report


def get_reports(db: Session, status: Optional[str] = None):
    query = db.query(Report).options(
        joinedload(Report.post).joinedload(Post.author),
        joinedload(Report.user)
    )
    if status:
        query = query.filter(Report.status == status)
    return query.order_by(Report.created_at.desc(), Report.id.desc()).all()


def update_status(db: Session, report_id: int, status: str) -> Report:
    report = db.query(Report).filter(Report.id == report_id).first()
    if not report:
        raise NotFoundError("Report not found")

    report.status = status
    try:
        db.commit()
    except IntegrityError:
        # Reopening would give the user two pending reports on the post
        db.rollback()
        raise ConflictError("A pending report for this post by this user already exists")
    db.refresh(report)
    return report
