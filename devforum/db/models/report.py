from datetime import datetime
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Enum, Index, text
from sqlalchemy.orm import relationship
from devforum.db.base import Base

REPORT_STATUSES = ("pending", "resolved")


class Report(Base):
    __tablename__ = "reports"

    id = Column(Integer, primary_key=True)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    reason = Column(Text, nullable=True)
    status = Column(Enum(*REPORT_STATUSES, name="report_status"), nullable=False, default="pending")
    created_at = Column(DateTime, default=datetime.utcnow)

    post = relationship("Post")
    user = relationship("User")

    # One pending report per (user, post); resolved ones may pile up
    __table_args__ = (
        Index(
            "uq_report_pending_user_post",
            "user_id",
            "post_id",
            unique=True,
            postgresql_where=text("status = 'pending'"),
            sqlite_where=text("status = 'pending'"),
        ),
    )
