from datetime import datetime
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Enum, Boolean
from sqlalchemy.orm import relationship
from devforum.db.base import Base

NOTIFICATION_TYPES = ("comment", "comment_like", "comment_helpful", "like", "helpful")


class Notification(Base):
    __tablename__ = "notifications"
    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    type = Column(Enum(*NOTIFICATION_TYPES, name="notification_type"), nullable=False)
    post_id = Column(Integer, ForeignKey("posts.id"), nullable=False)
    comment_id = Column(Integer, nullable=True)
    from_user_id = Column(Integer, ForeignKey("users.id"), nullable=False)
    message = Column(String, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    user = relationship("User", back_populates="notifications", foreign_keys=[user_id])
    from_user = relationship("User", foreign_keys=[from_user_id])
