from sqlalchemy import Column, String, Text, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from tracker.database import Base, new_id, utcnow
from tracker.models.user import User
from tracker.models.attachment import Attachment

class Comment(Base):
    __tablename__ = "comments"

    id = Column(String(32), primary_key=True, default=new_id)
    content = Column(Text, nullable=False)
    author_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    issue_id = Column(String(32), ForeignKey("issues.id"), index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    author = relationship("User", lazy="selectin")
    issue = relationship("Issue", back_populates="comments", lazy="selectin")
    attachments = relationship(
        "Attachment",
        foreign_keys=[Attachment.comment_id],
        cascade="all",
        order_by=Attachment.created_at,
        lazy="selectin",
    )
