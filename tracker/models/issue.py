from sqlalchemy import Column, String, Text, DateTime, ForeignKey, JSON
from sqlalchemy.orm import relationship
from tracker.database import Base, new_id, utcnow
from tracker.models.user import User
from tracker.models.project import Project
from tracker.models.attachment import Attachment
from tracker.models.comment import Comment

class Issue(Base):
    __tablename__ = "issues"

    id = Column(String(32), primary_key=True, default=new_id)
    key = Column(String(40), unique=True, index=True, nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=False)
    status = Column(String(20), default="todo", nullable=False)  # todo/inprogress/done
    priority = Column(String(20), default="medium", nullable=False)  # low/medium/high/urgent
    reporter_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    assignee_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=True)
    project_id = Column(String(32), ForeignKey("projects.id"), index=True, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    due_date = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    reporter = relationship("User", foreign_keys=[reporter_id], lazy="selectin")
    assignee = relationship("User", foreign_keys=[assignee_id], lazy="selectin")
    project = relationship("Project", lazy="selectin")
    comments = relationship(
        "Comment",
        back_populates="issue",
        cascade="all, delete-orphan",
        order_by=Comment.created_at,
        lazy="selectin",
    )
    attachments = relationship(
        "Attachment",
        foreign_keys=[Attachment.issue_id],
        cascade="all",
        order_by=Attachment.created_at,
        lazy="selectin",
    )
