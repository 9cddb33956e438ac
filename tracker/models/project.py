from datetime import timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Table, JSON, event
from sqlalchemy.orm import relationship, Session
from tracker.database import Base, new_id, utcnow
from tracker.models.user import User


project_members = Table(
    "project_members",
    Base.metadata,
    Column("project_id", String(32), ForeignKey("projects.id", ondelete="CASCADE"), primary_key=True),
    Column("user_id", String(32), ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
)


class Project(Base):
    __tablename__ = "projects"

    id = Column(String(32), primary_key=True, default=new_id)
    name = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    key = Column(String(20), unique=True, index=True, nullable=False)
    owner_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    # last issue number handed out; bumped atomically on issue creation
    issue_seq = Column(Integer, default=0, nullable=False)
    settings = Column(JSON, default=dict, nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    owner = relationship("User", foreign_keys=[owner_id], lazy="selectin")
    members = relationship("User", secondary=project_members, lazy="selectin")
    invites = relationship(
        "ProjectInvite",
        cascade="all, delete-orphan",
        order_by="ProjectInvite.created_at",
        lazy="selectin",
    )

    def has_member(self, user_id: str) -> bool:
        return any(m.id == user_id for m in self.members)


class ProjectInvite(Base):
    __tablename__ = "project_invites"

    id = Column(String(32), primary_key=True, default=new_id)
    project_id = Column(String(32), ForeignKey("projects.id", ondelete="CASCADE"), index=True, nullable=False)
    email = Column(String(255), nullable=False)
    role = Column(String(20), default="developer", nullable=False)  # manager/developer/viewer
    invited_by_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    token = Column(String(64), unique=True, index=True, nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    def is_expired(self, now=None) -> bool:
        now = now or utcnow()
        expires_at = self.expires_at
        # SQLite hands back naive datetimes; everything is stored as UTC
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now


@event.listens_for(Session, "before_flush")
def keep_owner_in_members(session, flush_context, instances):
    for obj in list(session.new) + list(session.dirty):
        if not isinstance(obj, Project) or obj in session.deleted:
            continue
        if obj.owner is not None and obj.owner not in obj.members:
            obj.members.append(obj.owner)
