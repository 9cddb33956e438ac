from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from tracker.database import Base, new_id, utcnow
from tracker.models.user import User

class Attachment(Base):
    __tablename__ = "attachments"

    id = Column(String(32), primary_key=True, default=new_id)
    url = Column(String(1000), nullable=False)
    type = Column(String(10), nullable=False)  # image/video/file/pdf
    public_id = Column(String(255), nullable=False)
    uploaded_by_id = Column(String(32), ForeignKey("users.id"), index=True, nullable=False)
    original_filename = Column(String(255), nullable=True)
    mime_type = Column(String(100), nullable=False)
    size = Column(Integer, nullable=False)
    # back-references, set once the attachment is linked
    issue_id = Column(String(32), ForeignKey("issues.id"), index=True, nullable=True)
    comment_id = Column(String(32), ForeignKey("comments.id"), index=True, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    @property
    def is_linked(self) -> bool:
        return self.issue_id is not None or self.comment_id is not None

    @property
    def storage_resource_type(self) -> str:
        if self.type == "video":
            return "video"
        if self.type == "file":
            return "raw"
        return "image"
