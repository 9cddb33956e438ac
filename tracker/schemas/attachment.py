from datetime import datetime

from pydantic import BaseModel


class AttachmentResponse(BaseModel):
    id: str
    url: str
    type: str
    public_id: str
    uploaded_by_id: str
    original_filename: str | None = None
    mime_type: str
    size: int
    issue_id: str | None = None
    comment_id: str | None = None
    created_at: datetime | None = None

    class Config:
        from_attributes = True
