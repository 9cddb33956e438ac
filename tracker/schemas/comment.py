from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from tracker.utils.sanitization import sanitize_string
from tracker.schemas.user import UserBrief
from tracker.schemas.attachment import AttachmentResponse


class CommentCreate(BaseModel):
    content: str = Field(..., min_length=1)
    attachments: list[str] = Field(default_factory=list)

    @field_validator("content", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class CommentUpdate(BaseModel):
    content: str | None = None
    attachments: list[str] | None = None

    @field_validator("content", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class CommentResponse(BaseModel):
    id: str
    content: str
    issue_id: str
    author: UserBrief
    attachments: list[AttachmentResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True


class CommentIssueSummary(BaseModel):
    id: str
    key: str
    title: str
    status: str

    class Config:
        from_attributes = True


class MyCommentResponse(CommentResponse):
    issue: CommentIssueSummary
