from datetime import datetime

from pydantic import BaseModel, Field, field_validator
from tracker.utils.sanitization import sanitize_string, sanitize_tags
from tracker.schemas.user import UserBrief
from tracker.schemas.project import ProjectBrief
from tracker.schemas.comment import CommentResponse
from tracker.schemas.attachment import AttachmentResponse


# status/priority stay plain strings here; the services validate them so the
# permission checks run before the value checks
class IssueCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=200)
    description: str = Field(..., min_length=1)
    priority: str | None = None
    assignee: str | None = None
    tags: list[str] = Field(default_factory=list)
    due_date: datetime | None = None
    attachments: list[str] = Field(default_factory=list)

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return sanitize_tags(v)


class IssueUpdate(BaseModel):
    title: str | None = Field(None, max_length=200)
    description: str | None = None
    status: str | None = None
    priority: str | None = None
    assignee: str | None = None
    tags: list[str] | None = None
    due_date: datetime | None = None
    attachments: list[str] | None = None

    @field_validator("title", "description", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)

    @field_validator("tags", mode="before")
    @classmethod
    def clean_tags(cls, v):
        return sanitize_tags(v)


class IssueAssign(BaseModel):
    assignee_id: str | None = Field(None, alias="assigneeId")
    assignee: str | None = None

    class Config:
        populate_by_name = True

    @property
    def target(self) -> str | None:
        return self.assignee_id or self.assignee or None


class IssueStatusUpdate(BaseModel):
    status: str


class IssueResponse(BaseModel):
    id: str
    key: str
    title: str
    description: str
    status: str
    priority: str
    reporter: UserBrief
    assignee: UserBrief | None = None
    project: ProjectBrief
    tags: list[str] = []
    due_date: datetime | None = None
    comments: list[CommentResponse] = []
    attachments: list[AttachmentResponse] = []
    created_at: datetime | None = None
    updated_at: datetime | None = None

    class Config:
        from_attributes = True
