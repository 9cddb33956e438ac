from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator
from tracker.utils.sanitization import sanitize_string
from tracker.schemas.user import UserBrief, UserResponse


class ProjectCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = Field(..., min_length=1)
    key: str = Field(..., min_length=1, max_length=10)
    settings: dict = Field(default_factory=dict)

    @field_validator("name", "description", "key", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class ProjectUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    description: str | None = None
    key: str | None = Field(None, max_length=10)
    settings: dict | None = None

    @field_validator("name", "description", "key", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class InviteCreate(BaseModel):
    email: EmailStr
    role: str | None = None


class InviteResponse(BaseModel):
    email: str
    role: str
    invited_by_id: str
    expires_at: datetime

    class Config:
        from_attributes = True


class ProjectBrief(BaseModel):
    id: str
    name: str
    key: str

    class Config:
        from_attributes = True


class ProjectResponse(ProjectBrief):
    description: str
    owner: UserBrief
    members: list[UserResponse] = []
    invites: list[InviteResponse] = []
    settings: dict = {}
    created_at: datetime | None = None
    updated_at: datetime | None = None


class ProjectStats(BaseModel):
    totalIssues: int
    todoIssues: int
    inProgressIssues: int
    doneIssues: int
    highPriorityIssues: int
    memberCount: int
