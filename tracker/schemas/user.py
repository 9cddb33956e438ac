from datetime import datetime

from pydantic import BaseModel, EmailStr, Field, field_validator
from tracker.utils.sanitization import sanitize_string


class UserBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    avatar: str | None = None

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class UserCreate(UserBase):
    password: str = Field(..., min_length=6)


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserUpdate(BaseModel):
    name: str | None = Field(None, max_length=100)
    email: EmailStr | None = None
    avatar: str | None = None
    password: str | None = Field(None, min_length=6)

    @field_validator("name", mode="before")
    @classmethod
    def sanitize(cls, v):
        return sanitize_string(v)


class ForgotPasswordRequest(BaseModel):
    email: EmailStr


class ResetPasswordRequest(BaseModel):
    password: str = Field(..., min_length=6)


class Token(BaseModel):
    access_token: str
    token_type: str


class TokenData(BaseModel):
    user_id: str | None = None


class UserBrief(BaseModel):
    id: str
    name: str
    email: str
    avatar: str | None = None

    class Config:
        from_attributes = True


class UserResponse(UserBrief):
    role: str
    created_at: datetime | None = None


class AuthResponse(UserResponse):
    token: str
