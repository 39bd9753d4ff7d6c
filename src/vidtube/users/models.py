from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator
import re

from vidtube.responses import CamelModel

EMAIL_PATTERN = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'


def _validate_email(v: str) -> str:
    if not v or not v.strip():
        raise ValueError('Email cannot be empty')
    if not re.match(EMAIL_PATTERN, v.strip()):
        raise ValueError('Invalid email format')
    return v.strip().lower()


def _validate_password(v: str) -> str:
    if not v:
        raise ValueError('Password cannot be empty')
    if len(v) < 8:
        raise ValueError('Password must be at least 8 characters long')
    if not re.search(r'[A-Z]', v):
        raise ValueError('Password must contain at least one uppercase letter')
    if not re.search(r'[a-z]', v):
        raise ValueError('Password must contain at least one lowercase letter')
    if not re.search(r'\d', v):
        raise ValueError('Password must contain at least one number')
    return v


def _validate_fullname(v: str) -> str:
    if not v or not v.strip():
        raise ValueError('Full name cannot be empty')
    return v.strip()


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    email: str = Field(..., min_length=1, max_length=255)
    fullname: str = Field(..., min_length=1, max_length=100)
    password: str = Field(..., min_length=8)

    @field_validator('username')
    @classmethod
    def validate_username(cls, v):
        if not v.strip():
            raise ValueError('Username cannot be empty')
        if not re.match(r'^[a-zA-Z0-9_-]+$', v.strip()):
            raise ValueError('Username can only contain letters, numbers, hyphens, and underscores')
        return v.strip().lower()

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return _validate_email(v)

    @field_validator('fullname')
    @classmethod
    def validate_fullname(cls, v):
        return _validate_fullname(v)

    @field_validator('password')
    @classmethod
    def validate_password(cls, v):
        return _validate_password(v)


class UserLogin(BaseModel):
    username: Optional[str] = None
    email: Optional[str] = None
    password: str = Field(..., min_length=1)

    @model_validator(mode='after')
    def require_identifier(self):
        if not (self.username and self.username.strip()) and not (self.email and self.email.strip()):
            raise ValueError('Username or email is required')
        if self.username:
            self.username = self.username.strip().lower()
        if self.email:
            self.email = self.email.strip().lower()
        return self


class RefreshTokenRequest(BaseModel):
    refresh_token: Optional[str] = Field(default=None, alias="refreshToken")


class PasswordChange(BaseModel):
    old_password: str = Field(..., min_length=1, alias="oldPassword")
    new_password: str = Field(..., alias="newPassword")

    @field_validator('new_password')
    @classmethod
    def validate_new_password(cls, v):
        return _validate_password(v)


class AccountUpdate(BaseModel):
    fullname: Optional[str] = Field(default=None, max_length=100)
    email: Optional[str] = Field(default=None, max_length=255)

    @field_validator('email')
    @classmethod
    def validate_email(cls, v):
        return None if v is None else _validate_email(v)

    @field_validator('fullname')
    @classmethod
    def validate_fullname(cls, v):
        return None if v is None else _validate_fullname(v)

    @model_validator(mode='after')
    def require_change(self):
        if self.fullname is None and self.email is None:
            raise ValueError('Full name or email is required')
        return self


class UserView(CamelModel):
    """The signed-in user's own account; never includes credentials."""
    id: int
    username: str
    email: str
    fullname: str
    avatar: str
    cover_image: str
    created_at: datetime
    updated_at: datetime
