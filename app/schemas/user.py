"""
User Pydantic schemas
"""
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from app.models import UserRole
from app.core.validators import validate_password, sanitize_input


class UserResponse(BaseModel):
    """Public view of a user; never includes the password hash"""
    id: str
    username: str
    name: str
    role: UserRole

    class Config:
        from_attributes = True


class UserCreate(BaseModel):
    username: str = Field(..., min_length=3, max_length=50)
    password: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1, max_length=200)
    role: UserRole = UserRole.COLLABORATOR

    @field_validator('username')
    @classmethod
    def normalize_username(cls, v):
        v = v.strip()
        if not v or any(ch.isspace() for ch in v):
            raise ValueError('Username must not contain spaces')
        return v

    @field_validator('password')
    @classmethod
    def check_password(cls, v):
        return validate_password(v)

    @field_validator('name')
    @classmethod
    def sanitize_name(cls, v):
        return sanitize_input(v, max_length=200)


class PasswordChange(BaseModel):
    """Admins may reset any password; users changing their own must confirm the current one"""
    new_password: str
    current_password: Optional[str] = None

    @field_validator('new_password')
    @classmethod
    def check_password(cls, v):
        return validate_password(v)
