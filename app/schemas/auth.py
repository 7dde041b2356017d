"""
Authentication Schemas
Pydantic models for authentication requests and responses
"""

from pydantic import BaseModel, Field
from typing import Optional

from app.schemas.user import UserResponse
from app.schemas.collaborator import CollaboratorResponse


# ==================== Request Schemas ====================

class LoginRequest(BaseModel):
    """Login request schema"""
    username: str = Field(..., description="Username", min_length=1, max_length=50)
    password: str = Field(..., description="User password", min_length=1, max_length=128)

    class Config:
        json_schema_extra = {
            "example": {
                "username": "admin",
                "password": "secretpassword"
            }
        }


# ==================== Response Schemas ====================

class SessionResponse(BaseModel):
    """The authenticated user and, for collaborators, their collaborator record"""
    user: UserResponse
    collaborator: Optional[CollaboratorResponse] = None


class LoginResponse(SessionResponse):
    access_token: str
    token_type: str = "bearer"


class MessageResponse(BaseModel):
    message: str
