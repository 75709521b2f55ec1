"""
User administration schemas.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from models.base import BaseSchema


class UserRole(str, Enum):
    """Assignable application roles."""
    ADMIN = "admin"
    TECHNICIAN = "technician"


class UserResponse(BaseModel):
    """Auth user joined with its role."""
    id: str
    email: Optional[str] = None
    created_at: Optional[datetime] = None
    last_sign_in_at: Optional[datetime] = None
    role: Optional[UserRole] = None


class UserListResponse(BaseModel):
    """All users."""
    users: list[UserResponse]


class RoleUpdateRequest(BaseSchema):
    """Role assignment body. Validated by the service so the error matches."""
    role: str = Field(..., min_length=1)


class RoleUpdateResponse(BaseModel):
    success: bool = True
    message: str = "User role updated successfully"


class UserExistsRequest(BaseSchema):
    email: str = Field(..., min_length=1)


class UserExistsResponse(BaseModel):
    exists: bool
