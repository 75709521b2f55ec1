"""
User administration routes.
"""

from fastapi import APIRouter
import structlog

from models.user import (
    RoleUpdateRequest,
    RoleUpdateResponse,
    UserExistsRequest,
    UserExistsResponse,
    UserListResponse,
)
from routes.imports import handle_error
from services.user_service import get_user_service

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/api/users", tags=["Users"])


@router.get("", response_model=UserListResponse)
async def list_users():
    """
    All auth users with their roles.

    Raises:
        503: Service-role key not configured
    """
    try:
        service = get_user_service()
        return UserListResponse(users=service.list_users())
    except Exception as e:
        return handle_error(e)


@router.put("/{user_id}/role", response_model=RoleUpdateResponse)
async def update_user_role(user_id: str, data: RoleUpdateRequest):
    """
    Assign 'admin' or 'technician'.

    Raises:
        422: Invalid role
    """
    try:
        service = get_user_service()
        service.update_role(user_id, data.role)
        return RoleUpdateResponse()
    except Exception as e:
        return handle_error(e)


@router.post("/exists", response_model=UserExistsResponse)
async def check_user_exists(data: UserExistsRequest):
    """Whether an account exists for the email (case-insensitive)."""
    try:
        service = get_user_service()
        return UserExistsResponse(exists=service.user_exists(data.email))
    except Exception as e:
        return handle_error(e)
