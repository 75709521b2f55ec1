"""
User administration: list auth users, assign roles.

Needs the service-role client; every call fails with
AdminNotConfiguredError when SUPABASE_SERVICE_KEY is missing.
"""

from typing import Any, Optional
import structlog

from config import get_admin_client
from exceptions import AdminNotConfiguredError, DatabaseError, InvalidRoleError
from models.user import UserResponse, UserRole

logger = structlog.get_logger(__name__)

VALID_ROLES = [role.value for role in UserRole]


def _attr(obj: Any, name: str) -> Any:
    """Read a field from a gotrue User object or a plain dict."""
    if isinstance(obj, dict):
        return obj.get(name)
    return getattr(obj, name, None)


class UserService:
    """Auth users joined with the user_roles table."""

    def __init__(self, client: Optional[Any] = None):
        self.db = client if client is not None else get_admin_client()
        self.roles_table = "user_roles"

    def _client(self) -> Any:
        if self.db is None:
            raise AdminNotConfiguredError()
        return self.db

    def _auth_users(self) -> list:
        client = self._client()
        try:
            users = client.auth.admin.list_users()
        except Exception as e:
            logger.error("list_auth_users_failed", error=str(e))
            raise DatabaseError("list_users", str(e))
        if isinstance(users, list):
            return users
        # Older clients wrap the list in a response object
        return list(_attr(users, "users") or [])

    # ===================
    # READ OPERATIONS
    # ===================

    def list_users(self) -> list[UserResponse]:
        """Every auth user with its role, or role None if unassigned."""
        users = self._auth_users()
        user_ids = [str(_attr(u, "id")) for u in users]

        roles: dict[str, str] = {}
        if user_ids:
            try:
                result = (
                    self._client().table(self.roles_table)
                    .select("user_id, role")
                    .in_("user_id", user_ids)
                    .execute()
                )
            except Exception as e:
                logger.error("get_user_roles_failed", error=str(e))
                raise DatabaseError("select", str(e))
            roles = {row["user_id"]: row["role"] for row in result.data or []}

        response = [
            UserResponse(
                id=str(_attr(u, "id")),
                email=_attr(u, "email"),
                created_at=_attr(u, "created_at"),
                last_sign_in_at=_attr(u, "last_sign_in_at"),
                role=roles.get(str(_attr(u, "id"))),
            )
            for u in users
        ]

        logger.info("users_listed", count=len(response))
        return response

    def user_exists(self, email: str) -> bool:
        """Case-insensitive email lookup."""
        target = email.strip().casefold()
        return any(
            (_attr(u, "email") or "").casefold() == target
            for u in self._auth_users()
        )

    # ===================
    # WRITE OPERATIONS
    # ===================

    def update_role(self, user_id: str, role: str) -> UserRole:
        """
        Assign a role, replacing any existing one.

        Raises:
            InvalidRoleError: If role is not admin or technician
        """
        if role not in VALID_ROLES:
            raise InvalidRoleError(role, VALID_ROLES)

        logger.info("updating_user_role", user_id=user_id, role=role)
        client = self._client()

        try:
            existing = (
                client.table(self.roles_table)
                .select("id, role")
                .eq("user_id", user_id)
                .limit(1)
                .execute()
            )

            if existing.data:
                client.table(self.roles_table).update({"role": role}).eq("user_id", user_id).execute()
            else:
                client.table(self.roles_table).insert({"user_id": user_id, "role": role}).execute()

        except Exception as e:
            logger.error("update_user_role_failed", user_id=user_id, error=str(e))
            raise DatabaseError("update", str(e))

        logger.info("user_role_updated", user_id=user_id, role=role)
        return UserRole(role)


# Singleton instance for convenience
_user_service: Optional[UserService] = None


def get_user_service() -> UserService:
    """Get or create UserService instance."""
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service
