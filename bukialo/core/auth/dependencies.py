"""FastAPI dependencies for authentication and authorization."""

from typing import Annotated
from uuid import UUID

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from bukialo.core.auth.jwt import decode_token
from bukialo.core.db.deps import get_db
from bukialo.core.exceptions import raise_forbidden, raise_unauthorized
from bukialo.models.user import User, UserRole
from bukialo.repositories.user_repository import UserRepository

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(bearer_scheme)],
    db: Annotated[Session, Depends(get_db)],
) -> User:
    """
    Get the current authenticated user from the bearer token.

    Args:
        credentials: Authorization header credentials.
        db: Database session.

    Returns:
        User object if token is valid and user exists.

    Raises:
        APIException: 401 if the token is missing, invalid or its user is unknown,
            403 if the user is inactive.
    """
    if credentials is None:
        raise_unauthorized("AUTH_MISSING_TOKEN", "Authentication required")

    payload = decode_token(credentials.credentials)
    if payload is None or payload.get("type") != "access":
        raise_unauthorized("AUTH_INVALID_TOKEN", "Invalid or expired token")

    try:
        user_id = UUID(str(payload.get("sub")))
    except ValueError:
        raise_unauthorized("AUTH_INVALID_TOKEN", "Invalid user ID in token")

    user = UserRepository(db).get_by_id(user_id)
    if not user:
        raise_unauthorized("AUTH_USER_NOT_FOUND", "User not found")
    if not user.is_active:
        raise_forbidden("AUTH_USER_INACTIVE", "User account is inactive")

    return user


def is_admin(user: User) -> bool:
    return user.role == UserRole.ADMIN.value


def require_roles(*roles: UserRole):
    """
    Dependency factory to require one of the given roles.

    Usage:
        @router.post("/")
        async def create_automation(
            user: User = Depends(require_roles(UserRole.ADMIN, UserRole.MANAGER)),
        ):
            ...

    Args:
        *roles: Accepted roles.

    Returns:
        Dependency function that raises APIException if the user has none of them.
    """
    allowed = {role.value for role in roles}

    async def roles_check(
        current_user: Annotated[User, Depends(get_current_user)],
    ) -> User:
        if current_user.role not in allowed:
            raise_forbidden(details={"required_roles": sorted(allowed)})
        return current_user

    return roles_check
