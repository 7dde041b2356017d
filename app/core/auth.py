"""
Authentication and Authorization Module
Resolves the caller of each request into an explicit Principal (user plus
optional collaborator record) and provides role guards for the routers
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from app.models import User, UserRole, Collaborator
from app.core.security import (  # noqa: F401  (password helpers are re-exported)
    hash_password, verify_password, issue_access_token, read_access_token, InvalidTokenError,
)

# Session key holding the authenticated user id
SESSION_USER_KEY = "user_id"

# Bearer tokens are optional: the session cookie is the primary credential
bearer_scheme = HTTPBearer(auto_error=False)


# ==================== Access Tokens ====================

def create_access_token(user: User) -> str:
    """
    Create a JWT access token for API clients that cannot keep a cookie

    Args:
        user: Authenticated user

    Returns:
        Encoded JWT token string
    """
    return issue_access_token(user.id, user.role.value)


# ==================== Principal ====================

@dataclass
class Principal:
    """
    The authenticated caller of a request.
    Collaborator-role users carry their collaborator record; admins may not have one.
    """
    user: User
    collaborator: Optional[Collaborator] = None

    @property
    def user_id(self) -> str:
        return self.user.id

    @property
    def is_admin(self) -> bool:
        return self.user.role == UserRole.ADMIN

    @property
    def collaborator_id(self) -> Optional[str]:
        return self.collaborator.id if self.collaborator else None

    @property
    def scoped(self) -> bool:
        """True when reads must be limited to the caller's own rows"""
        return not self.is_admin


# ==================== User Authentication ====================

async def get_collaborator_for_user(db: AsyncSession, user_id: str) -> Optional[Collaborator]:
    result = await db.execute(select(Collaborator).filter(Collaborator.user_id == user_id))
    return result.scalar_one_or_none()


async def authenticate_user(
    db: AsyncSession,
    username: str,
    password: str
) -> Optional[User]:
    """
    Authenticate a user by username and password

    Args:
        db: Database session
        username: Username
        password: Plain text password

    Returns:
        User object if authentication successful, None otherwise.
        Unknown usernames and wrong passwords are indistinguishable.
    """
    result = await db.execute(select(User).filter(User.username == username))
    user = result.scalar_one_or_none()

    if not user:
        return None

    if not verify_password(password, user.hashed_password):
        return None

    return user


# ==================== Dependencies ====================

def _unauthorized(detail: str = "Not authenticated") -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_principal(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db)
) -> Principal:
    """
    Dependency resolving the authenticated Principal.
    Session cookie first, then a Bearer access token.

    Raises:
        HTTPException: 401 if no valid credential is present
    """
    user_id = request.session.get(SESSION_USER_KEY)

    if user_id is None and credentials is not None:
        try:
            user_id = read_access_token(credentials.credentials)
        except InvalidTokenError:
            raise _unauthorized("Could not validate credentials")

    if user_id is None:
        raise _unauthorized()

    result = await db.execute(select(User).filter(User.id == user_id))
    user = result.scalar_one_or_none()

    if user is None:
        request.session.pop(SESSION_USER_KEY, None)
        raise _unauthorized("User not found")

    collaborator = await get_collaborator_for_user(db, user.id)

    # Exposed to the request logging middleware
    request.state.user_id = user.id

    return Principal(user=user, collaborator=collaborator)


# Any authenticated caller
require_auth = get_current_principal


# ==================== Role-Based Access Control ====================

class RoleChecker:
    """
    Dependency class to check if the principal has one of the required roles
    """

    def __init__(self, allowed_roles: list[UserRole]):
        self.allowed_roles = allowed_roles

    def __call__(self, principal: Principal = Depends(get_current_principal)) -> Principal:
        """
        Raises:
            HTTPException: 403 if the user doesn't have a required role
        """
        if principal.user.role not in self.allowed_roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Operation not permitted. Required roles: {[role.value for role in self.allowed_roles]}"
            )
        return principal


require_admin = RoleChecker([UserRole.ADMIN])


def require_collaborator(principal: Principal) -> Collaborator:
    """
    Return the caller's collaborator record or fail with 400.
    Used by routes that only make sense for a collaborator (own pending events, ...).
    """
    if principal.collaborator is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Colaborador não encontrado"
        )
    return principal.collaborator
