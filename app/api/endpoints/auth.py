"""
Authentication Endpoints
Handles login, logout and the current session
"""

from fastapi import APIRouter, Depends, HTTPException, status, Request
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db
from app.core.auth import (
    SESSION_USER_KEY,
    Principal,
    authenticate_user,
    create_access_token,
    get_collaborator_for_user,
    require_auth,
)
from app.core.logging import security_logger
from app.schemas.auth import LoginRequest, LoginResponse, SessionResponse, MessageResponse

router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    """
    User Login Endpoint

    Authenticates a user with username and password and opens a session.
    A bearer token is also returned for API clients that do not keep cookies.

    Returns:
        LoginResponse with user, collaborator record (if any) and access token

    Raises:
        HTTPException: 401 if credentials are invalid
    """
    user = await authenticate_user(db, login_data.username, login_data.password)

    if not user:
        security_logger.login(request, login_data.username, success=False)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )

    collaborator = await get_collaborator_for_user(db, user.id)

    request.session.clear()
    request.session[SESSION_USER_KEY] = user.id
    request.state.user_id = user.id

    security_logger.login(request, user.username, success=True, user_id=user.id)

    return LoginResponse(
        user=user,
        collaborator=collaborator,
        access_token=create_access_token(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(request: Request):
    """
    Clear the session cookie
    """
    request.session.clear()
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=SessionResponse)
async def get_me(principal: Principal = Depends(require_auth)):
    """
    Get the authenticated user and their collaborator record
    """
    return SessionResponse(user=principal.user, collaborator=principal.collaborator)
