"""
User management API endpoints
"""
from typing import List
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from app.core.auth import Principal, require_auth, require_admin, hash_password, verify_password
from app.models import User, UserRole
from app.schemas.user import UserCreate, UserResponse, PasswordChange
from app.schemas.auth import MessageResponse
from app.services.activity import log_activity
from app.services.repository import get_or_404
from database import get_async_session

router = APIRouter(prefix="/users", tags=["Users"])


@router.get("", response_model=List[UserResponse])
async def list_users(
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    List all users (admin only)
    """
    result = await db.execute(select(User).order_by(User.name))
    return result.scalars().all()


@router.post("", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def create_user(
    user_in: UserCreate,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Create a user with a hashed password (admin only)
    """
    existing = await db.execute(select(User).filter(User.username == user_in.username))
    if existing.scalar_one_or_none():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Username already exists"
        )

    user = User(
        username=user_in.username,
        hashed_password=hash_password(user_in.password),
        name=user_in.name,
        role=user_in.role,
    )
    db.add(user)
    await db.flush()

    log_activity(db, principal.user_id, "user_created", f"Created user: {user.username}", user.id, "user")
    await db.commit()
    return user


@router.post("/{user_id}/promote", response_model=UserResponse)
async def promote_user(
    user_id: str,
    principal: Principal = Depends(require_admin),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Promote a user to admin
    """
    user = await get_or_404(db, User, user_id, "User not found")

    if user.role == UserRole.ADMIN:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="User is already an admin"
        )

    user.role = UserRole.ADMIN
    log_activity(db, principal.user_id, "user_promoted", f"Promoted user to admin: {user.username}", user.id, "user")
    await db.commit()
    return user


@router.put("/{user_id}/password", response_model=MessageResponse)
async def change_password(
    user_id: str,
    password_in: PasswordChange,
    principal: Principal = Depends(require_auth),
    db: AsyncSession = Depends(get_async_session),
):
    """
    Change a user's password.
    Admins may reset any password; other users only their own, confirming the current one.
    """
    if not principal.is_admin and principal.user_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You can only change your own password"
        )

    user = await get_or_404(db, User, user_id, "User not found")

    if not principal.is_admin:
        if not password_in.current_password or not verify_password(password_in.current_password, user.hashed_password):
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Current password is incorrect"
            )

    user.hashed_password = hash_password(password_in.new_password)
    log_activity(db, principal.user_id, "user_password_changed", f"Changed password for: {user.username}", user.id, "user")
    await db.commit()
    return MessageResponse(message="Password updated successfully")
