#!/usr/bin/env python3
"""
Reset the password of a CRM user.
Usage: python reset_user_password.py <username> [new_password]

Without a password a random 12 character one is generated and printed once.
"""

import asyncio
import secrets
import sys

from sqlalchemy import select

from app.core.auth import hash_password
from app.core.validators import validate_password
from app.models import User
from database import AsyncSessionLocal, engine


def generate_password() -> str:
    # token_urlsafe(9) yields 12 characters
    return secrets.token_urlsafe(9)


async def list_usernames(db) -> list:
    result = await db.execute(select(User.username, User.role).order_by(User.username))
    return [f"{username} ({role.value})" for username, role in result.all()]


async def reset_user_password(username: str, new_password: str = None) -> bool:
    async with AsyncSessionLocal() as db:
        try:
            user = (await db.execute(select(User).where(User.username == username))).scalar_one_or_none()
            if user is None:
                known = await list_usernames(db)
                print(f"❌ No user named '{username}'.")
                print("Known users: " + (", ".join(known) if known else "none"))
                return False

            new_password = new_password or generate_password()
            user.hashed_password = hash_password(new_password)
            await db.commit()
        except Exception as e:
            await db.rollback()
            print(f"❌ Could not reset password: {e}")
            return False
        finally:
            await engine.dispose()

    print(f"✅ Password for {username} ({user.role.value}) is now: {new_password}")
    return True


def main():
    if len(sys.argv) not in (2, 3):
        print(__doc__.strip())
        sys.exit(1)

    username, new_password = sys.argv[1], (sys.argv[2] if len(sys.argv) == 3 else None)
    if new_password:
        try:
            validate_password(new_password)
        except ValueError as e:
            print(f"❌ {e}")
            sys.exit(1)

    if not asyncio.run(reset_user_password(username, new_password)):
        sys.exit(1)


if __name__ == "__main__":
    main()
