"""
Script to add or update the administrator account
Reads ADMIN_USERNAME / ADMIN_PASSWORD from the environment (.env)
"""
import asyncio
import sys

from sqlalchemy import select

from app.core.auth import hash_password
from app.models import User, UserRole
from config import settings
from database import AsyncSessionLocal, engine


async def add_admin():
    """Create the admin user, or restore its role and password if it exists"""
    if not settings.ADMIN_PASSWORD:
        print("❌ ADMIN_PASSWORD is not set. Add it to your .env file first.")
        sys.exit(1)

    async with AsyncSessionLocal() as db:
        try:
            result = await db.execute(
                select(User).where(User.username == settings.ADMIN_USERNAME)
            )
            admin = result.scalar_one_or_none()

            if admin:
                print(f"  Found existing user (ID: {admin.id})")
                if admin.role != UserRole.ADMIN:
                    admin.role = UserRole.ADMIN
                    print("  ✓ Promoted to admin")
                admin.hashed_password = hash_password(settings.ADMIN_PASSWORD)
                print("  ✓ Password updated")
            else:
                admin = User(
                    username=settings.ADMIN_USERNAME,
                    name="Administrador",
                    hashed_password=hash_password(settings.ADMIN_PASSWORD),
                    role=UserRole.ADMIN,
                )
                db.add(admin)
                print("  ✓ Created admin user")

            await db.commit()

            print("\n  Admin Information:")
            print(f"    Username: {admin.username}")
            print(f"    Role: {admin.role.value}")
        except Exception as e:
            await db.rollback()
            print(f"\n❌ Error adding admin: {str(e)}")
            raise
        finally:
            await engine.dispose()


if __name__ == "__main__":
    print("Adding admin user to database...\n")
    asyncio.run(add_admin())
