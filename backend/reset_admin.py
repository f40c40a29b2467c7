import asyncio
import os
import sys

from sqlalchemy import func, select

from propertyhub.core.security import hash_password
from propertyhub.db import session as db_session
from propertyhub.models.user import User


async def reset_password(email: str, password: str) -> bool:
    async with db_session.SessionLocal() as db:
        result = await db.execute(select(User).where(func.lower(User.email) == email.lower()))
        user = result.scalar_one_or_none()
        if not user:
            return False
        user.password = hash_password(password)
        user.is_active = True
        await db.commit()
        return True


if __name__ == "__main__":
    email = sys.argv[1] if len(sys.argv) > 1 else os.getenv("FIRST_ADMIN_EMAIL", "admin@propertyhub.co.za")
    password = sys.argv[2] if len(sys.argv) > 2 else "admin123"
    if asyncio.run(reset_password(email, password)):
        print(f"Password reset for {email}")
    else:
        print(f"No user with email {email}")
        sys.exit(1)
