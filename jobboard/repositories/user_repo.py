# jobboard/repositories/user_repo.py
# Data access for users
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from typing import List

from jobboard.models.user import User, UserRoleEnum


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> User | None:
        stmt = select(User).where(User.email == email)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def create_user(self, user: User) -> User:
        """
        Add a user to the session; the caller commits
        """
        self.db.add(user)
        await self.db.flush()
        return user

    async def get_user_by_id(self, user_id: str) -> User | None:
        stmt = select(User).where(User.user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_active_admins(self) -> List[User]:
        stmt = select(User).where(
            User.role == UserRoleEnum.admin,
            User.is_active.is_(True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()
