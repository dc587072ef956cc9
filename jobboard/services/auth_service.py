# jobboard/services/auth_service.py
from sqlalchemy.ext.asyncio import AsyncSession
import logging
import uuid

from jobboard.core.exceptions import InvalidOperationError
from jobboard.core.security import verify_password, create_access_token, get_password_hash
from jobboard.models.user import User
from jobboard.repositories.user_repo import UserRepository
from jobboard.schemas.user_schema import UserCreate

logger = logging.getLogger(__name__)


class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    async def authenticate_user(self, email: str, password: str) -> User | None:
        """
        The User on success, None when the account is unknown, suspended or
        the password does not match
        """
        user = await self.user_repo.get_user_by_email(email)
        if not user:
            return None
        if not user.is_active:
            return None
        if not verify_password(plain_password=password, hashed_password=user.password_hash):
            return None
        return user

    async def register_user(self, user_create: UserCreate) -> User:
        existing_user = await self.user_repo.get_user_by_email(user_create.email)
        if existing_user:
            raise InvalidOperationError("This email is already registered")

        new_user = User(
            user_id=str(uuid.uuid4()),
            email=user_create.email,
            password_hash=get_password_hash(user_create.password),
            full_name=user_create.full_name,
            role=user_create.role,
            is_active=True,
        )
        await self.user_repo.create_user(new_user)
        await self.db.commit()
        logger.info(f"Registered {new_user.role.value} {new_user.user_id}")
        return new_user

    def create_login_token(self, user: User) -> str:
        return create_access_token(
            data={
                "sub": user.email,
                "user_id": str(user.user_id),
                "role": user.role.value
            }
        )
