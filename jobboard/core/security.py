# jobboard/core/security.py
# Password hashing plus JWT issuing / verification and the auth dependencies
from datetime import datetime, timedelta, timezone
from passlib.context import CryptContext
from jose import JWTError, jwt
from fastapi import Depends, HTTPException, Query, status, WebSocketDisconnect
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy.ext.asyncio import AsyncSession

from jobboard.core.config import settings
from jobboard.core.database import get_db
from jobboard.schemas.user_schema import TokenData
from jobboard.repositories.user_repo import UserRepository
from jobboard.models.user import User, UserRoleEnum

# Bcrypt hashing
pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

# Token comes from the Authorization header
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/Auth/token")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict) -> str:
    """
    Issue a JWT for the given claims (user_id, role)
    """
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})

    return jwt.encode(
        to_encode,
        settings.JWT_SECRET_KEY,
        algorithm=settings.JWT_ALGORITHM
    )


def verify_access_token(token: str) -> TokenData | None:
    """
    Decode a JWT into TokenData, or None when it is invalid / expired
    """
    try:
        payload = jwt.decode(
            token,
            settings.JWT_SECRET_KEY,
            algorithms=[settings.JWT_ALGORITHM]
        )
    except JWTError:
        return None

    user_id = payload.get("user_id")
    role = payload.get("role")
    if user_id is None or role is None:
        return None

    return TokenData(user_id=user_id, role=role)


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    FastAPI dependency: resolve the bearer token to an active User (REST API)
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    token_data = verify_access_token(token)
    if token_data is None:
        raise credentials_exception

    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None:
        raise credentials_exception

    if not user.is_active:
        raise HTTPException(status_code=400, detail="This account has been suspended")

    return user


async def get_current_admin(current_user: User = Depends(get_current_user)) -> User:
    if current_user.role != UserRoleEnum.admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admin access required")
    return current_user


async def get_current_user_from_websocket_token(
    token: str = Query(...),  # ?token=... on the connection URL
    db: AsyncSession = Depends(get_db)
) -> User:
    """
    Token check for WebSocket endpoints (browsers cannot set headers there)
    """
    token_data = verify_access_token(token)
    if token_data is None:
        raise WebSocketDisconnect(
            code=status.WS_1008_POLICY_VIOLATION,
            reason="Could not validate credentials"
        )

    user = await UserRepository(db).get_user_by_id(user_id=token_data.user_id)
    if user is None or not user.is_active:
        raise WebSocketDisconnect(
            code=status.WS_1008_POLICY_VIOLATION,
            reason="Could not validate credentials"
        )

    return user
