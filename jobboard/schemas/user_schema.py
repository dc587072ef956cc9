# jobboard/schemas/user_schema.py
from pydantic import BaseModel, EmailStr, Field, field_validator, ConfigDict
from datetime import datetime
from typing import Optional
import re

from jobboard.models.user import UserRoleEnum


# Token response
class Token(BaseModel):
    access_token: str
    token_type: str


# Claims carried inside the token
class TokenData(BaseModel):
    user_id: str
    role: str


# Registration body
class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(..., min_length=8)
    full_name: str = Field(..., min_length=1, max_length=255)
    role: UserRoleEnum

    @field_validator('password')
    @classmethod
    def validate_password(cls, v: str) -> str:
        """
        Passwords need at least 8 characters with both letters and digits
        """
        if not re.search(r'(?=.*[a-zA-Z])(?=.*[0-9])', v):
            raise ValueError('Password must contain letters and digits')
        return v

    @field_validator('role')
    @classmethod
    def validate_role(cls, v: UserRoleEnum) -> UserRoleEnum:
        # Admin accounts are provisioned directly in the database
        if v == UserRoleEnum.admin:
            raise ValueError('Only Client or Freelancer accounts can register')
        return v


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    email: EmailStr
    full_name: str
    role: UserRoleEnum
    is_active: bool
    created_at: Optional[datetime] = None


class UserBrief(BaseModel):
    """Compact user shown inside jobs, proposals and contracts"""
    model_config = ConfigDict(from_attributes=True)

    user_id: str
    full_name: str
    role: UserRoleEnum
