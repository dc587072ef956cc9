# jobboard/routers/user_router.py
from fastapi import APIRouter, Depends
from jobboard.core.security import get_current_user
from jobboard.models.user import User
from jobboard.schemas.user_schema import UserOut

router = APIRouter(
    prefix="/api/Users",
    tags=["Users"],
    dependencies=[Depends(get_current_user)]
)

@router.get("/me", response_model=UserOut)
async def read_users_me(
    current_user: User = Depends(get_current_user)
):
    """
    The logged-in user's account (without the password hash)
    """
    return current_user
