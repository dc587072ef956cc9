# jobboard/routers/skill_router.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from jobboard.core.database import get_db
from jobboard.core.security import get_current_admin, get_current_user
from jobboard.schemas.category_schema import SkillCreate, SkillOut, SkillUpdate
from jobboard.services.skill_service import SkillService

router = APIRouter(
    prefix="/api/Skills",
    tags=["Skills"],
    dependencies=[Depends(get_current_user)]
)


def get_skill_service(db: AsyncSession = Depends(get_db)) -> SkillService:
    return SkillService(db)


@router.get("", response_model=List[SkillOut])
async def api_list_skills(
    search: Optional[str] = Query(None, description="Case-insensitive name fragment"),
    is_active: Optional[bool] = Query(None),
    service: SkillService = Depends(get_skill_service)
):
    return await service.list_skills(search, is_active)


@router.post(
    "",
    response_model=SkillOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)]
)
async def api_create_skill(
    data: SkillCreate,
    service: SkillService = Depends(get_skill_service)
):
    return await service.create_skill(data)


@router.put("/{skill_id}", response_model=SkillOut, dependencies=[Depends(get_current_admin)])
async def api_update_skill(
    skill_id: int,
    data: SkillUpdate,
    service: SkillService = Depends(get_skill_service)
):
    return await service.update_skill(skill_id, data)


@router.delete(
    "/{skill_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    dependencies=[Depends(get_current_admin)]
)
async def api_delete_skill(
    skill_id: int,
    service: SkillService = Depends(get_skill_service)
):
    await service.delete_skill(skill_id)
