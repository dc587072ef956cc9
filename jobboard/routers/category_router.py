# jobboard/routers/category_router.py

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from jobboard.core.database import get_db
from jobboard.core.security import get_current_admin, get_current_user
from jobboard.schemas.category_schema import (
    CategoryCreate, CategoryOut, CategoryUpdate, CategoryWithJobCount
)
from jobboard.services.category_service import CategoryService

router = APIRouter(
    prefix="/api/Categories",
    tags=["Categories"],
    dependencies=[Depends(get_current_user)]
)


def get_category_service(db: AsyncSession = Depends(get_db)) -> CategoryService:
    return CategoryService(db)


@router.get("", response_model=List[CategoryOut])
async def api_list_categories(
    include_inactive: bool = Query(False),
    service: CategoryService = Depends(get_category_service)
):
    return await service.list_categories(include_inactive)


@router.get("/top/{count}", response_model=List[CategoryWithJobCount], summary="Most used categories")
async def api_top_categories(
    count: int,
    service: CategoryService = Depends(get_category_service)
):
    return await service.get_top_categories(count)


@router.get("/{category_id}", response_model=CategoryOut)
async def api_get_category(
    category_id: int,
    service: CategoryService = Depends(get_category_service)
):
    return await service.get_category(category_id)


@router.post(
    "",
    response_model=CategoryOut,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(get_current_admin)]
)
async def api_create_category(
    data: CategoryCreate,
    service: CategoryService = Depends(get_category_service)
):
    return await service.create_category(data)


@router.put("/{category_id}", response_model=CategoryOut, dependencies=[Depends(get_current_admin)])
async def api_update_category(
    category_id: int,
    data: CategoryUpdate,
    service: CategoryService = Depends(get_category_service)
):
    return await service.update_category(category_id, data)


@router.post(
    "/{category_id}/change-status",
    response_model=CategoryOut,
    dependencies=[Depends(get_current_admin)]
)
async def api_change_category_status(
    category_id: int,
    service: CategoryService = Depends(get_category_service)
):
    """
    Toggle a category between active and inactive
    """
    return await service.toggle_status(category_id)
