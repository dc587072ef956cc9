# jobboard/services/category_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from jobboard.core.exceptions import ArgumentError, InvalidOperationError, NotFoundError
from jobboard.models.category import Category
from jobboard.repositories.category_repo import CategoryRepository
from jobboard.schemas.category_schema import CategoryCreate, CategoryUpdate, CategoryWithJobCount

logger = logging.getLogger(__name__)


class CategoryService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = CategoryRepository(db)

    async def list_categories(self, include_inactive: bool = False) -> List[Category]:
        return await self.repo.list_categories(include_inactive)

    async def get_category(self, category_id: int) -> Category:
        category = await self.repo.get_category_by_id(category_id)
        if not category:
            raise NotFoundError("Category", category_id)
        return category

    async def get_top_categories(self, limit: int) -> List[CategoryWithJobCount]:
        if limit < 1:
            raise ArgumentError("The number of categories must be at least 1")
        rows = await self.repo.list_top_categories(limit)
        return [
            CategoryWithJobCount(
                category_id=category.category_id,
                name=category.name,
                description=category.description,
                is_active=category.is_active,
                job_count=count,
            )
            for category, count in rows
        ]

    async def create_category(self, data: CategoryCreate) -> Category:
        if await self.repo.get_category_by_name(data.name):
            raise InvalidOperationError(f'Category "{data.name}" already exists')

        category = Category(name=data.name, description=data.description, is_active=True)
        await self.repo.create_category(category)
        await self.db.commit()
        logger.info(f"Category {category.category_id} ({category.name}) created")
        return category

    async def update_category(self, category_id: int, data: CategoryUpdate) -> Category:
        category = await self.get_category(category_id)
        clash = await self.repo.get_category_by_name(data.name)
        if clash and clash.category_id != category_id:
            raise InvalidOperationError(f'Category "{data.name}" already exists')

        category.name = data.name
        category.description = data.description
        await self.repo.update_category(category)
        await self.db.commit()
        return category

    async def toggle_status(self, category_id: int) -> Category:
        """Flip a category between active and inactive"""
        category = await self.get_category(category_id)
        category.is_active = not category.is_active
        await self.repo.update_category(category)
        await self.db.commit()
        logger.info(f"Category {category_id} is now {'active' if category.is_active else 'inactive'}")
        return category
