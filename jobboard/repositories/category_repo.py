# jobboard/repositories/category_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from typing import List, Optional, Sequence, Tuple

from jobboard.models.category import Category
from jobboard.models.job import Job, JobCategory


class CategoryRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_categories(self, include_inactive: bool = False) -> List[Category]:
        stmt = select(Category).order_by(Category.name)
        if not include_inactive:
            stmt = stmt.where(Category.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_category_by_id(self, category_id: int) -> Optional[Category]:
        return await self.db.get(Category, category_id)

    async def get_category_by_name(self, name: str) -> Optional[Category]:
        """Case-insensitive lookup"""
        stmt = select(Category).where(func.lower(Category.name) == name.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_active_categories_by_ids(self, category_ids: Sequence[int]) -> List[Category]:
        if not category_ids:
            return []
        stmt = select(Category).where(
            Category.category_id.in_(category_ids),
            Category.is_active.is_(True)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_top_categories(self, limit: int) -> List[Tuple[Category, int]]:
        """
        Active categories ordered by how many live jobs use them
        """
        job_count = func.count(Job.job_id).label("job_count")
        stmt = (
            select(Category, job_count)
            .outerjoin(JobCategory, JobCategory.category_id == Category.category_id)
            .outerjoin(Job, (Job.job_id == JobCategory.job_id) & Job.is_active.is_(True))
            .where(Category.is_active.is_(True))
            .group_by(Category.category_id)
            .order_by(job_count.desc(), Category.name)
            .limit(limit)
        )
        result = await self.db.execute(stmt)
        return [(category, count) for category, count in result.all()]

    async def create_category(self, category: Category) -> Category:
        self.db.add(category)
        await self.db.flush()
        return category

    async def update_category(self, category: Category) -> Category:
        await self.db.flush()
        return category
