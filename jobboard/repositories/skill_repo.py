# jobboard/repositories/skill_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import func
from typing import List, Optional, Sequence

from jobboard.models.job import JobSkill
from jobboard.models.skill import Skill


class SkillRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_skills(self, search: Optional[str] = None, is_active: Optional[bool] = None) -> List[Skill]:
        stmt = select(Skill).order_by(Skill.name)
        if search:
            stmt = stmt.where(func.lower(Skill.name).contains(search.strip().lower()))
        if is_active is not None:
            stmt = stmt.where(Skill.is_active.is_(is_active))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_skill_by_id(self, skill_id: int) -> Optional[Skill]:
        return await self.db.get(Skill, skill_id)

    async def get_skill_by_name(self, name: str) -> Optional[Skill]:
        """Case-insensitive lookup"""
        stmt = select(Skill).where(func.lower(Skill.name) == name.strip().lower())
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_active_skills_by_ids(self, skill_ids: Sequence[int]) -> List[Skill]:
        if not skill_ids:
            return []
        stmt = select(Skill).where(Skill.skill_id.in_(skill_ids), Skill.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_jobs_using(self, skill_id: int) -> int:
        stmt = select(func.count()).select_from(JobSkill).where(JobSkill.skill_id == skill_id)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def create_skill(self, skill: Skill) -> Skill:
        self.db.add(skill)
        await self.db.flush()
        return skill

    async def update_skill(self, skill: Skill) -> Skill:
        await self.db.flush()
        return skill

    async def delete_skill(self, skill: Skill) -> None:
        await self.db.delete(skill)
        await self.db.flush()
