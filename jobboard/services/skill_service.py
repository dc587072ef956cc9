# jobboard/services/skill_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from jobboard.core.exceptions import InvalidOperationError, NotFoundError
from jobboard.models.skill import Skill
from jobboard.repositories.skill_repo import SkillRepository
from jobboard.schemas.category_schema import SkillCreate, SkillUpdate

logger = logging.getLogger(__name__)


class SkillService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = SkillRepository(db)

    async def list_skills(self, search: Optional[str] = None, is_active: Optional[bool] = None) -> List[Skill]:
        return await self.repo.list_skills(search, is_active)

    async def _get_skill(self, skill_id: int) -> Skill:
        skill = await self.repo.get_skill_by_id(skill_id)
        if not skill:
            raise NotFoundError("Skill", skill_id)
        return skill

    async def create_skill(self, data: SkillCreate) -> Skill:
        if await self.repo.get_skill_by_name(data.name):
            raise InvalidOperationError(f'Skill "{data.name}" already exists')

        skill = Skill(name=data.name, is_active=True)
        await self.repo.create_skill(skill)
        await self.db.commit()
        logger.info(f"Skill {skill.skill_id} ({skill.name}) created")
        return skill

    async def update_skill(self, skill_id: int, data: SkillUpdate) -> Skill:
        skill = await self._get_skill(skill_id)
        if data.name is not None:
            clash = await self.repo.get_skill_by_name(data.name)
            if clash and clash.skill_id != skill_id:
                raise InvalidOperationError(f'Skill "{data.name}" already exists')
            skill.name = data.name
        if data.is_active is not None:
            skill.is_active = data.is_active

        await self.repo.update_skill(skill)
        await self.db.commit()
        return skill

    async def delete_skill(self, skill_id: int) -> None:
        """
        Only skills no job is tagged with can be deleted; deactivate the rest
        """
        skill = await self._get_skill(skill_id)
        in_use = await self.repo.count_jobs_using(skill_id)
        if in_use:
            raise InvalidOperationError(
                f'Skill "{skill.name}" is used by {in_use} jobs; deactivate it instead'
            )
        await self.repo.delete_skill(skill)
        await self.db.commit()
        logger.info(f"Skill {skill_id} deleted")
