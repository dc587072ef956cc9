# jobboard/repositories/job_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from sqlalchemy import func
from typing import List, Optional

from jobboard.models.job import Job, JobStatus
from jobboard.models.proposal import Proposal, ProposalStatus


class JobRepository:
    """
    CRUD access to the 'jobs' table. Soft-deleted jobs (is_active = False) are
    never returned.
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_job(self, job: Job) -> Job:
        self.db.add(job)
        await self.db.flush()
        return job

    async def get_job_by_id(self, job_id: int, with_client: bool = False) -> Optional[Job]:
        stmt = select(Job).where(Job.job_id == job_id, Job.is_active.is_(True))
        if with_client:
            stmt = stmt.options(joinedload(Job.client))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def list_jobs(self, status: Optional[JobStatus] = None, limit: int = 100) -> List[Job]:
        stmt = (
            select(Job)
            .options(joinedload(Job.client))
            .where(Job.is_active.is_(True))
            .order_by(Job.created_at.desc(), Job.job_id.desc())
            .limit(limit)
        )
        if status is not None:
            stmt = stmt.where(Job.status == status)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_jobs_by_client(self, client_id: str) -> List[Job]:
        stmt = (
            select(Job)
            .where(Job.client_id == client_id, Job.is_active.is_(True))
            .order_by(Job.created_at.desc(), Job.job_id.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def list_jobs_by_freelancer(self, freelancer_id: str, status: Optional[JobStatus] = None) -> List[Job]:
        """
        Jobs on which the freelancer's proposal was accepted
        """
        stmt = (
            select(Job)
            .join(Proposal, Proposal.job_id == Job.job_id)
            .options(joinedload(Job.client))
            .where(
                Proposal.freelancer_id == freelancer_id,
                Proposal.status == ProposalStatus.accepted,
                Job.is_active.is_(True)
            )
            .order_by(Job.created_at.desc(), Job.job_id.desc())
        )
        if status is not None:
            stmt = stmt.where(Job.status == status)
        result = await self.db.execute(stmt)
        return result.scalars().unique().all()

    async def count_proposals(self, job_id: int) -> int:
        stmt = select(func.count(Proposal.proposal_id)).where(Proposal.job_id == job_id)
        result = await self.db.execute(stmt)
        return result.scalar_one()

    async def update_job(self, job: Job) -> Job:
        await self.db.flush()
        return job
