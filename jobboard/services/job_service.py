# jobboard/services/job_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional, Sequence, Tuple
import logging

from jobboard.core.exceptions import (
    ArgumentError, InvalidOperationError, NotFoundError, UnauthorizedAccessError
)
from jobboard.models.category import Category
from jobboard.models.job import Job, JobCategory, JobSkill, JobStatus
from jobboard.models.proposal import ProposalStatus
from jobboard.models.skill import Skill
from jobboard.models.user import User, UserRoleEnum
from jobboard.repositories.category_repo import CategoryRepository
from jobboard.repositories.job_repo import JobRepository
from jobboard.repositories.proposal_repo import ProposalRepository
from jobboard.repositories.skill_repo import SkillRepository
from jobboard.repositories.user_repo import UserRepository
from jobboard.schemas.job_schema import JobCreate, JobUpdate
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import (
    JobSubmittedPayload, JobUpdatedPayload, NotificationType
)

logger = logging.getLogger(__name__)

# A client may edit or withdraw a job until work starts
EDITABLE_JOB_STATUSES = (JobStatus.pending, JobStatus.open)


def parse_job_status(value: str) -> JobStatus:
    for candidate in JobStatus:
        if value.strip().lower() in (candidate.value.lower(), candidate.name):
            return candidate
    raise ArgumentError(f'"{value}" is not a valid job status')


def _unique(ids: Sequence[int]) -> List[int]:
    return list(dict.fromkeys(ids))


class JobService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.job_repo = JobRepository(db)
        self.user_repo = UserRepository(db)
        self.proposal_repo = ProposalRepository(db)
        self.category_repo = CategoryRepository(db)
        self.skill_repo = SkillRepository(db)
        self.notifications = NotificationService(db)

    async def _resolve_tags(
        self, category_ids: Sequence[int], skill_ids: Sequence[int]
    ) -> Tuple[List[Category], List[Skill]]:
        """
        Active categories and skills for the given ids, in request order.
        Unknown or inactive ids raise ArgumentError.
        """
        category_ids = _unique(category_ids)
        categories = {c.category_id: c for c in await self.category_repo.get_active_categories_by_ids(category_ids)}
        if len(categories) != len(category_ids):
            missing = [i for i in category_ids if i not in categories]
            raise ArgumentError(f"Some selected categories could not be found: {missing}")

        skill_ids = _unique(skill_ids)
        skills = {s.skill_id: s for s in await self.skill_repo.get_active_skills_by_ids(skill_ids)}
        if len(skills) != len(skill_ids):
            missing = [i for i in skill_ids if i not in skills]
            raise ArgumentError(f"Some selected skills could not be found: {missing}")

        return [categories[i] for i in category_ids], [skills[i] for i in skill_ids]

    async def _get_own_job(self, job_id: int, client: User) -> Job:
        job = await self.job_repo.get_job_by_id(job_id)
        if not job:
            raise NotFoundError("Job", job_id)
        if job.client_id != client.user_id:
            raise UnauthorizedAccessError("Only the job creator can change this job")
        return job

    async def create_job(self, data: JobCreate, client: User) -> Job:
        """
        New jobs wait in Pending until an admin approves them
        """
        if client.role != UserRoleEnum.client:
            raise UnauthorizedAccessError("Only clients can post jobs")

        categories, skills = await self._resolve_tags(data.category_ids, data.skill_ids)

        job = Job(
            client_id=client.user_id,
            title=data.title,
            description=data.description,
            budget_min=data.budget_min,
            budget_max=data.budget_max,
            deadline=data.deadline,
            status=JobStatus.pending,
            is_active=True,
            category_links=[JobCategory(category=c) for c in categories],
            skill_links=[JobSkill(skill=s) for s in skills],
        )
        await self.job_repo.create_job(job)

        for admin in await self.user_repo.list_active_admins():
            await self.notifications.create_interaction_notification(
                recipient_user_id=admin.user_id,
                sender_user_id=client.user_id,
                notification_type=NotificationType.JOB_SUBMITTED_FOR_APPROVAL,
                payload=JobSubmittedPayload(job_title=job.title, client_name=client.full_name),
                job_id=job.job_id,
                action_url=f"/admin/jobs/{job.job_id}",
            )

        await self.db.commit()
        logger.info(f"Job {job.job_id} created by client {client.user_id}, awaiting approval")
        return job

    async def update_job(self, job_id: int, data: JobUpdate, client: User) -> Job:
        """
        The owner edits a job while it is Pending or Open. Freelancers with a
        submitted proposal are told about the change.
        """
        job = await self._get_own_job(job_id, client)
        if job.status not in EDITABLE_JOB_STATUSES:
            raise InvalidOperationError(f"A job that is {job.status.value} cannot be edited")

        changes = data.model_dump(exclude_unset=True, exclude={"category_ids", "skill_ids"})
        budget_min = changes.get("budget_min", job.budget_min)
        budget_max = changes.get("budget_max", job.budget_max)
        if budget_min is not None and budget_max is not None and budget_min > budget_max:
            raise ArgumentError("budget_min cannot be greater than budget_max")

        categories, skills = await self._resolve_tags(data.category_ids or [], data.skill_ids or [])

        for key, value in changes.items():
            setattr(job, key, value)

        # Keep existing link rows so the composite keys are never inserted twice
        if data.category_ids is not None:
            existing = {link.category_id: link for link in job.category_links}
            job.category_links = [existing.get(c.category_id) or JobCategory(category=c) for c in categories]
        if data.skill_ids is not None:
            existing = {link.skill_id: link for link in job.skill_links}
            job.skill_links = [existing.get(s.skill_id) or JobSkill(skill=s) for s in skills]

        await self.job_repo.update_job(job)

        notified = set()
        for proposal in await self.proposal_repo.get_proposals_by_job_id(job_id):
            if proposal.status != ProposalStatus.submitted or proposal.freelancer_id in notified:
                continue
            await self.notifications.create_interaction_notification(
                recipient_user_id=proposal.freelancer_id,
                sender_user_id=client.user_id,
                notification_type=NotificationType.JOB_UPDATED,
                payload=JobUpdatedPayload(job_title=job.title, client_name=client.full_name),
                job_id=job_id,
                action_url=f"/jobs/{job_id}",
            )
            notified.add(proposal.freelancer_id)

        await self.db.commit()
        logger.info(f"Job {job_id} updated by client {client.user_id}, {len(notified)} freelancers notified")
        return job

    async def get_open_jobs(self) -> List[Job]:
        return await self.job_repo.list_jobs(status=JobStatus.open)

    async def get_job(self, job_id: int, user: User) -> Job:
        job = await self.job_repo.get_job_by_id(job_id, with_client=True)
        if not job:
            raise NotFoundError("Job", job_id)
        # Unapproved jobs are visible to their owner and admins only
        if job.status == JobStatus.pending and user.role != UserRoleEnum.admin and job.client_id != user.user_id:
            raise NotFoundError("Job", job_id)
        return job

    async def get_my_jobs(self, client: User) -> List[Job]:
        return await self.job_repo.list_jobs_by_client(client.user_id)

    async def get_freelancer_jobs(self, freelancer: User, status: Optional[str] = None) -> List[Job]:
        """Jobs the freelancer was hired for"""
        if freelancer.role != UserRoleEnum.freelancer:
            raise UnauthorizedAccessError("Only freelancers have hired jobs")
        status_filter = parse_job_status(status) if status else None
        return await self.job_repo.list_jobs_by_freelancer(freelancer.user_id, status_filter)

    async def delete_job(self, job_id: int, client: User) -> None:
        job = await self._get_own_job(job_id, client)
        if job.status not in EDITABLE_JOB_STATUSES:
            raise InvalidOperationError(f"A job that is {job.status.value} cannot be deleted")

        job.is_active = False
        await self.job_repo.update_job(job)
        await self.db.commit()
        logger.info(f"Job {job_id} deleted by client {client.user_id}")
