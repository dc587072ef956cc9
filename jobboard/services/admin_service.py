# jobboard/services/admin_service.py

from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from jobboard.core.exceptions import InvalidOperationError, NotFoundError
from jobboard.models.job import Job, JobStatus
from jobboard.models.user import User
from jobboard.repositories.contract_version_repo import ContractVersionRepository
from jobboard.repositories.job_repo import JobRepository
from jobboard.services.job_service import parse_job_status
from jobboard.services.notification_service import NotificationService
from jobboard.utils.notification_templates import JobReviewPayload, NotificationType

logger = logging.getLogger(__name__)


class AdminService:
    def __init__(self, db: AsyncSession):
        self.db = db
        self.job_repo = JobRepository(db)
        self.version_repo = ContractVersionRepository(db)
        self.notifications = NotificationService(db)

    async def list_jobs(self, status: Optional[str] = None) -> List[Job]:
        status_filter = parse_job_status(status) if status else None
        return await self.job_repo.list_jobs(status=status_filter)

    async def get_job_details(self, job_id: int) -> dict:
        job = await self.job_repo.get_job_by_id(job_id, with_client=True)
        if not job:
            raise NotFoundError("Job", job_id)
        return {"job": job, "proposal_count": await self.job_repo.count_proposals(job_id)}

    async def _review_job(
        self, job_id: int, approve: bool, message: Optional[str], admin: User
    ) -> Job:
        job = await self.job_repo.get_job_by_id(job_id, with_client=True)
        if not job:
            raise NotFoundError("Job", job_id)
        if job.status != JobStatus.pending:
            raise InvalidOperationError(
                f"Only Pending jobs can be reviewed; this job is {job.status.value}"
            )

        job.admin_message = message
        if approve:
            job.status = JobStatus.open
            job.approved_by = admin.user_id
            notification_type = NotificationType.JOB_APPROVED
        else:
            job.status = JobStatus.cancelled
            job.rejected_by = admin.user_id
            notification_type = NotificationType.JOB_REJECTED
        await self.job_repo.update_job(job)

        await self.notifications.create_interaction_notification(
            recipient_user_id=job.client_id,
            sender_user_id=admin.user_id,
            notification_type=notification_type,
            payload=JobReviewPayload(job_title=job.title, admin_message=message),
            job_id=job.job_id,
            action_url=f"/jobs/{job.job_id}",
        )

        await self.db.commit()
        logger.info(f"Job {job_id} {'approved' if approve else 'rejected'} by admin {admin.user_id}")
        return job

    async def approve_job(self, job_id: int, message: Optional[str], admin: User) -> Job:
        return await self._review_job(job_id, True, message, admin)

    async def reject_job(self, job_id: int, message: Optional[str], admin: User) -> Job:
        return await self._review_job(job_id, False, message, admin)

    async def repair_contract_versions(self) -> List[int]:
        repaired = await self.version_repo.repair_current_versions()
        await self.db.commit()
        if repaired:
            logger.warning(f"Repaired current versions on contracts {repaired}")
        return repaired
