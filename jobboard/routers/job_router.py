# jobboard/routers/job_router.py

from fastapi import APIRouter, BackgroundTasks, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from jobboard.core.database import get_db
from jobboard.core.security import get_current_user
from jobboard.models.user import User
from jobboard.schemas.job_schema import (
    JobCreate, JobDetails, JobOut, JobOutWithClient, JobUpdate, JobWithTags
)
from jobboard.services.job_service import JobService
from jobboard.services.notification_dispatcher import (
    NotificationDispatcher, get_dispatcher, schedule_dispatch
)

router = APIRouter(
    prefix="/api/Jobs",
    tags=["Jobs"],
    dependencies=[Depends(get_current_user)]
)


def get_job_service(db: AsyncSession = Depends(get_db)) -> JobService:
    return JobService(db)


@router.post("", response_model=JobWithTags, status_code=status.HTTP_201_CREATED)
async def api_create_job(
    job_data: JobCreate,
    background_tasks: BackgroundTasks,
    service: JobService = Depends(get_job_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Post a job. It stays Pending until an admin approves it.
    """
    job = await service.create_job(job_data, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return job


@router.get("", response_model=List[JobOutWithClient], summary="Open jobs")
async def api_get_open_jobs(
    service: JobService = Depends(get_job_service)
):
    return await service.get_open_jobs()


@router.get("/my", response_model=List[JobOut])
async def api_get_my_jobs(
    service: JobService = Depends(get_job_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_my_jobs(current_user)


@router.get("/my-freelancer-jobs", response_model=List[JobOutWithClient])
async def api_get_my_freelancer_jobs(
    status_filter: Optional[str] = Query(None, alias="status"),
    service: JobService = Depends(get_job_service),
    current_user: User = Depends(get_current_user)
):
    """
    Jobs the current freelancer was hired for, optionally by status
    """
    return await service.get_freelancer_jobs(current_user, status_filter)


@router.get("/{job_id}", response_model=JobDetails)
async def api_get_job(
    job_id: int,
    service: JobService = Depends(get_job_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_job(job_id, current_user)


@router.put("/{job_id}", response_model=JobWithTags)
async def api_update_job(
    job_id: int,
    job_data: JobUpdate,
    background_tasks: BackgroundTasks,
    service: JobService = Depends(get_job_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Edit a Pending or Open job. Omitted fields and tag lists stay as they are.
    """
    job = await service.update_job(job_id, job_data, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return job


@router.delete("/{job_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_delete_job(
    job_id: int,
    service: JobService = Depends(get_job_service),
    current_user: User = Depends(get_current_user)
):
    await service.delete_job(job_id, current_user)
