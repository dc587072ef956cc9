# jobboard/routers/admin_router.py

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from jobboard.core.database import get_db
from jobboard.core.security import get_current_admin
from jobboard.models.user import User
from jobboard.schemas.contract_schema import RepairResult
from jobboard.schemas.job_schema import AdminJobDetails, JobOutWithClient, JobReviewAction
from jobboard.services.admin_service import AdminService
from jobboard.services.notification_dispatcher import (
    NotificationDispatcher, get_dispatcher, schedule_dispatch
)

router = APIRouter(
    prefix="/api/Admin",
    tags=["Admin"],
    dependencies=[Depends(get_current_admin)]
)


def get_admin_service(db: AsyncSession = Depends(get_db)) -> AdminService:
    return AdminService(db)


@router.get("/jobs", response_model=List[JobOutWithClient])
async def api_list_jobs(
    status_filter: Optional[str] = Query(None, alias="status"),
    service: AdminService = Depends(get_admin_service)
):
    """
    All jobs, optionally filtered by status (e.g. ?status=Pending)
    """
    return await service.list_jobs(status_filter)


@router.get("/jobs/{job_id}/details", response_model=AdminJobDetails)
async def api_get_job_details(
    job_id: int,
    service: AdminService = Depends(get_admin_service)
):
    details = await service.get_job_details(job_id)
    result = AdminJobDetails.model_validate(details["job"])
    result.proposal_count = details["proposal_count"]
    return result


@router.post("/jobs/{job_id}/approve", response_model=JobOutWithClient)
async def api_approve_job(
    job_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[JobReviewAction] = Body(None),
    service: AdminService = Depends(get_admin_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    admin: User = Depends(get_current_admin)
):
    """
    Pending -> Open; the job becomes visible to freelancers
    """
    job = await service.approve_job(job_id, body.message if body else None, admin)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return job


@router.post("/jobs/{job_id}/reject", response_model=JobOutWithClient)
async def api_reject_job(
    job_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[JobReviewAction] = Body(None),
    service: AdminService = Depends(get_admin_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    admin: User = Depends(get_current_admin)
):
    """
    Pending -> Cancelled; the admin message is sent to the client
    """
    job = await service.reject_job(job_id, body.message if body else None, admin)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return job


@router.post("/contracts/repair-versions", response_model=RepairResult)
async def api_repair_contract_versions(
    service: AdminService = Depends(get_admin_service)
):
    """
    Make sure every contract has exactly one current version
    """
    return RepairResult(repaired_contract_ids=await service.repair_contract_versions())
