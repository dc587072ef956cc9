# jobboard/routers/proposal_router.py

from decimal import Decimal
from fastapi import APIRouter, BackgroundTasks, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from jobboard.core.database import get_db
from jobboard.core.security import get_current_user
from jobboard.models.user import User
from jobboard.schemas.proposal_schema import (
    ProposalOut, ProposalOutWithFreelancer, ProposalStatusResult, ProposalStatusUpdate
)
from jobboard.services.notification_dispatcher import (
    NotificationDispatcher, get_dispatcher, schedule_dispatch
)
from jobboard.services.proposal_service import ProposalService

router = APIRouter(
    prefix="/api/Proposals",
    tags=["Proposals"],
    dependencies=[Depends(get_current_user)]
)

# Submitting lives under the job it belongs to: POST /api/Jobs/{job_id}/proposals
job_proposal_router = APIRouter(
    prefix="/api/Jobs",
    tags=["Proposals"],
    dependencies=[Depends(get_current_user)]
)


def get_proposal_service(db: AsyncSession = Depends(get_db)) -> ProposalService:
    return ProposalService(db)


@job_proposal_router.post(
    "/{job_id}/proposals",
    response_model=ProposalOut,
    status_code=status.HTTP_201_CREATED
)
async def api_submit_proposal(
    job_id: int,
    background_tasks: BackgroundTasks,
    cover_letter: str = Form(...),
    bid_amount: Decimal = Form(...),
    estimated_timeline_days: Optional[int] = Form(None),
    attachment: Optional[UploadFile] = File(None),
    service: ProposalService = Depends(get_proposal_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    A freelancer bids on an Open job (form-data; the optional attachment must be a PDF)
    """
    proposal = await service.submit_proposal(
        job_id=job_id,
        freelancer=current_user,
        cover_letter=cover_letter,
        bid_amount=bid_amount,
        estimated_timeline_days=estimated_timeline_days,
        attachment=attachment,
    )
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return proposal


@job_proposal_router.get("/{job_id}/proposals", response_model=List[ProposalOutWithFreelancer])
async def api_get_job_proposals(
    job_id: int,
    service: ProposalService = Depends(get_proposal_service),
    current_user: User = Depends(get_current_user)
):
    """
    Job owner only
    """
    return await service.get_job_proposals(job_id, current_user)


@router.get("/my", response_model=List[ProposalOut])
async def api_get_my_proposals(
    service: ProposalService = Depends(get_proposal_service),
    current_user: User = Depends(get_current_user)
):
    return await service.get_my_proposals(current_user)


@router.delete("/{proposal_id}", status_code=status.HTTP_204_NO_CONTENT)
async def api_withdraw_proposal(
    proposal_id: int,
    service: ProposalService = Depends(get_proposal_service),
    current_user: User = Depends(get_current_user)
):
    """
    Withdraw a proposal the client has not looked at yet
    """
    await service.withdraw_proposal(proposal_id, current_user)


@router.put("/{proposal_id}/status", response_model=ProposalStatusResult)
async def api_update_proposal_status(
    proposal_id: int,
    body: ProposalStatusUpdate,
    background_tasks: BackgroundTasks,
    service: ProposalService = Depends(get_proposal_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Accept or reject a proposal. Accepting creates the contract.
    """
    proposal, contract = await service.update_proposal_status(
        proposal_id, body.status, body.client_feedback, current_user
    )
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return ProposalStatusResult(
        proposal=ProposalOut.model_validate(proposal),
        contract_id=contract.contract_id if contract else None,
    )
