# jobboard/routers/contract_router.py

from datetime import datetime
from decimal import Decimal
from fastapi import APIRouter, BackgroundTasks, Body, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from jobboard.core.database import get_db
from jobboard.core.security import get_current_user
from jobboard.models.user import User
from jobboard.schemas.contract_schema import (
    ChangeRequestOut, ChangeRequestResponse, ChangeRequestWithVersions, CompletionResponse,
    ContractActionNotes, ContractChangeProposal, ContractDetails, ContractHistory, ContractOut,
    ContractStatusUpdate, ContractVersionOut, ProposeChangesResult
)
from jobboard.services.contract_change_service import AttachmentUpload, ContractChangeService
from jobboard.services.contract_service import ContractService
from jobboard.services.notification_dispatcher import (
    NotificationDispatcher, get_dispatcher, schedule_dispatch
)

router = APIRouter(
    prefix="/api/Contracts",
    tags=["Contracts"],
    dependencies=[Depends(get_current_user)]
)


def get_contract_service(db: AsyncSession = Depends(get_db)) -> ContractService:
    return ContractService(db)


def get_change_service(db: AsyncSession = Depends(get_db)) -> ContractChangeService:
    return ContractChangeService(db)


# --- Queries ---

@router.get("", response_model=List[ContractOut], summary="My contracts")
async def api_get_my_contracts(
    status_filter: Optional[str] = Query(None, alias="status"),
    service: ContractService = Depends(get_contract_service),
    current_user: User = Depends(get_current_user)
):
    """
    Contracts where the current user is the client or the freelancer
    """
    return await service.get_user_contracts(current_user, status_filter)


@router.get("/pending-changes", response_model=List[ChangeRequestWithVersions])
async def api_get_my_pending_changes(
    service: ContractChangeService = Depends(get_change_service),
    current_user: User = Depends(get_current_user)
):
    """
    Pending change requests I raised, plus the ones waiting on my answer
    """
    return await service.get_my_pending_requests(current_user)


@router.get("/{contract_id}", response_model=ContractDetails)
async def api_get_contract_details(
    contract_id: int,
    service: ContractService = Depends(get_contract_service),
    current_user: User = Depends(get_current_user)
):
    contract, current_version = await service.get_contract_details(contract_id, current_user)
    details = ContractDetails.model_validate(contract)
    if current_version is not None:
        details.current_version = ContractVersionOut.model_validate(current_version)
    return details


@router.get("/{contract_id}/history", response_model=ContractHistory)
async def api_get_contract_history(
    contract_id: int,
    service: ContractChangeService = Depends(get_change_service),
    current_user: User = Depends(get_current_user)
):
    """
    Version history (newest first) and every change request of the contract
    """
    history = await service.get_contract_history(contract_id, current_user)
    return ContractHistory(
        contract=ContractOut.model_validate(history["contract"]),
        current_version=(
            ContractVersionOut.model_validate(history["current_version"])
            if history["current_version"] is not None else None
        ),
        versions=[ContractVersionOut.model_validate(v) for v in history["versions"]],
        change_requests=[ChangeRequestOut.model_validate(r) for r in history["change_requests"]],
    )


@router.get("/{contract_id}/change-requests", response_model=List[ChangeRequestWithVersions])
async def api_get_change_requests(
    contract_id: int,
    pending_only: bool = False,
    service: ContractChangeService = Depends(get_change_service),
    current_user: User = Depends(get_current_user)
):
    if pending_only:
        return await service.get_pending_requests(contract_id, current_user)
    return await service.get_request_history(contract_id, current_user)


# --- Change requests ---

@router.post(
    "/{contract_id}/propose-changes",
    response_model=ProposeChangesResult,
    status_code=status.HTTP_201_CREATED,
    summary="Propose new contract terms"
)
async def api_propose_changes(
    contract_id: int,
    background_tasks: BackgroundTasks,
    title: str = Form(...),
    description: str = Form(...),
    payment_amount: Decimal = Form(...),
    change_reason: str = Form(...),
    payment_type: str = Form("Fixed"),
    project_deadline: Optional[datetime] = Form(None),
    deliverables: Optional[str] = Form(None),
    terms_and_conditions: Optional[str] = Form(None),
    additional_notes: Optional[str] = Form(None),
    attachments: Optional[List[UploadFile]] = File(None),
    service: ContractChangeService = Depends(get_change_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Either party proposes new terms (multipart form, optional attachments).
    The counterparty then approves or rejects the change request.
    """
    data = ContractChangeProposal(
        title=title,
        description=description,
        payment_amount=payment_amount,
        payment_type=payment_type,
        project_deadline=project_deadline,
        deliverables=deliverables,
        terms_and_conditions=terms_and_conditions,
        additional_notes=additional_notes,
        change_reason=change_reason,
    )
    uploads = [
        AttachmentUpload(
            file_name=f.filename or "attachment",
            content_type=f.content_type or "application/octet-stream",
            content=await f.read(),
        )
        for f in attachments or []
    ]
    request_id = await service.propose_changes(contract_id, data, uploads, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return ProposeChangesResult(change_request_id=request_id)


@router.post("/change-requests/{request_id}/respond", response_model=ChangeRequestOut)
async def api_respond_to_change(
    request_id: int,
    body: ChangeRequestResponse,
    background_tasks: BackgroundTasks,
    service: ContractChangeService = Depends(get_change_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    The counterparty approves (the proposed version becomes current) or rejects
    """
    request = await service.respond_to_change(request_id, body.is_approved, body.response_notes, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return request


# --- Status ---

@router.put("/{contract_id}/status", response_model=ContractOut)
async def api_update_status(
    contract_id: int,
    body: ContractStatusUpdate,
    background_tasks: BackgroundTasks,
    service: ContractService = Depends(get_contract_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Allowed moves: Pending -> Active -> Completed, Pending/Active -> Cancelled
    """
    contract = await service.update_contract_status(contract_id, body.status, body.notes, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return contract


@router.post("/{contract_id}/start", response_model=ContractOut)
async def api_start_contract(
    contract_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[ContractActionNotes] = Body(None),
    service: ContractService = Depends(get_contract_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    contract = await service.start_contract(contract_id, body.notes if body else None, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return contract


@router.post("/{contract_id}/complete", response_model=ContractOut)
async def api_complete_contract(
    contract_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[ContractActionNotes] = Body(None),
    service: ContractService = Depends(get_contract_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    contract = await service.complete_contract(contract_id, body.notes if body else None, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return contract


@router.post("/{contract_id}/cancel", response_model=ContractOut)
async def api_cancel_contract(
    contract_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[ContractActionNotes] = Body(None),
    service: ContractService = Depends(get_contract_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    contract = await service.cancel_contract(contract_id, body.notes if body else None, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return contract


# --- Completion handshake ---

@router.post("/{contract_id}/request-completion", response_model=ContractOut)
async def api_request_completion(
    contract_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[ContractActionNotes] = Body(None),
    service: ContractService = Depends(get_contract_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    """
    Ask the other party to confirm the work is done
    """
    contract = await service.request_completion(contract_id, body.notes if body else None, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return contract


@router.post("/{contract_id}/respond-completion", response_model=ContractOut)
async def api_respond_completion(
    contract_id: int,
    body: CompletionResponse,
    background_tasks: BackgroundTasks,
    service: ContractService = Depends(get_contract_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    contract = await service.respond_to_completion(contract_id, body.is_approved, body.notes, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return contract


@router.post("/{contract_id}/cancel-completion", response_model=ContractOut)
async def api_cancel_completion(
    contract_id: int,
    background_tasks: BackgroundTasks,
    body: Optional[ContractActionNotes] = Body(None),
    service: ContractService = Depends(get_contract_service),
    dispatcher: NotificationDispatcher = Depends(get_dispatcher),
    current_user: User = Depends(get_current_user)
):
    contract = await service.cancel_completion_request(contract_id, body.notes if body else None, current_user)
    schedule_dispatch(background_tasks, service.notifications, dispatcher)
    return contract
