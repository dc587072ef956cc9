# jobboard/repositories/contract_change_request_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import selectinload
from sqlalchemy import or_, and_
from typing import List, Optional

from jobboard.models.contract import Contract
from jobboard.models.contract_change_request import ContractChangeRequest, ChangeRequestStatus


class ContractChangeRequestRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _with_versions(self):
        return [
            selectinload(ContractChangeRequest.from_version),
            selectinload(ContractChangeRequest.proposed_version),
        ]

    async def create_request(self, request: ContractChangeRequest) -> ContractChangeRequest:
        self.db.add(request)
        await self.db.flush()
        return request

    async def get_request_by_id(self, request_id: int) -> Optional[ContractChangeRequest]:
        """
        Request with its contract and both versions loaded
        """
        stmt = (
            select(ContractChangeRequest)
            .where(ContractChangeRequest.request_id == request_id, ContractChangeRequest.is_active.is_(True))
            .options(selectinload(ContractChangeRequest.contract), *self._with_versions())
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def has_pending_request(self, contract_id: int) -> bool:
        stmt = select(ContractChangeRequest.request_id).where(
            ContractChangeRequest.contract_id == contract_id,
            ContractChangeRequest.status == ChangeRequestStatus.pending,
            ContractChangeRequest.is_active.is_(True)
        ).limit(1)
        result = await self.db.execute(stmt)
        return result.scalar() is not None

    async def get_pending_requests(self, contract_id: int) -> List[ContractChangeRequest]:
        stmt = (
            select(ContractChangeRequest)
            .where(
                ContractChangeRequest.contract_id == contract_id,
                ContractChangeRequest.status == ChangeRequestStatus.pending,
                ContractChangeRequest.is_active.is_(True)
            )
            .options(*self._with_versions())
            .order_by(ContractChangeRequest.request_date.desc(), ContractChangeRequest.request_id.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_request_history(self, contract_id: int) -> List[ContractChangeRequest]:
        stmt = (
            select(ContractChangeRequest)
            .where(
                ContractChangeRequest.contract_id == contract_id,
                ContractChangeRequest.is_active.is_(True)
            )
            .options(*self._with_versions())
            .order_by(ContractChangeRequest.request_date.desc(), ContractChangeRequest.request_id.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_pending_requests_for_user(self, user_id: str) -> List[ContractChangeRequest]:
        """
        Pending requests the user raised, plus pending requests raised by the
        other party on contracts the user belongs to.
        """
        is_party = or_(Contract.client_id == user_id, Contract.freelancer_id == user_id)
        stmt = (
            select(ContractChangeRequest)
            .join(Contract, Contract.contract_id == ContractChangeRequest.contract_id)
            .where(
                ContractChangeRequest.status == ChangeRequestStatus.pending,
                ContractChangeRequest.is_active.is_(True),
                Contract.is_active.is_(True),
                or_(
                    ContractChangeRequest.requested_by_user_id == user_id,
                    and_(ContractChangeRequest.requested_by_user_id != user_id, is_party)
                )
            )
            .options(*self._with_versions())
            .order_by(ContractChangeRequest.request_date.desc(), ContractChangeRequest.request_id.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def update_request(self, request: ContractChangeRequest) -> ContractChangeRequest:
        await self.db.flush()
        return request
