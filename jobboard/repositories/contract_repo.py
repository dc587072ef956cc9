# jobboard/repositories/contract_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy.orm import joinedload
from sqlalchemy.sql.expression import or_, exists
from typing import List, Optional

from jobboard.models.contract import Contract, ContractStatus


class ContractRepository:
    """
    CRUD access to the 'contracts' table. Soft-deleted contracts are skipped.
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    def _get_common_contract_options(self):
        # Everything ContractDetails serialises
        return [
            joinedload(Contract.job),
            joinedload(Contract.client),
            joinedload(Contract.freelancer),
        ]

    async def create_contract(self, contract: Contract) -> Contract:
        self.db.add(contract)
        await self.db.flush()
        return contract

    async def check_contract_exists_by_proposal(self, proposal_id: int) -> bool:
        stmt = select(exists().where(Contract.proposal_id == proposal_id))
        result = await self.db.execute(stmt)
        return result.scalar()

    async def get_contract_by_id(self, contract_id: int, with_details: bool = False) -> Optional[Contract]:
        stmt = select(Contract).where(
            Contract.contract_id == contract_id,
            Contract.is_active.is_(True)
        )
        if with_details:
            stmt = stmt.options(*self._get_common_contract_options())
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_contracts_by_user(self, user_id: str, status: Optional[ContractStatus] = None) -> List[Contract]:
        stmt = (
            select(Contract)
            .where(
                Contract.is_active.is_(True),
                or_(Contract.client_id == user_id, Contract.freelancer_id == user_id)
            )
            .order_by(Contract.created_at.desc(), Contract.contract_id.desc())
        )
        if status is not None:
            stmt = stmt.where(Contract.status == status)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_contract_by_job(self, job_id: int) -> Optional[Contract]:
        stmt = select(Contract).where(Contract.job_id == job_id, Contract.is_active.is_(True))
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def update_contract(self, contract: Contract) -> Contract:
        await self.db.flush()
        return contract
