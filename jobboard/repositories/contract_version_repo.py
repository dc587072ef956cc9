# jobboard/repositories/contract_version_repo.py

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select
from sqlalchemy import update, func, case
from typing import List, Optional
import logging

from jobboard.core.exceptions import NotFoundError
from jobboard.models.contract import Contract
from jobboard.models.contract_version import ContractVersion
from jobboard.models.contract_change_request import ContractChangeRequest, ChangeRequestStatus

logger = logging.getLogger(__name__)


class ContractVersionRepository:
    """
    Version manager for contract terms.

    Every contract that has versions keeps exactly one active version flagged
    `is_current_version`. Promotion happens inside the caller's transaction:
    the contract row is locked, the flag is cleared on every version with one
    UPDATE and set on the target with a second one. Nothing here commits.
    """
    def __init__(self, db: AsyncSession):
        self.db = db

    def _pending_proposed_ids(self, contract_id: int):
        # Versions proposed by a still-open change request
        return select(ContractChangeRequest.proposed_version_id).where(
            ContractChangeRequest.contract_id == contract_id,
            ContractChangeRequest.status == ChangeRequestStatus.pending,
            ContractChangeRequest.is_active.is_(True)
        )

    async def _lock_contract(self, contract_id: int) -> None:
        # FOR UPDATE is a no-op on SQLite, which serialises writers anyway
        stmt = select(Contract.contract_id).where(Contract.contract_id == contract_id).with_for_update()
        await self.db.execute(stmt)

    # --- Reads ---

    async def get_current_version(self, contract_id: int) -> Optional[ContractVersion]:
        stmt = (
            select(ContractVersion)
            .where(
                ContractVersion.contract_id == contract_id,
                ContractVersion.is_active.is_(True),
                ContractVersion.is_current_version.is_(True)
            )
            .order_by(ContractVersion.version_number.desc())
            .limit(1)
        )
        result = await self.db.execute(stmt)
        version = result.scalars().first()
        if version is None:
            logger.warning(f"Contract {contract_id} has no current version")
        return version

    async def get_version_by_id(self, version_id: int) -> Optional[ContractVersion]:
        result = await self.db.execute(
            select(ContractVersion).where(ContractVersion.version_id == version_id)
        )
        return result.scalars().first()

    async def get_version_by_number(self, contract_id: int, version_number: int) -> Optional[ContractVersion]:
        stmt = select(ContractVersion).where(
            ContractVersion.contract_id == contract_id,
            ContractVersion.version_number == version_number
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def get_next_version_number(self, contract_id: int) -> int:
        """
        Max version number + 1 (1 when there are none). Deactivated versions
        count too, so numbers are never handed out twice.
        """
        stmt = select(func.max(ContractVersion.version_number)).where(
            ContractVersion.contract_id == contract_id
        )
        current_max = (await self.db.execute(stmt)).scalar()
        return (current_max or 0) + 1

    async def get_version_history(self, contract_id: int) -> List[ContractVersion]:
        """
        Established versions, newest first. Versions still waiting on a pending
        change request are not part of the history yet.
        """
        stmt = (
            select(ContractVersion)
            .where(
                ContractVersion.contract_id == contract_id,
                ContractVersion.is_active.is_(True),
                ContractVersion.version_id.not_in(self._pending_proposed_ids(contract_id))
            )
            .order_by(ContractVersion.version_number.desc())
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def count_versions(self, contract_id: int) -> int:
        stmt = select(func.count(ContractVersion.version_id)).where(
            ContractVersion.contract_id == contract_id,
            ContractVersion.is_active.is_(True),
            ContractVersion.version_id.not_in(self._pending_proposed_ids(contract_id))
        )
        return (await self.db.execute(stmt)).scalar_one()

    # --- Writes ---

    async def create_version(self, version: ContractVersion) -> ContractVersion:
        """Add a version as-is (proposed versions are created non-current)."""
        self.db.add(version)
        await self.db.flush()
        return version

    async def create_new_version(self, version: ContractVersion) -> ContractVersion:
        """
        Insert `version` as the contract's only current version.
        """
        await self._lock_contract(version.contract_id)
        await self.db.execute(
            update(ContractVersion)
            .where(ContractVersion.contract_id == version.contract_id)
            .values(is_current_version=False)
        )
        version.is_current_version = True
        self.db.add(version)
        await self.db.flush()
        logger.info(
            f"Contract {version.contract_id}: version {version.version_number} created as current"
        )
        return version

    async def set_current_version(self, contract_id: int, version_id: int) -> ContractVersion:
        """
        Promote an existing, active version of the contract to current.
        """
        await self._lock_contract(contract_id)

        target = await self.get_version_by_id(version_id)
        if target is None or target.contract_id != contract_id or not target.is_active:
            raise NotFoundError("ContractVersion", version_id)

        await self.db.execute(
            update(ContractVersion)
            .where(ContractVersion.contract_id == contract_id)
            .values(is_current_version=False)
        )
        await self.db.execute(
            update(ContractVersion)
            .where(ContractVersion.version_id == version_id)
            .values(is_current_version=True)
        )
        await self.db.refresh(target)
        logger.info(f"Contract {contract_id}: version {target.version_number} is now current")
        return target

    async def deactivate_version(self, version: ContractVersion) -> None:
        version.is_active = False
        version.is_current_version = False
        await self.db.flush()

    # --- Repair pass for legacy data ---

    async def find_contracts_without_current_version(self) -> List[int]:
        """
        Contracts whose active versions do not carry exactly one current flag
        (none at all, or more than one).
        """
        current_count = func.sum(case((ContractVersion.is_current_version.is_(True), 1), else_=0))
        stmt = (
            select(ContractVersion.contract_id)
            .where(ContractVersion.is_active.is_(True))
            .group_by(ContractVersion.contract_id)
            .having(current_count != 1)
            .order_by(ContractVersion.contract_id)
        )
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def repair_current_versions(self) -> List[int]:
        """
        Re-establish a single current version on every broken contract: the
        highest-numbered version that is not awaiting approval, or simply the
        highest-numbered one when every version is awaiting approval.
        """
        repaired = []
        for contract_id in await self.find_contracts_without_current_version():
            stmt = (
                select(ContractVersion)
                .where(ContractVersion.contract_id == contract_id, ContractVersion.is_active.is_(True))
                .order_by(ContractVersion.version_number.desc())
            )
            versions = (await self.db.execute(stmt)).scalars().all()
            pending_ids = set((await self.db.execute(self._pending_proposed_ids(contract_id))).scalars().all())

            candidates = [v for v in versions if v.version_id not in pending_ids] or versions
            target = candidates[0]
            await self.set_current_version(contract_id, target.version_id)
            logger.warning(
                f"Repaired contract {contract_id}: version {target.version_number} set as current"
            )
            repaired.append(contract_id)
        return repaired
