# jobboard/models/contract.py

from sqlalchemy import (
    Column, String, DECIMAL, TIMESTAMP, INT, BOOLEAN, ForeignKey, Enum, CHAR, func
)
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow
import enum


class ContractStatus(str, enum.Enum):
    pending = "Pending"
    active = "Active"
    completed = "Completed"
    cancelled = "Cancelled"


ContractStatusEnum = Enum(
    ContractStatus,
    values_callable=lambda obj: [e.value for e in obj],
    name="contract_status_enum",
)


class Contract(Base):
    __tablename__ = "contracts"

    contract_id = Column(INT, primary_key=True, autoincrement=True)

    # --- Links ---
    proposal_id = Column(INT, ForeignKey("proposals.proposal_id", ondelete="RESTRICT"), unique=True, nullable=False, index=True)
    job_id = Column(INT, ForeignKey("jobs.job_id", ondelete="RESTRICT"), nullable=False, index=True)
    client_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)
    freelancer_id = Column(CHAR(36), ForeignKey("users.user_id", ondelete="RESTRICT"), nullable=False, index=True)

    # --- Terms (mirrors the current ContractVersion) ---
    payment_amount = Column(DECIMAL(10, 2), nullable=False)
    agreed_payment_type = Column(String(50), nullable=True)
    start_time = Column(TIMESTAMP, nullable=True)
    end_time = Column(TIMESTAMP, nullable=True)

    # --- State ---
    status = Column(ContractStatusEnum, default=ContractStatus.pending, nullable=False, index=True)
    completion_requested_by_user_id = Column(CHAR(36), nullable=True)
    completion_requested_at = Column(TIMESTAMP, nullable=True)

    is_active = Column(BOOLEAN, default=True, nullable=False)  # soft delete
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())

    proposal = relationship("Proposal", back_populates="contract")
    job = relationship("Job", back_populates="contracts")

    client = relationship(
        "User",
        foreign_keys=[client_id],
        back_populates="contracts_as_client"
    )
    freelancer = relationship(
        "User",
        foreign_keys=[freelancer_id],
        back_populates="contracts_as_freelancer"
    )

    # Contract owns its versions and change requests
    versions = relationship(
        "ContractVersion",
        back_populates="contract",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="ContractVersion.version_number",
    )
    change_requests = relationship(
        "ContractChangeRequest",
        back_populates="contract",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    def party_role(self, user_id: str) -> str | None:
        """'Client' / 'Freelancer' when the user is a party to this contract."""
        if user_id == self.client_id:
            return "Client"
        if user_id == self.freelancer_id:
            return "Freelancer"
        return None

    def counterparty_id(self, user_id: str) -> str:
        return self.freelancer_id if user_id == self.client_id else self.client_id
