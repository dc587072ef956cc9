# jobboard/models/contract_change_request.py

from sqlalchemy import (
    Column, String, TEXT, TIMESTAMP, INT, BOOLEAN, ForeignKey, Enum, CHAR, func
)
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow
import enum


class ChangeRequestStatus(str, enum.Enum):
    pending = "Pending"
    approved = "Approved"
    rejected = "Rejected"


ChangeRequestStatusEnum = Enum(
    ChangeRequestStatus,
    values_callable=lambda obj: [e.value for e in obj],
    name="change_request_status_enum",
)


class ContractChangeRequest(Base):
    __tablename__ = "contract_change_requests"

    request_id = Column(INT, primary_key=True, autoincrement=True)
    contract_id = Column(INT, ForeignKey("contracts.contract_id", ondelete="CASCADE"), nullable=False, index=True)

    from_version_id = Column(INT, ForeignKey("contract_versions.version_id"), nullable=False)
    proposed_version_id = Column(INT, ForeignKey("contract_versions.version_id"), nullable=False)

    requested_by_user_id = Column(CHAR(36), nullable=False, index=True)
    requested_by_role = Column(String(20), nullable=False)
    change_description = Column(String(500), nullable=False)
    request_date = Column(TIMESTAMP, default=utcnow, server_default=func.now())

    status = Column(ChangeRequestStatusEnum, default=ChangeRequestStatus.pending, nullable=False, index=True)

    # --- Response (set once, terminal afterwards) ---
    response_by_user_id = Column(CHAR(36), nullable=True)
    response_by_role = Column(String(20), nullable=True)
    response_date = Column(TIMESTAMP, nullable=True)
    response_notes = Column(TEXT, nullable=True)

    is_active = Column(BOOLEAN, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())

    contract = relationship("Contract", back_populates="change_requests")
    from_version = relationship("ContractVersion", foreign_keys=[from_version_id])
    proposed_version = relationship("ContractVersion", foreign_keys=[proposed_version_id])

    @property
    def is_pending(self) -> bool:
        return self.status == ChangeRequestStatus.pending
