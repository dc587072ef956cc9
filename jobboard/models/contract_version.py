# jobboard/models/contract_version.py

from sqlalchemy import (
    Column, String, TEXT, DECIMAL, TIMESTAMP, INT, BIGINT, BOOLEAN, ForeignKey, CHAR,
    UniqueConstraint, Index, func
)
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow

PAYMENT_TYPES = ("Fixed", "Hourly", "Milestone")


class ContractVersion(Base):
    """
    Snapshot of a contract's terms. Version 1 is written when the contract is
    created; every change proposal writes a new, non-current version that only
    becomes current when the counterparty approves it.
    """
    __tablename__ = "contract_versions"
    __table_args__ = (
        UniqueConstraint("contract_id", "version_number", name="uq_contract_versions_number"),
        Index("ix_contract_versions_current", "contract_id", "is_current_version"),
    )

    version_id = Column(INT, primary_key=True, autoincrement=True)
    contract_id = Column(INT, ForeignKey("contracts.contract_id", ondelete="CASCADE"), nullable=False, index=True)
    version_number = Column(INT, nullable=False)

    # --- Terms ---
    title = Column(String(200), nullable=False)
    description = Column(TEXT, nullable=False)
    payment_amount = Column(DECIMAL(10, 2), nullable=False)
    payment_type = Column(String(20), nullable=False, default="Fixed")
    project_deadline = Column(TIMESTAMP, nullable=True)
    deliverables = Column(TEXT, nullable=True)
    terms_and_conditions = Column(TEXT, nullable=True)
    additional_notes = Column(TEXT, nullable=True)

    # --- Metadata ---
    created_by_user_id = Column(String(36), nullable=False)  # "system" for generated versions
    created_by_role = Column(String(20), nullable=False)     # Client / Freelancer / System
    is_current_version = Column(BOOLEAN, default=False, nullable=False)
    change_reason = Column(String(500), nullable=True)

    is_active = Column(BOOLEAN, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())

    contract = relationship("Contract", back_populates="versions")
    attachments = relationship(
        "ContractAttachment",
        back_populates="version",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )


class ContractAttachment(Base):
    __tablename__ = "contract_attachments"

    attachment_id = Column(INT, primary_key=True, autoincrement=True)
    version_id = Column(INT, ForeignKey("contract_versions.version_id", ondelete="CASCADE"), nullable=False, index=True)
    file_name = Column(String(255), nullable=False)
    file_url = Column(String(500), nullable=False)
    content_type = Column(String(100), nullable=False)
    file_size = Column(BIGINT, nullable=False)
    uploaded_by_user_id = Column(CHAR(36), nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())

    version = relationship("ContractVersion", back_populates="attachments")
