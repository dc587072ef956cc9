# models/user.py
from sqlalchemy import Column, String, Boolean, Enum, CHAR, TIMESTAMP, func
from sqlalchemy.orm import relationship
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow
import enum


class UserRoleEnum(str, enum.Enum):
    client = "Client"
    freelancer = "Freelancer"
    admin = "Admin"


class User(Base):
    __tablename__ = "users"

    user_id = Column(CHAR(36), primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(255), nullable=False)
    role = Column(Enum(UserRoleEnum, values_callable=lambda obj: [e.value for e in obj]), nullable=False)
    is_active = Column(Boolean, default=True)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())

    # Jobs posted as a client
    jobs_posted = relationship(
        "Job",
        back_populates="client",
        foreign_keys="[Job.client_id]",
    )

    # Proposals submitted as a freelancer
    proposals = relationship(
        "Proposal",
        back_populates="freelancer",
    )

    contracts_as_client = relationship(
        "Contract",
        foreign_keys="[Contract.client_id]",
        back_populates="client"
    )

    contracts_as_freelancer = relationship(
        "Contract",
        foreign_keys="[Contract.freelancer_id]",
        back_populates="freelancer"
    )
