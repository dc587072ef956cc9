# jobboard/models/skill.py
from sqlalchemy import Column, String, INT, BOOLEAN, TIMESTAMP, func
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow


class Skill(Base):
    __tablename__ = "skills"

    skill_id = Column(INT, primary_key=True, autoincrement=True)
    name = Column(String(255), unique=True, nullable=False)
    is_active = Column(BOOLEAN, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
