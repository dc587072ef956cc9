# jobboard/models/category.py
from sqlalchemy import Column, String, INT, BOOLEAN, TIMESTAMP, func
from jobboard.core.database import Base
from jobboard.utils.timeutils import utcnow


class Category(Base):
    __tablename__ = "categories"

    category_id = Column(INT, primary_key=True, autoincrement=True)
    name = Column(String(200), unique=True, nullable=False)
    description = Column(String(1000), nullable=False)
    # Inactive categories stay on existing jobs but cannot be picked for new ones
    is_active = Column(BOOLEAN, default=True, nullable=False)
    created_at = Column(TIMESTAMP, default=utcnow, server_default=func.now())
    updated_at = Column(TIMESTAMP, default=utcnow, onupdate=utcnow, server_default=func.now())
