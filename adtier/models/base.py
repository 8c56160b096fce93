"""
Declarative base for AdTier tables
"""
from sqlalchemy import Column, DateTime

from adtier.core.database import Base
from adtier.core.timeutils import utcnow


class TimestampMixin:
    """created_at / updated_at, stamped in UTC on the Python side"""

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)


class BaseModel(Base, TimestampMixin):
    __abstract__ = True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} id={getattr(self, 'id', None)}>"
