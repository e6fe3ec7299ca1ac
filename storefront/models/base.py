from sqlalchemy import Column, DateTime

from ..db.base import Base
from ..utils.datetime_utils import utc_now


class TimeStampMixin:
    created_at = Column(DateTime, default=utc_now, nullable=False)
    updated_at = Column(DateTime, default=utc_now, onupdate=utc_now, nullable=False)


__all__ = ["Base", "TimeStampMixin"]
