import uuid
from datetime import datetime
from enum import Enum

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class PeriodType(str, Enum):
    regular = "regular"
    recess = "recess"
    lunch = "lunch"
    assembly = "assembly"
    activity = "activity"


class Period(Base):
    __tablename__ = "periods"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    period_no: Mapped[int] = mapped_column(Integer, unique=True, nullable=False)
    start_time: Mapped[str] = mapped_column(String(5), nullable=False)
    end_time: Mapped[str] = mapped_column(String(5), nullable=False)
    period_type: Mapped[PeriodType] = mapped_column(
        SAEnum(PeriodType, name="period_type"),
        nullable=False,
        default=PeriodType.regular,
    )
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())

    @property
    def is_substitutable(self) -> bool:
        return self.period_type == PeriodType.regular
