import uuid
from datetime import datetime
from enum import IntEnum

from sqlalchemy import DateTime, Enum as SAEnum, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class Weekday(IntEnum):
    """Teaching day of the school week. Sunday has no member."""

    monday = 0
    tuesday = 1
    wednesday = 2
    thursday = 3
    friday = 4
    saturday = 5

    @property
    def label(self) -> str:
        return self.name.capitalize()


class ScheduleSlot(Base):
    __tablename__ = "schedule_slots"
    __table_args__ = (
        UniqueConstraint("teacher_id", "day", "period_id", name="uq_schedule_slots_teacher_day_period"),
        UniqueConstraint("class_id", "day", "period_id", name="uq_schedule_slots_class_day_period"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    day: Mapped[Weekday] = mapped_column(SAEnum(Weekday, name="weekday"), nullable=False)
    period_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
