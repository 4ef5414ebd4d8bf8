import uuid
from datetime import date, datetime
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SAEnum, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base


class AbsenceStatus(str, Enum):
    absent = "ABSENT"
    busy = "BUSY"
    half_day = "HALF_DAY"


class Absence(Base):
    __tablename__ = "teacher_absences"
    __table_args__ = (
        UniqueConstraint("teacher_id", "absence_date", name="uq_teacher_absences_teacher_date"),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    absence_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    status: Mapped[AbsenceStatus] = mapped_column(
        SAEnum(AbsenceStatus, name="absence_status"),
        nullable=False,
        default=AbsenceStatus.absent,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    marked_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), onupdate=func.now())
