import uuid
from datetime import date, datetime

from sqlalchemy import Date, DateTime, Enum as SAEnum, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from app.db.base import Base
from app.models.absence import AbsenceStatus


class ProxyAssignment(Base):
    __tablename__ = "proxy_assignments"
    __table_args__ = (
        UniqueConstraint("assignment_date", "period_id", "class_id", name="uq_proxy_assignments_date_period_class"),
        UniqueConstraint(
            "assignment_date",
            "period_id",
            "substitute_teacher_id",
            name="uq_proxy_assignments_date_period_substitute",
        ),
    )

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    assignment_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    absent_teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    substitute_teacher_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    period_id: Mapped[str] = mapped_column(String(36), nullable=False)
    class_id: Mapped[str] = mapped_column(String(36), nullable=False)
    subject_id: Mapped[str] = mapped_column(String(36), nullable=False)
    status: Mapped[AbsenceStatus] = mapped_column(SAEnum(AbsenceStatus, name="absence_status"), nullable=False)
    remarks: Mapped[str | None] = mapped_column(Text, nullable=True)

    # Copied at commit time so later timetable edits leave history alone.
    period_no: Mapped[int] = mapped_column(Integer, nullable=False)
    class_name: Mapped[str] = mapped_column(String(50), nullable=False)
    subject_name: Mapped[str] = mapped_column(String(120), nullable=False)

    created_by: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), server_default=func.now())
