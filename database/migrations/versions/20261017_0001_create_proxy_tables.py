"""create proxy tables

Revision ID: 20261017_0001
Revises: None
Create Date: 2026-10-17 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261017_0001"
down_revision = None
branch_labels = None
depends_on = None


period_type_enum = sa.Enum("regular", "recess", "lunch", "assembly", "activity", name="period_type")
weekday_enum = sa.Enum("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", name="weekday")
absence_status_enum = sa.Enum("absent", "busy", "half_day", name="absence_status")


def upgrade() -> None:
    op.create_table(
        "teachers",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("employee_code", sa.String(length=50), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone", sa.String(length=30), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    )
    op.create_index("ix_teachers_name", "teachers", ["name"])
    op.create_index("ix_teachers_employee_code", "teachers", ["employee_code"], unique=True)

    op.create_table(
        "school_classes",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=50), nullable=False, unique=True),
        sa.Column("standard", sa.Integer(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "subjects",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("short_code", sa.String(length=20), nullable=False, unique=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "periods",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("period_no", sa.Integer(), nullable=False, unique=True),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("period_type", period_type_enum, nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        "schedule_slots",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("day", weekday_enum, nullable=False),
        sa.Column("period_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint("teacher_id", "day", "period_id", name="uq_schedule_slots_teacher_day_period"),
        sa.UniqueConstraint("class_id", "day", "period_id", name="uq_schedule_slots_class_day_period"),
    )
    op.create_index("ix_schedule_slots_teacher_id", "schedule_slots", ["teacher_id"])

    op.create_table(
        "teacher_absences",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("teacher_id", sa.String(length=36), nullable=False),
        sa.Column("absence_date", sa.Date(), nullable=False),
        sa.Column("status", absence_status_enum, nullable=False),
        sa.Column("reason", sa.Text(), nullable=True),
        sa.Column("marked_by", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint("teacher_id", "absence_date", name="uq_teacher_absences_teacher_date"),
    )
    op.create_index("ix_teacher_absences_teacher_id", "teacher_absences", ["teacher_id"])
    op.create_index("ix_teacher_absences_absence_date", "teacher_absences", ["absence_date"])

    op.create_table(
        "proxy_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("assignment_date", sa.Date(), nullable=False),
        sa.Column("absent_teacher_id", sa.String(length=36), nullable=False),
        sa.Column("substitute_teacher_id", sa.String(length=36), nullable=False),
        sa.Column("period_id", sa.String(length=36), nullable=False),
        sa.Column("class_id", sa.String(length=36), nullable=False),
        sa.Column("subject_id", sa.String(length=36), nullable=False),
        sa.Column("status", absence_status_enum, nullable=False),
        sa.Column("remarks", sa.Text(), nullable=True),
        sa.Column("period_no", sa.Integer(), nullable=False),
        sa.Column("class_name", sa.String(length=50), nullable=False),
        sa.Column("subject_name", sa.String(length=120), nullable=False),
        sa.Column("created_by", sa.String(length=100), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint(
            "assignment_date", "period_id", "class_id", name="uq_proxy_assignments_date_period_class"
        ),
        sa.UniqueConstraint(
            "assignment_date",
            "period_id",
            "substitute_teacher_id",
            name="uq_proxy_assignments_date_period_substitute",
        ),
    )
    op.create_index("ix_proxy_assignments_assignment_date", "proxy_assignments", ["assignment_date"])
    op.create_index("ix_proxy_assignments_absent_teacher_id", "proxy_assignments", ["absent_teacher_id"])
    op.create_index("ix_proxy_assignments_substitute_teacher_id", "proxy_assignments", ["substitute_teacher_id"])

    op.create_table(
        "activity_logs",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("actor", sa.String(length=100), nullable=True),
        sa.Column("action", sa.String(length=100), nullable=False),
        sa.Column("entity_type", sa.String(length=100), nullable=True),
        sa.Column("entity_id", sa.String(length=100), nullable=True),
        sa.Column("details", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    )


def downgrade() -> None:
    op.drop_table("activity_logs")
    op.drop_index("ix_proxy_assignments_substitute_teacher_id", table_name="proxy_assignments")
    op.drop_index("ix_proxy_assignments_absent_teacher_id", table_name="proxy_assignments")
    op.drop_index("ix_proxy_assignments_assignment_date", table_name="proxy_assignments")
    op.drop_table("proxy_assignments")
    op.drop_index("ix_teacher_absences_absence_date", table_name="teacher_absences")
    op.drop_index("ix_teacher_absences_teacher_id", table_name="teacher_absences")
    op.drop_table("teacher_absences")
    op.drop_index("ix_schedule_slots_teacher_id", table_name="schedule_slots")
    op.drop_table("schedule_slots")
    op.drop_table("periods")
    op.drop_table("subjects")
    op.drop_table("school_classes")
    op.drop_index("ix_teachers_employee_code", table_name="teachers")
    op.drop_index("ix_teachers_name", table_name="teachers")
    op.drop_table("teachers")
    bind = op.get_bind()
    absence_status_enum.drop(bind, checkfirst=True)
    weekday_enum.drop(bind, checkfirst=True)
    period_type_enum.drop(bind, checkfirst=True)
