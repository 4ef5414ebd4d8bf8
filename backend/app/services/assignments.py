from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.exceptions import (
    AssignmentConflictError,
    InvalidAssignmentError,
    ResourceNotFoundError,
    SubstituteUnavailableError,
)
from app.models.absence import Absence, AbsenceStatus
from app.models.period import Period
from app.models.proxy_assignment import ProxyAssignment
from app.models.schedule_slot import ScheduleSlot, Weekday
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.schemas.proxy import ProxyAssignmentChoice
from app.services.audit import log_activity
from app.services.availability import absent_teacher_ids, ensure_coverable, get_period, get_teacher
from app.services.calendar import resolve_day_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CommitResult:
    absence: Absence
    assignments: list[ProxyAssignment]


def _normalize_text(value: str | None) -> str | None:
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


def _get_class(db: Session, class_id: str) -> SchoolClass:
    school_class = db.get(SchoolClass, class_id)
    if school_class is None:
        raise ResourceNotFoundError("Class", class_id)
    return school_class


def _get_subject(db: Session, subject_id: str) -> Subject:
    subject = db.get(Subject, subject_id)
    if subject is None:
        raise ResourceNotFoundError("Subject", subject_id)
    return subject


def _lock_periods(db: Session, period_ids: Sequence[str]) -> None:
    # Row locks make concurrent commits for the same period queue up on
    # PostgreSQL. SQLite drops FOR UPDATE and relies on its database lock.
    ids = sorted(set(period_ids))
    if not ids:
        return
    db.execute(select(Period.id).where(Period.id.in_(ids)).order_by(Period.id).with_for_update()).all()


def validate_choice(
    db: Session,
    *,
    on_date: date,
    day: Weekday,
    absent_teacher_id: str,
    choice: ProxyAssignmentChoice,
    accepted: Sequence[ProxyAssignment] = (),
    index: int | None = None,
) -> ProxyAssignment:
    """Check one substitution against the stored state and the batch so far.

    Must run inside the transaction that inserts the returned row. Raises
    ``SubstituteUnavailableError`` when the substitute is busy in that
    period and ``AssignmentConflictError`` when the class already has cover.
    """
    period = get_period(db, choice.period_id)
    school_class = _get_class(db, choice.class_id)
    subject = _get_subject(db, choice.subject_id)
    substitute = get_teacher(db, choice.substitute_teacher_id)

    ensure_coverable(period, index=index)
    if substitute.id == absent_teacher_id:
        raise InvalidAssignmentError(
            "The substitute must be different from the absent teacher",
            details={"substitute_teacher_id": substitute.id, "index": index},
        )
    if not substitute.is_active:
        raise InvalidAssignmentError(
            f"{substitute.name} is inactive and cannot cover classes",
            details={"substitute_teacher_id": substitute.id, "index": index},
        )
    if substitute.id in absent_teacher_ids(db, on_date=on_date):
        raise InvalidAssignmentError(
            f"{substitute.name} is marked absent on {on_date.isoformat()}",
            details={"substitute_teacher_id": substitute.id, "index": index},
        )

    for earlier in accepted:
        if earlier.period_id != period.id:
            continue
        if earlier.substitute_teacher_id == substitute.id:
            raise SubstituteUnavailableError(
                substitute_name=substitute.name,
                conflicting_class=earlier.class_name,
                period_id=period.id,
                substitute_teacher_id=substitute.id,
                index=index,
                reason="already chosen to cover",
            )
        if earlier.class_id == school_class.id:
            raise AssignmentConflictError(
                f"{school_class.name} is covered twice for period {period.period_no} in this batch",
                details={"class_id": school_class.id, "period_id": period.id, "index": index},
            )

    teaching = db.execute(
        select(SchoolClass.name)
        .join(ScheduleSlot, ScheduleSlot.class_id == SchoolClass.id)
        .where(
            ScheduleSlot.teacher_id == substitute.id,
            ScheduleSlot.day == day,
            ScheduleSlot.period_id == period.id,
        )
    ).scalars().first()
    if teaching is not None:
        raise SubstituteUnavailableError(
            substitute_name=substitute.name,
            conflicting_class=teaching,
            period_id=period.id,
            substitute_teacher_id=substitute.id,
            index=index,
            reason="already teaching",
        )

    covering = db.execute(
        select(ProxyAssignment).where(
            ProxyAssignment.assignment_date == on_date,
            ProxyAssignment.period_id == period.id,
            ProxyAssignment.substitute_teacher_id == substitute.id,
        )
    ).scalars().first()
    if covering is not None:
        raise SubstituteUnavailableError(
            substitute_name=substitute.name,
            conflicting_class=covering.class_name,
            period_id=period.id,
            substitute_teacher_id=substitute.id,
            index=index,
            reason="already covering",
        )

    class_cover = db.execute(
        select(ProxyAssignment).where(
            ProxyAssignment.assignment_date == on_date,
            ProxyAssignment.period_id == period.id,
            ProxyAssignment.class_id == school_class.id,
        )
    ).scalars().first()
    if class_cover is not None:
        raise AssignmentConflictError(
            f"{school_class.name} already has a substitute for period {period.period_no} on {on_date.isoformat()}",
            details={
                "class_id": school_class.id,
                "period_id": period.id,
                "assignment_id": class_cover.id,
                "index": index,
            },
        )

    return ProxyAssignment(
        assignment_date=on_date,
        absent_teacher_id=absent_teacher_id,
        substitute_teacher_id=substitute.id,
        period_id=period.id,
        class_id=school_class.id,
        subject_id=subject.id,
        remarks=_normalize_text(choice.remarks),
        period_no=period.period_no,
        class_name=school_class.name,
        subject_name=subject.name,
    )


def upsert_absence(
    db: Session,
    *,
    teacher_id: str,
    on_date: date,
    status: AbsenceStatus,
    reason: str | None,
    marked_by: str,
) -> Absence:
    absence = db.execute(
        select(Absence).where(Absence.teacher_id == teacher_id, Absence.absence_date == on_date)
    ).scalar_one_or_none()
    if absence is None:
        absence = Absence(
            teacher_id=teacher_id,
            absence_date=on_date,
            status=status,
            reason=_normalize_text(reason),
            marked_by=marked_by,
        )
        db.add(absence)
    else:
        absence.status = status
        absence.reason = _normalize_text(reason)
    return absence


def _integrity_conflict(stage: str, *, absent_teacher_id: str, on_date: date) -> AssignmentConflictError:
    details = {"absent_teacher_id": absent_teacher_id, "date": on_date.isoformat(), "conflict": stage}
    if stage == "absence":
        return AssignmentConflictError(
            "The absence for this teacher and date was recorded by another request at the same time. "
            "Reload the day plan and submit again.",
            details=details,
        )
    return AssignmentConflictError(
        "Another assignment for the same period was saved at the same time. "
        "Refresh the available teachers and submit again.",
        details=details,
    )


def commit_assignments(
    db: Session,
    *,
    on_date: date,
    absent_teacher_id: str,
    status: AbsenceStatus,
    choices: Sequence[ProxyAssignmentChoice],
    created_by: str,
    reason: str | None = None,
) -> CommitResult:
    """Record the absence and every substitution in one transaction.

    Choices are validated in order; the first failure rolls back the whole
    batch, the absence upsert included. The absence row is flushed before
    any assignment, so a unique violation names which of the two raced. The
    unique constraints on ``proxy_assignments`` catch writers that slipped in
    between validation and flush.
    """
    day = resolve_day_slot(on_date)
    stage = "absence"
    try:
        get_teacher(db, absent_teacher_id)
        _lock_periods(db, [choice.period_id for choice in choices])

        absence = upsert_absence(
            db,
            teacher_id=absent_teacher_id,
            on_date=on_date,
            status=status,
            reason=reason,
            marked_by=created_by,
        )
        db.flush()
        stage = "assignment"

        accepted: list[ProxyAssignment] = []
        for index, choice in enumerate(choices):
            assignment = validate_choice(
                db,
                on_date=on_date,
                day=day,
                absent_teacher_id=absent_teacher_id,
                choice=choice,
                accepted=accepted,
                index=index,
            )
            assignment.status = status
            assignment.created_by = created_by
            accepted.append(assignment)

        db.add_all(accepted)
        db.flush()

        log_activity(
            db,
            actor=created_by,
            action="proxy.assign.bulk",
            entity_type="teacher_absence",
            entity_id=absence.id,
            details={
                "date": on_date.isoformat(),
                "absent_teacher_id": absent_teacher_id,
                "status": status.value,
                "assignment_ids": [assignment.id for assignment in accepted],
            },
        )
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        logger.warning(
            "Concurrent %s write rejected proxy batch for teacher %s on %s",
            stage,
            absent_teacher_id,
            on_date.isoformat(),
        )
        raise _integrity_conflict(stage, absent_teacher_id=absent_teacher_id, on_date=on_date) from exc
    except Exception:
        db.rollback()
        raise

    db.refresh(absence)
    for assignment in accepted:
        db.refresh(assignment)

    logger.info(
        "Committed %d proxy assignment(s) for teacher %s on %s",
        len(accepted),
        absent_teacher_id,
        on_date.isoformat(),
    )
    return CommitResult(absence=absence, assignments=accepted)


def list_assignments(
    db: Session,
    *,
    on_date: date,
    absent_teacher_id: str | None = None,
    period_id: str | None = None,
    substitute_teacher_id: str | None = None,
) -> list[ProxyAssignment]:
    statement = select(ProxyAssignment).where(ProxyAssignment.assignment_date == on_date)
    if absent_teacher_id:
        statement = statement.where(ProxyAssignment.absent_teacher_id == absent_teacher_id)
    if period_id:
        statement = statement.where(ProxyAssignment.period_id == period_id)
    if substitute_teacher_id:
        statement = statement.where(ProxyAssignment.substitute_teacher_id == substitute_teacher_id)
    statement = statement.order_by(ProxyAssignment.period_no, ProxyAssignment.class_name)
    return list(db.execute(statement).scalars())


def get_assignment(db: Session, assignment_id: str) -> ProxyAssignment:
    assignment = db.get(ProxyAssignment, assignment_id)
    if assignment is None:
        raise ResourceNotFoundError("Proxy assignment", assignment_id)
    return assignment


def delete_assignment(db: Session, assignment_id: str, *, deleted_by: str) -> None:
    """Remove one assignment. The absence record is left as it is."""
    assignment = get_assignment(db, assignment_id)
    details = {
        "date": assignment.assignment_date.isoformat(),
        "period_id": assignment.period_id,
        "class_id": assignment.class_id,
        "substitute_teacher_id": assignment.substitute_teacher_id,
    }
    try:
        db.delete(assignment)
        log_activity(
            db,
            actor=deleted_by,
            action="proxy.delete",
            entity_type="proxy_assignment",
            entity_id=assignment_id,
            details=details,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    logger.info("Deleted proxy assignment %s", assignment_id)


def teacher_proxy_load(
    db: Session,
    *,
    teacher_id: str,
    start_date: date | None = None,
    end_date: date | None = None,
) -> list[ProxyAssignment]:
    """Assignments covered by ``teacher_id``, optionally within an inclusive date range."""
    get_teacher(db, teacher_id)
    statement = select(ProxyAssignment).where(ProxyAssignment.substitute_teacher_id == teacher_id)
    if start_date is not None:
        statement = statement.where(ProxyAssignment.assignment_date >= start_date)
    if end_date is not None:
        statement = statement.where(ProxyAssignment.assignment_date <= end_date)
    statement = statement.order_by(ProxyAssignment.assignment_date, ProxyAssignment.period_no)
    return list(db.execute(statement).scalars())
