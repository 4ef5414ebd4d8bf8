from __future__ import annotations

import logging
from collections import Counter
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from app.core.config import get_settings
from app.core.exceptions import InvalidAssignmentError, ResourceNotFoundError
from app.models.absence import Absence, AbsenceStatus
from app.models.period import Period, PeriodType
from app.models.proxy_assignment import ProxyAssignment
from app.models.schedule_slot import ScheduleSlot, Weekday
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.services.calendar import resolve_day_slot

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RankedCandidate:
    teacher_id: str
    name: str
    employee_code: str
    regular_periods: int
    proxy_count: int
    current_load: int
    is_overloaded: bool


@dataclass(frozen=True)
class ScheduleEntry:
    slot_id: str
    period_id: str
    period_no: int
    start_time: str
    end_time: str
    class_id: str
    class_name: str
    subject_id: str
    subject_name: str
    subject_code: str


@dataclass(frozen=True)
class TeacherDaySchedule:
    teacher: Teacher
    on_date: date
    day: Weekday
    absence: Absence | None
    entries: list[ScheduleEntry]
    existing_proxies: list[ProxyAssignment]


@dataclass(frozen=True)
class Suggestion:
    entry: ScheduleEntry
    substitute: RankedCandidate | None
    candidate_count: int


def get_teacher(db: Session, teacher_id: str) -> Teacher:
    teacher = db.get(Teacher, teacher_id)
    if teacher is None:
        raise ResourceNotFoundError("Teacher", teacher_id)
    return teacher


def get_period(db: Session, period_id: str) -> Period:
    period = db.get(Period, period_id)
    if period is None:
        raise ResourceNotFoundError("Period", period_id)
    return period


def ensure_coverable(period: Period, *, index: int | None = None) -> Period:
    """Only active regular-class periods take a substitute."""
    if not period.is_active:
        raise InvalidAssignmentError(
            f"Period {period.period_no} is inactive and cannot be covered",
            details={"period_id": period.id, "index": index},
        )
    if not period.is_substitutable:
        raise InvalidAssignmentError(
            f"Period {period.period_no} is a {period.period_type.value} period and cannot be covered",
            details={"period_id": period.id, "index": index},
        )
    return period


def _scheduled_teacher_ids(db: Session, *, day: Weekday, period_id: str) -> set[str]:
    rows = db.execute(
        select(ScheduleSlot.teacher_id).where(
            ScheduleSlot.day == day,
            ScheduleSlot.period_id == period_id,
        )
    ).scalars()
    return set(rows)


def _substituting_teacher_ids(db: Session, *, on_date: date, period_id: str) -> set[str]:
    rows = db.execute(
        select(ProxyAssignment.substitute_teacher_id).where(
            ProxyAssignment.assignment_date == on_date,
            ProxyAssignment.period_id == period_id,
        )
    ).scalars()
    return set(rows)


def absent_teacher_ids(db: Session, *, on_date: date) -> set[str]:
    """Teachers away for the whole day. BUSY and HALF_DAY still count as present."""
    rows = db.execute(
        select(Absence.teacher_id).where(
            Absence.absence_date == on_date,
            Absence.status == AbsenceStatus.absent,
        )
    ).scalars()
    return set(rows)


def available_teachers(
    db: Session,
    *,
    on_date: date,
    period_id: str,
    absent_teacher_id: str | None = None,
    exclude_teacher_ids: Iterable[str] = (),
) -> list[Teacher]:
    """Active teachers free to cover ``period_id`` on ``on_date``.

    A teacher is left out when they have a regular class in that period, are
    already covering another class in it, are away for the day, or were
    excluded by the caller. Recess, lunch and inactive periods raise
    ``InvalidAssignmentError``. Results are ordered by name so that the
    workload ranking has a deterministic tie order.
    """
    day = resolve_day_slot(on_date)
    ensure_coverable(get_period(db, period_id))

    unavailable = _scheduled_teacher_ids(db, day=day, period_id=period_id)
    unavailable |= _substituting_teacher_ids(db, on_date=on_date, period_id=period_id)
    unavailable |= absent_teacher_ids(db, on_date=on_date)
    if absent_teacher_id:
        unavailable.add(absent_teacher_id)
    unavailable.update(teacher_id for teacher_id in exclude_teacher_ids if teacher_id)

    statement = select(Teacher).where(Teacher.is_active.is_(True)).order_by(Teacher.name, Teacher.id)
    if unavailable:
        statement = statement.where(Teacher.id.not_in(sorted(unavailable)))
    return list(db.execute(statement).scalars())


def daily_loads(
    db: Session,
    *,
    on_date: date,
    day: Weekday,
    teacher_ids: Iterable[str],
) -> dict[str, tuple[int, int]]:
    """Return ``{teacher_id: (regular_periods, proxy_count)}`` for the day."""
    ids = list(dict.fromkeys(teacher_ids))
    if not ids:
        return {}

    regular_counts = dict(
        db.execute(
            select(ScheduleSlot.teacher_id, func.count(ScheduleSlot.id))
            .where(ScheduleSlot.day == day, ScheduleSlot.teacher_id.in_(ids))
            .group_by(ScheduleSlot.teacher_id)
        ).all()
    )
    proxy_counts = dict(
        db.execute(
            select(ProxyAssignment.substitute_teacher_id, func.count(ProxyAssignment.id))
            .where(
                ProxyAssignment.assignment_date == on_date,
                ProxyAssignment.substitute_teacher_id.in_(ids),
            )
            .group_by(ProxyAssignment.substitute_teacher_id)
        ).all()
    )
    return {
        teacher_id: (int(regular_counts.get(teacher_id, 0)), int(proxy_counts.get(teacher_id, 0)))
        for teacher_id in ids
    }


def rank_by_workload(
    db: Session,
    *,
    on_date: date,
    day: Weekday,
    candidates: list[Teacher],
    pending_load: Mapping[str, int] | None = None,
) -> list[RankedCandidate]:
    """Order candidates by the day's load, lowest first.

    ``pending_load`` adds commitments that are planned but not yet stored.
    The sort is stable, so equal loads keep the order of ``candidates``.
    """
    max_load = get_settings().proxy_max_daily_load
    loads = daily_loads(db, on_date=on_date, day=day, teacher_ids=(teacher.id for teacher in candidates))
    pending_load = pending_load or {}

    ranked: list[RankedCandidate] = []
    for teacher in candidates:
        regular_periods, proxy_count = loads.get(teacher.id, (0, 0))
        proxy_count += pending_load.get(teacher.id, 0)
        current_load = regular_periods + proxy_count
        ranked.append(
            RankedCandidate(
                teacher_id=teacher.id,
                name=teacher.name,
                employee_code=teacher.employee_code,
                regular_periods=regular_periods,
                proxy_count=proxy_count,
                current_load=current_load,
                is_overloaded=current_load >= max_load,
            )
        )
    ranked.sort(key=lambda item: item.current_load)
    return ranked


def ranked_available_teachers(
    db: Session,
    *,
    on_date: date,
    period_id: str,
    absent_teacher_id: str | None = None,
    exclude_teacher_ids: Iterable[str] = (),
    pending_load: Mapping[str, int] | None = None,
) -> list[RankedCandidate]:
    day = resolve_day_slot(on_date)
    candidates = available_teachers(
        db,
        on_date=on_date,
        period_id=period_id,
        absent_teacher_id=absent_teacher_id,
        exclude_teacher_ids=exclude_teacher_ids,
    )
    ranked = rank_by_workload(db, on_date=on_date, day=day, candidates=candidates, pending_load=pending_load)
    logger.debug(
        "Ranked %d candidate(s) for period %s on %s",
        len(ranked),
        period_id,
        on_date.isoformat(),
    )
    return ranked


def teacher_day_schedule(db: Session, *, teacher_id: str, on_date: date) -> TeacherDaySchedule:
    """Regular-class periods ``teacher_id`` normally teaches on ``on_date``."""
    day = resolve_day_slot(on_date)
    teacher = get_teacher(db, teacher_id)

    rows = db.execute(
        select(ScheduleSlot, Period, SchoolClass, Subject)
        .join(Period, Period.id == ScheduleSlot.period_id)
        .join(SchoolClass, SchoolClass.id == ScheduleSlot.class_id)
        .join(Subject, Subject.id == ScheduleSlot.subject_id)
        .where(
            ScheduleSlot.teacher_id == teacher.id,
            ScheduleSlot.day == day,
            Period.period_type == PeriodType.regular,
            Period.is_active.is_(True),
        )
        .order_by(Period.period_no)
    ).all()
    entries = [
        ScheduleEntry(
            slot_id=slot.id,
            period_id=period.id,
            period_no=period.period_no,
            start_time=period.start_time,
            end_time=period.end_time,
            class_id=school_class.id,
            class_name=school_class.name,
            subject_id=subject.id,
            subject_name=subject.name,
            subject_code=subject.short_code,
        )
        for slot, period, school_class, subject in rows
    ]

    absence = db.execute(
        select(Absence).where(Absence.teacher_id == teacher.id, Absence.absence_date == on_date)
    ).scalar_one_or_none()
    existing_proxies = list(
        db.execute(
            select(ProxyAssignment)
            .where(
                ProxyAssignment.absent_teacher_id == teacher.id,
                ProxyAssignment.assignment_date == on_date,
            )
            .order_by(ProxyAssignment.period_no, ProxyAssignment.class_name)
        ).scalars()
    )
    return TeacherDaySchedule(
        teacher=teacher,
        on_date=on_date,
        day=day,
        absence=absence,
        entries=entries,
        existing_proxies=existing_proxies,
    )


def suggest_assignments(db: Session, *, teacher_id: str, on_date: date) -> list[Suggestion]:
    """Greedy cover plan for every uncovered period of an absent teacher.

    Each period takes the least loaded free teacher. A pick counts towards
    that teacher's load for the later periods of the same plan. Nothing is
    written.
    """
    plan = teacher_day_schedule(db, teacher_id=teacher_id, on_date=on_date)
    covered = {(proxy.period_id, proxy.class_id) for proxy in plan.existing_proxies}
    pending_load: Counter[str] = Counter()

    suggestions: list[Suggestion] = []
    for entry in plan.entries:
        if (entry.period_id, entry.class_id) in covered:
            continue
        ranked = ranked_available_teachers(
            db,
            on_date=on_date,
            period_id=entry.period_id,
            absent_teacher_id=teacher_id,
            pending_load=pending_load,
        )
        best = ranked[0] if ranked else None
        if best is not None:
            pending_load[best.teacher_id] += 1
        else:
            logger.info(
                "No free teacher for period %d (%s) on %s",
                entry.period_no,
                entry.class_name,
                on_date.isoformat(),
            )
        suggestions.append(Suggestion(entry=entry, substitute=best, candidate_count=len(ranked)))
    return suggestions
