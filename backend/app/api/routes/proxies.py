from collections.abc import Iterable
from datetime import date

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.api.deps import get_db
from app.core.config import get_settings
from app.models.proxy_assignment import ProxyAssignment
from app.models.teacher import Teacher
from app.schemas.proxy import (
    AbsenceOut,
    AvailableTeacherOut,
    AvailableTeachersOut,
    BulkAssignmentCreate,
    BulkAssignmentOut,
    DaySlotOut,
    DeleteAssignmentOut,
    ProxyAssignmentOut,
    ScheduleEntryOut,
    SuggestionOut,
    SuggestionsOut,
    TeacherDayScheduleOut,
    TeacherLoadOut,
    TeacherSummaryOut,
)
from app.services.assignments import (
    commit_assignments,
    delete_assignment,
    get_assignment,
    list_assignments,
    teacher_proxy_load,
)
from app.services.availability import (
    ranked_available_teachers,
    suggest_assignments,
    teacher_day_schedule,
)
from app.services.calendar import resolve_day_slot

router = APIRouter()

settings = get_settings()


def _hydrate_assignments(db: Session, assignments: Iterable[ProxyAssignment]) -> list[ProxyAssignmentOut]:
    items = list(assignments)
    teacher_ids = {item.absent_teacher_id for item in items} | {item.substitute_teacher_id for item in items}
    names: dict[str, str] = {}
    if teacher_ids:
        names = dict(
            db.execute(select(Teacher.id, Teacher.name).where(Teacher.id.in_(sorted(teacher_ids)))).all()
        )

    output: list[ProxyAssignmentOut] = []
    for item in items:
        payload = ProxyAssignmentOut.model_validate(item)
        payload.absent_teacher_name = names.get(item.absent_teacher_id)
        payload.substitute_teacher_name = names.get(item.substitute_teacher_id)
        output.append(payload)
    return output


@router.get("/proxies/day-slot", response_model=DaySlotOut)
def get_day_slot(on_date: date = Query(alias="date")) -> DaySlotOut:
    day = resolve_day_slot(on_date)
    return DaySlotOut(date=on_date, day_slot=int(day), day_name=day.label)


@router.get("/proxies/teacher-schedule", response_model=TeacherDayScheduleOut)
def get_teacher_schedule(
    teacher_id: str = Query(min_length=1, max_length=36),
    on_date: date = Query(alias="date"),
    db: Session = Depends(get_db),
) -> TeacherDayScheduleOut:
    plan = teacher_day_schedule(db, teacher_id=teacher_id, on_date=on_date)
    return TeacherDayScheduleOut(
        teacher=TeacherSummaryOut.model_validate(plan.teacher),
        date=on_date,
        day_slot=int(plan.day),
        day_name=plan.day.label,
        absence=AbsenceOut.model_validate(plan.absence) if plan.absence is not None else None,
        schedule=[ScheduleEntryOut.model_validate(entry) for entry in plan.entries],
        existing_proxies=_hydrate_assignments(db, plan.existing_proxies),
    )


@router.get("/proxies/available-teachers", response_model=AvailableTeachersOut)
def get_available_teachers(
    on_date: date = Query(alias="date"),
    period_id: str = Query(min_length=1, max_length=36),
    exclude_teacher_id: list[str] = Query(default=[]),
    db: Session = Depends(get_db),
) -> AvailableTeachersOut:
    day = resolve_day_slot(on_date)
    ranked = ranked_available_teachers(
        db,
        on_date=on_date,
        period_id=period_id,
        exclude_teacher_ids=exclude_teacher_id,
    )
    return AvailableTeachersOut(
        date=on_date,
        day_slot=int(day),
        period_id=period_id,
        teachers=[AvailableTeacherOut.model_validate(item) for item in ranked],
    )


@router.get("/proxies/suggestions", response_model=SuggestionsOut)
def get_suggestions(
    teacher_id: str = Query(min_length=1, max_length=36),
    on_date: date = Query(alias="date"),
    db: Session = Depends(get_db),
) -> SuggestionsOut:
    suggestions = suggest_assignments(db, teacher_id=teacher_id, on_date=on_date)
    return SuggestionsOut(
        date=on_date,
        absent_teacher_id=teacher_id,
        suggestions=[
            SuggestionOut(
                period_id=item.entry.period_id,
                period_no=item.entry.period_no,
                class_id=item.entry.class_id,
                class_name=item.entry.class_name,
                subject_id=item.entry.subject_id,
                subject_name=item.entry.subject_name,
                substitute=(
                    AvailableTeacherOut.model_validate(item.substitute) if item.substitute is not None else None
                ),
                candidate_count=item.candidate_count,
            )
            for item in suggestions
        ],
    )


@router.post(
    "/proxies/assignments/bulk",
    response_model=BulkAssignmentOut,
    status_code=status.HTTP_201_CREATED,
)
def create_bulk_assignments(
    payload: BulkAssignmentCreate,
    db: Session = Depends(get_db),
) -> BulkAssignmentOut:
    created_by = (payload.created_by or "").strip() or settings.default_created_by
    result = commit_assignments(
        db,
        on_date=payload.date,
        absent_teacher_id=payload.absent_teacher_id,
        status=payload.status,
        choices=payload.assignments,
        created_by=created_by,
        reason=payload.reason,
    )
    return BulkAssignmentOut(
        message=f"{len(result.assignments)} proxy assignment(s) created",
        absence=AbsenceOut.model_validate(result.absence),
        proxies=_hydrate_assignments(db, result.assignments),
    )


@router.get("/proxies/assignments", response_model=list[ProxyAssignmentOut])
def get_assignments(
    on_date: date = Query(alias="date"),
    absent_teacher_id: str | None = Query(default=None, max_length=36),
    period_id: str | None = Query(default=None, max_length=36),
    substitute_teacher_id: str | None = Query(default=None, max_length=36),
    db: Session = Depends(get_db),
) -> list[ProxyAssignmentOut]:
    assignments = list_assignments(
        db,
        on_date=on_date,
        absent_teacher_id=absent_teacher_id,
        period_id=period_id,
        substitute_teacher_id=substitute_teacher_id,
    )
    return _hydrate_assignments(db, assignments)


@router.get("/proxies/assignments/{assignment_id}", response_model=ProxyAssignmentOut)
def get_single_assignment(assignment_id: str, db: Session = Depends(get_db)) -> ProxyAssignmentOut:
    return _hydrate_assignments(db, [get_assignment(db, assignment_id)])[0]


@router.delete("/proxies/assignments/{assignment_id}", response_model=DeleteAssignmentOut)
def remove_assignment(
    assignment_id: str,
    deleted_by: str | None = Query(default=None, max_length=100),
    db: Session = Depends(get_db),
) -> DeleteAssignmentOut:
    delete_assignment(db, assignment_id, deleted_by=(deleted_by or "").strip() or settings.default_created_by)
    return DeleteAssignmentOut(message="Proxy assignment deleted", id=assignment_id)


@router.get("/proxies/teacher-load/{teacher_id}", response_model=TeacherLoadOut)
def get_teacher_load(
    teacher_id: str,
    start_date: date | None = Query(default=None),
    end_date: date | None = Query(default=None),
    db: Session = Depends(get_db),
) -> TeacherLoadOut:
    assignments = teacher_proxy_load(db, teacher_id=teacher_id, start_date=start_date, end_date=end_date)
    return TeacherLoadOut(
        teacher_id=teacher_id,
        start_date=start_date,
        end_date=end_date,
        proxy_count=len(assignments),
        proxies=_hydrate_assignments(db, assignments),
    )
