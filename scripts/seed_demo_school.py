"""Seed a small demo school: bell schedule, subjects, classes, teachers and a weekly timetable.

Run:
  PYTHONPATH=backend python scripts/seed_demo_school.py
"""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from app.db.bootstrap import ensure_runtime_schema_compatibility
from app.db.session import SessionLocal
from app.models.period import Period, PeriodType
from app.models.schedule_slot import ScheduleSlot
from app.models.school_class import SchoolClass
from app.models.subject import Subject
from app.models.teacher import Teacher
from app.services.calendar import parse_weekday

PERIODS = [
    (1, PeriodType.regular, "08:00", "08:45"),
    (2, PeriodType.regular, "08:45", "09:30"),
    (3, PeriodType.recess, "09:30", "09:50"),
    (4, PeriodType.regular, "09:50", "10:35"),
    (5, PeriodType.regular, "10:35", "11:20"),
    (6, PeriodType.lunch, "11:20", "12:00"),
    (7, PeriodType.regular, "12:00", "12:45"),
    (8, PeriodType.regular, "12:45", "13:30"),
]

SUBJECTS = [
    ("English", "ENG"),
    ("Hindi", "HIN"),
    ("Mathematics", "MATH"),
    ("Science", "SCI"),
    ("Social Studies", "SST"),
    ("Computer Science", "CS"),
    ("Physical Education", "PE"),
    ("Art", "ART"),
    ("Music", "MUS"),
]

CLASSES = [("5A", 5), ("5B", 5), ("6A", 6), ("6B", 6)]

TEACHERS = [
    ("T-101", "Anita Sharma"),
    ("T-102", "Bhavesh Patel"),
    ("T-103", "Chitra Iyer"),
    ("T-104", "Dev Malhotra"),
    ("T-105", "Esha Verma"),
    ("T-106", "Farhan Qureshi"),
]

# (employee code, day, period no, class, subject code)
TIMETABLE = [
    ("T-101", "Mon", 1, "5A", "ENG"),
    ("T-101", "Mon", 2, "5B", "ENG"),
    ("T-101", "Tue", 4, "6A", "ENG"),
    ("T-102", "Mon", 1, "5B", "MATH"),
    ("T-102", "Mon", 4, "5A", "MATH"),
    ("T-102", "Wed", 2, "6B", "MATH"),
    ("T-103", "Mon", 2, "5A", "SCI"),
    ("T-103", "Mon", 5, "6A", "SCI"),
    ("T-103", "Thu", 1, "6B", "SCI"),
    ("T-104", "Mon", 1, "6A", "SST"),
    ("T-104", "Fri", 7, "5A", "SST"),
    ("T-105", "Mon", 7, "6B", "CS"),
    ("T-105", "Sat", 8, "6A", "CS"),
    ("T-106", "Mon", 8, "5B", "HIN"),
]


def _upsert_periods(session: Session) -> dict[int, Period]:
    periods: dict[int, Period] = {}
    for period_no, period_type, start_time, end_time in PERIODS:
        existing = session.execute(select(Period).where(Period.period_no == period_no)).scalar_one_or_none()
        if existing is None:
            existing = Period(period_no=period_no)
            session.add(existing)
        existing.period_type = period_type
        existing.start_time = start_time
        existing.end_time = end_time
        existing.is_active = True
        periods[period_no] = existing
    return periods


def _upsert_subjects(session: Session) -> dict[str, Subject]:
    subjects: dict[str, Subject] = {}
    for name, short_code in SUBJECTS:
        existing = session.execute(select(Subject).where(Subject.short_code == short_code)).scalar_one_or_none()
        if existing is None:
            existing = Subject(short_code=short_code, name=name)
            session.add(existing)
        else:
            existing.name = name
        subjects[short_code] = existing
    return subjects


def _upsert_classes(session: Session) -> dict[str, SchoolClass]:
    classes: dict[str, SchoolClass] = {}
    for name, standard in CLASSES:
        existing = session.execute(select(SchoolClass).where(SchoolClass.name == name)).scalar_one_or_none()
        if existing is None:
            existing = SchoolClass(name=name)
            session.add(existing)
        existing.standard = standard
        existing.is_active = True
        classes[name] = existing
    return classes


def _upsert_teachers(session: Session) -> dict[str, Teacher]:
    teachers: dict[str, Teacher] = {}
    for employee_code, name in TEACHERS:
        existing = session.execute(
            select(Teacher).where(Teacher.employee_code == employee_code)
        ).scalar_one_or_none()
        if existing is None:
            existing = Teacher(employee_code=employee_code)
            session.add(existing)
        existing.name = name
        existing.is_active = True
        teachers[employee_code] = existing
    return teachers


def _upsert_timetable(
    session: Session,
    *,
    periods: dict[int, Period],
    subjects: dict[str, Subject],
    classes: dict[str, SchoolClass],
    teachers: dict[str, Teacher],
) -> int:
    created = 0
    for employee_code, day_label, period_no, class_name, subject_code in TIMETABLE:
        teacher = teachers[employee_code]
        day = parse_weekday(day_label)
        period = periods[period_no]
        existing = session.execute(
            select(ScheduleSlot).where(
                ScheduleSlot.teacher_id == teacher.id,
                ScheduleSlot.day == day,
                ScheduleSlot.period_id == period.id,
            )
        ).scalar_one_or_none()
        if existing is None:
            existing = ScheduleSlot(teacher_id=teacher.id, day=day, period_id=period.id)
            session.add(existing)
            created += 1
        existing.class_id = classes[class_name].id
        existing.subject_id = subjects[subject_code].id
    return created


def main() -> None:
    ensure_runtime_schema_compatibility()
    with SessionLocal() as session:
        periods = _upsert_periods(session)
        subjects = _upsert_subjects(session)
        classes = _upsert_classes(session)
        teachers = _upsert_teachers(session)
        session.flush()
        created = _upsert_timetable(
            session,
            periods=periods,
            subjects=subjects,
            classes=classes,
            teachers=teachers,
        )
        session.commit()

    print("Demo school ready:")
    print(f"  - {len(PERIODS)} periods ({sum(1 for item in PERIODS if item[1] == PeriodType.regular)} coverable)")
    print(f"  - {len(SUBJECTS)} subjects, {len(CLASSES)} classes, {len(TEACHERS)} teachers")
    print(f"  - {created} new timetable slot(s)")
    print("\nTry: GET /api/proxies/suggestions?teacher_id=<T-101 id>&date=<a Monday>")


if __name__ == "__main__":
    main()
