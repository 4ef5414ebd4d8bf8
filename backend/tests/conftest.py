import os

# Point the module-level engine at SQLite before the app is imported.
os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite://")

from datetime import date
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.deps import get_db
from app.db.base import Base
from app.main import app
from app.models import (
    Period,
    PeriodType,
    ScheduleSlot,
    SchoolClass,
    Subject,
    Teacher,
    Weekday,
)

MONDAY = date(2024, 3, 4)
TUESDAY = date(2024, 3, 5)
SUNDAY = date(2024, 3, 10)


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture()
def school(db):
    """Small Monday timetable.

    Tara teaches 5A in periods 1 and 2, Uma teaches 5A in period 3, Wendy
    teaches 6B in period 1 and Vikram has no classes on Monday. Xavier is
    inactive. Period 4 is the recess.
    """
    p1 = Period(period_no=1, start_time="08:00", end_time="08:45", period_type=PeriodType.regular)
    p2 = Period(period_no=2, start_time="08:45", end_time="09:30", period_type=PeriodType.regular)
    p3 = Period(period_no=3, start_time="09:30", end_time="10:15", period_type=PeriodType.regular)
    recess = Period(period_no=4, start_time="10:15", end_time="10:35", period_type=PeriodType.recess)

    class_5a = SchoolClass(name="5A", standard=5)
    class_6b = SchoolClass(name="6B", standard=6)
    class_7c = SchoolClass(name="7C", standard=7)

    math = Subject(name="Mathematics", short_code="MATH")
    science = Subject(name="Science", short_code="SCI")
    english = Subject(name="English", short_code="ENG")

    tara = Teacher(name="Tara Shah", employee_code="T-001")
    uma = Teacher(name="Uma Rao", employee_code="T-002")
    vikram = Teacher(name="Vikram Das", employee_code="T-003")
    wendy = Teacher(name="Wendy Cole", employee_code="T-004")
    xavier = Teacher(name="Xavier Lee", employee_code="T-005", is_active=False)

    db.add_all([p1, p2, p3, recess, class_5a, class_6b, class_7c, math, science, english])
    db.add_all([tara, uma, vikram, wendy, xavier])
    db.flush()

    db.add_all(
        [
            ScheduleSlot(teacher_id=tara.id, day=Weekday.monday, period_id=p1.id, class_id=class_5a.id, subject_id=math.id),
            ScheduleSlot(teacher_id=tara.id, day=Weekday.monday, period_id=p2.id, class_id=class_5a.id, subject_id=science.id),
            ScheduleSlot(teacher_id=uma.id, day=Weekday.monday, period_id=p3.id, class_id=class_5a.id, subject_id=english.id),
            ScheduleSlot(teacher_id=wendy.id, day=Weekday.monday, period_id=p1.id, class_id=class_6b.id, subject_id=english.id),
            # Tuesday rows must not leak into Monday loads.
            ScheduleSlot(teacher_id=uma.id, day=Weekday.tuesday, period_id=p1.id, class_id=class_6b.id, subject_id=english.id),
            ScheduleSlot(teacher_id=vikram.id, day=Weekday.tuesday, period_id=p1.id, class_id=class_7c.id, subject_id=math.id),
        ]
    )
    db.commit()

    return SimpleNamespace(
        p1=p1.id,
        p2=p2.id,
        p3=p3.id,
        recess=recess.id,
        class_5a=class_5a.id,
        class_6b=class_6b.id,
        class_7c=class_7c.id,
        math=math.id,
        science=science.id,
        english=english.id,
        tara=tara.id,
        uma=uma.id,
        vikram=vikram.id,
        wendy=wendy.id,
        xavier=xavier.id,
    )
