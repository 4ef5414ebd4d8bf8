import pytest

from app.core.exceptions import InvalidAssignmentError, ResourceNotFoundError, UnschedulableDayError
from app.models import Absence, AbsenceStatus, Period, ProxyAssignment, Weekday
from app.services.availability import (
    available_teachers,
    daily_loads,
    rank_by_workload,
    ranked_available_teachers,
    suggest_assignments,
    teacher_day_schedule,
)

from conftest import MONDAY, SUNDAY, TUESDAY


def add_proxy(db, school, *, period_id, class_id, substitute_id, absent_id=None, on_date=MONDAY):
    proxy = ProxyAssignment(
        assignment_date=on_date,
        absent_teacher_id=absent_id or school.tara,
        substitute_teacher_id=substitute_id,
        period_id=period_id,
        class_id=class_id,
        subject_id=school.math,
        status=AbsenceStatus.absent,
        period_no=1,
        class_name="5A",
        subject_name="Mathematics",
        created_by="tests",
    )
    db.add(proxy)
    db.commit()
    return proxy


def test_available_teachers_excludes_scheduled_absent_and_inactive(db, school):
    teachers = available_teachers(db, on_date=MONDAY, period_id=school.p1, absent_teacher_id=school.tara)
    ids = {teacher.id for teacher in teachers}

    assert ids == {school.uma, school.vikram}
    assert school.tara not in ids
    assert school.wendy not in ids
    assert school.xavier not in ids


def test_available_teachers_excludes_teachers_already_substituting(db, school):
    add_proxy(db, school, period_id=school.p1, class_id=school.class_5a, substitute_id=school.vikram)

    teachers = available_teachers(db, on_date=MONDAY, period_id=school.p1, absent_teacher_id=school.tara)

    assert [teacher.id for teacher in teachers] == [school.uma]


def test_substitution_on_another_date_does_not_block(db, school):
    add_proxy(db, school, period_id=school.p1, class_id=school.class_5a, substitute_id=school.vikram, on_date=TUESDAY)

    ids = {teacher.id for teacher in available_teachers(db, on_date=MONDAY, period_id=school.p1)}

    assert school.vikram in ids


def test_available_teachers_honours_extra_exclusions(db, school):
    teachers = available_teachers(
        db,
        on_date=MONDAY,
        period_id=school.p2,
        absent_teacher_id=school.tara,
        exclude_teacher_ids=[school.vikram],
    )
    assert {teacher.id for teacher in teachers} == {school.uma, school.wendy}


def test_teacher_marked_absent_for_the_day_is_not_offered(db, school):
    db.add(Absence(teacher_id=school.vikram, absence_date=MONDAY, status=AbsenceStatus.absent, marked_by="tests"))
    db.add(Absence(teacher_id=school.uma, absence_date=MONDAY, status=AbsenceStatus.busy, marked_by="tests"))
    db.commit()

    ids = {teacher.id for teacher in available_teachers(db, on_date=MONDAY, period_id=school.p2)}

    assert school.vikram not in ids
    assert school.uma in ids


def test_available_teachers_on_sunday_fails(db, school):
    with pytest.raises(UnschedulableDayError):
        available_teachers(db, on_date=SUNDAY, period_id=school.p1)


def test_available_teachers_unknown_period(db, school):
    with pytest.raises(ResourceNotFoundError):
        available_teachers(db, on_date=MONDAY, period_id="missing-period")


def test_recess_period_offers_no_candidates(db, school):
    with pytest.raises(InvalidAssignmentError) as excinfo:
        ranked_available_teachers(db, on_date=MONDAY, period_id=school.recess, absent_teacher_id=school.tara)

    assert "recess" in excinfo.value.message
    assert excinfo.value.details["period_id"] == school.recess


def test_inactive_period_offers_no_candidates(db, school):
    db.get(Period, school.p1).is_active = False
    db.commit()

    with pytest.raises(InvalidAssignmentError) as excinfo:
        available_teachers(db, on_date=MONDAY, period_id=school.p1)

    assert "inactive" in excinfo.value.message


def test_daily_loads_count_regular_periods_and_proxies(db, school):
    add_proxy(db, school, period_id=school.p1, class_id=school.class_5a, substitute_id=school.uma)

    loads = daily_loads(db, on_date=MONDAY, day=Weekday.monday, teacher_ids=[school.uma, school.vikram, school.tara])

    assert loads[school.uma] == (1, 1)
    assert loads[school.vikram] == (0, 0)
    assert loads[school.tara] == (2, 0)


def test_rank_by_workload_orders_lowest_load_first(db, school):
    candidates = available_teachers(db, on_date=MONDAY, period_id=school.p1, absent_teacher_id=school.tara)

    ranked = rank_by_workload(db, on_date=MONDAY, day=Weekday.monday, candidates=candidates)

    assert [item.teacher_id for item in ranked] == [school.vikram, school.uma]
    assert [item.current_load for item in ranked] == [0, 1]
    assert ranked[1].regular_periods == 1
    assert ranked[1].proxy_count == 0


def test_rank_by_workload_keeps_input_order_on_ties(db, school):
    candidates = available_teachers(db, on_date=TUESDAY, period_id=school.p2)
    reversed_candidates = list(reversed(candidates))

    ranked = rank_by_workload(db, on_date=TUESDAY, day=Weekday.tuesday, candidates=reversed_candidates)

    loads = [item.current_load for item in ranked]
    assert loads == sorted(loads)
    ones = [item.teacher_id for item in ranked if item.current_load == 1]
    expected = [teacher.id for teacher in reversed_candidates if teacher.id in {school.uma, school.vikram}]
    assert ones == expected


def test_rank_by_workload_flags_overloaded_candidates(db, school, monkeypatch):
    from app.core.config import get_settings

    monkeypatch.setattr(get_settings(), "proxy_max_daily_load", 1)
    ranked = ranked_available_teachers(db, on_date=MONDAY, period_id=school.p1, absent_teacher_id=school.tara)

    flags = {item.teacher_id: item.is_overloaded for item in ranked}
    assert flags == {school.vikram: False, school.uma: True}


def test_ranked_output_is_sorted_by_load(db, school):
    add_proxy(db, school, period_id=school.p3, class_id=school.class_6b, substitute_id=school.vikram)
    add_proxy(db, school, period_id=school.p2, class_id=school.class_6b, substitute_id=school.vikram)

    ranked = ranked_available_teachers(db, on_date=MONDAY, period_id=school.p1, absent_teacher_id=school.tara)

    assert [item.teacher_id for item in ranked] == [school.uma, school.vikram]
    loads = [item.current_load for item in ranked]
    assert loads == sorted(loads)


def test_teacher_day_schedule_lists_regular_periods_in_order(db, school):
    plan = teacher_day_schedule(db, teacher_id=school.tara, on_date=MONDAY)

    assert plan.day == Weekday.monday
    assert [entry.period_no for entry in plan.entries] == [1, 2]
    assert [entry.subject_code for entry in plan.entries] == ["MATH", "SCI"]
    assert {entry.class_name for entry in plan.entries} == {"5A"}
    assert plan.absence is None
    assert plan.existing_proxies == []


def test_teacher_day_schedule_unknown_teacher(db, school):
    with pytest.raises(ResourceNotFoundError):
        teacher_day_schedule(db, teacher_id="nobody", on_date=MONDAY)


def test_suggest_assignments_balances_load_across_periods(db, school):
    suggestions = suggest_assignments(db, teacher_id=school.tara, on_date=MONDAY)

    assert [item.entry.period_no for item in suggestions] == [1, 2]
    # Period 1: Vikram (0) before Uma (1). Period 2: Vikram now carries the
    # planned cover, so Uma, Vikram and Wendy tie at 1 and name order decides.
    assert suggestions[0].substitute.teacher_id == school.vikram
    assert suggestions[1].substitute.teacher_id == school.uma
    assert suggestions[1].candidate_count == 3


def test_suggest_assignments_skips_covered_periods(db, school):
    add_proxy(db, school, period_id=school.p1, class_id=school.class_5a, substitute_id=school.vikram)

    suggestions = suggest_assignments(db, teacher_id=school.tara, on_date=MONDAY)

    assert [item.entry.period_no for item in suggestions] == [2]
