from sqlalchemy.exc import OperationalError

from conftest import MONDAY, SUNDAY


def bulk_payload(school, assignments, *, absent=None, status="ABSENT", reason="Fever"):
    return {
        "date": MONDAY.isoformat(),
        "absent_teacher_id": absent or school.tara,
        "status": status,
        "reason": reason,
        "created_by": "coordinator@example.com",
        "assignments": assignments,
    }


def item(school, period_id, substitute_id, class_id=None, subject_id=None):
    return {
        "period_id": period_id,
        "class_id": class_id or school.class_5a,
        "subject_id": subject_id or school.math,
        "substitute_teacher_id": substitute_id,
    }


def test_day_slot_maps_dates(client):
    response = client.get("/api/proxies/day-slot", params={"date": MONDAY.isoformat()})
    assert response.status_code == 200
    assert response.json() == {"date": "2024-03-04", "day_slot": 0, "day_name": "Monday"}


def test_sunday_is_rejected_with_error_envelope(client, school):
    response = client.get(
        "/api/proxies/available-teachers",
        params={"date": SUNDAY.isoformat(), "period_id": school.p1},
    )
    assert response.status_code == 400
    body = response.json()
    assert "not a school day" in body["message"]
    assert body["details"] == {"date": "2024-03-10"}


def test_teacher_schedule_lists_periods_to_cover(client, school):
    response = client.get(
        "/api/proxies/teacher-schedule",
        params={"teacher_id": school.tara, "date": MONDAY.isoformat()},
    )
    assert response.status_code == 200
    body = response.json()
    assert body["teacher"]["name"] == "Tara Shah"
    assert body["day_name"] == "Monday"
    assert [entry["period_no"] for entry in body["schedule"]] == [1, 2]
    assert body["absence"] is None
    assert body["existing_proxies"] == []


def test_available_teachers_are_ranked_by_load(client, school):
    response = client.get(
        "/api/proxies/available-teachers",
        params={"date": MONDAY.isoformat(), "period_id": school.p1, "exclude_teacher_id": [school.tara]},
    )
    assert response.status_code == 200
    teachers = response.json()["teachers"]
    assert [teacher["teacher_id"] for teacher in teachers] == [school.vikram, school.uma]
    assert teachers[0]["current_load"] == 0
    assert teachers[1]["regular_periods"] == 1


def test_available_teachers_unknown_period(client, school):
    response = client.get(
        "/api/proxies/available-teachers",
        params={"date": MONDAY.isoformat(), "period_id": "missing"},
    )
    assert response.status_code == 404
    assert response.json()["details"]["resource_type"] == "Period"


def test_available_teachers_rejects_recess_period(client, school):
    response = client.get(
        "/api/proxies/available-teachers",
        params={"date": MONDAY.isoformat(), "period_id": school.recess, "exclude_teacher_id": [school.tara]},
    )
    assert response.status_code == 400
    body = response.json()
    assert "recess" in body["message"]
    assert body["details"]["period_id"] == school.recess


def test_suggestions_endpoint(client, school):
    response = client.get(
        "/api/proxies/suggestions",
        params={"teacher_id": school.tara, "date": MONDAY.isoformat()},
    )
    assert response.status_code == 200
    suggestions = response.json()["suggestions"]
    assert [entry["period_no"] for entry in suggestions] == [1, 2]
    assert suggestions[0]["substitute"]["teacher_id"] == school.vikram


def test_bulk_commit_then_conflict_then_delete(client, school):
    created = client.post(
        "/api/proxies/assignments/bulk",
        json=bulk_payload(
            school,
            [item(school, school.p1, school.vikram), item(school, school.p2, school.uma, subject_id=school.science)],
        ),
    )
    assert created.status_code == 201
    body = created.json()
    assert body["message"] == "2 proxy assignment(s) created"
    assert body["absence"]["status"] == "ABSENT"
    assert [proxy["substitute_teacher_name"] for proxy in body["proxies"]] == ["Vikram Das", "Uma Rao"]
    assert {proxy["absent_teacher_name"] for proxy in body["proxies"]} == {"Tara Shah"}

    conflict = client.post(
        "/api/proxies/assignments/bulk",
        json=bulk_payload(
            school,
            [item(school, school.p1, school.vikram, class_id=school.class_6b, subject_id=school.english)],
            absent=school.wendy,
        ),
    )
    assert conflict.status_code == 409
    details = conflict.json()["details"]
    assert details["conflicting_class"] == "5A"
    assert details["substitute_teacher_id"] == school.vikram
    assert details["index"] == 0

    listed = client.get("/api/proxies/assignments", params={"date": MONDAY.isoformat()})
    assert listed.status_code == 200
    assert [proxy["period_no"] for proxy in listed.json()] == [1, 2]

    assignment_id = body["proxies"][0]["id"]
    single = client.get(f"/api/proxies/assignments/{assignment_id}")
    assert single.status_code == 200
    assert single.json()["class_name"] == "5A"

    removed = client.delete(f"/api/proxies/assignments/{assignment_id}", params={"deleted_by": "principal"})
    assert removed.status_code == 200
    assert removed.json()["id"] == assignment_id

    remaining = client.get("/api/proxies/assignments", params={"date": MONDAY.isoformat()})
    assert [proxy["period_no"] for proxy in remaining.json()] == [2]

    logs = client.get("/api/activity/logs", params={"action": "proxy.delete"})
    assert logs.status_code == 200
    assert logs.json()[0]["actor"] == "principal"


def test_bulk_commit_defaults_created_by(client, school):
    payload = bulk_payload(school, [item(school, school.p1, school.vikram)])
    payload["created_by"] = "   "

    response = client.post("/api/proxies/assignments/bulk", json=payload)

    assert response.status_code == 201
    assert response.json()["absence"]["marked_by"] == "system"


def test_bulk_commit_rejects_recess(client, school):
    response = client.post(
        "/api/proxies/assignments/bulk",
        json=bulk_payload(school, [item(school, school.recess, school.vikram)]),
    )
    assert response.status_code == 400
    assert response.json()["details"]["period_id"] == school.recess

    listed = client.get("/api/proxies/assignments", params={"date": MONDAY.isoformat()})
    assert listed.json() == []


def test_bulk_commit_validates_status(client, school):
    response = client.post(
        "/api/proxies/assignments/bulk",
        json=bulk_payload(school, [], status="ON_LEAVE"),
    )
    assert response.status_code == 422


def test_delete_unknown_assignment_returns_404(client):
    response = client.delete("/api/proxies/assignments/missing")
    assert response.status_code == 404
    assert response.json()["details"]["resource_id"] == "missing"


def test_teacher_load_endpoint(client, school):
    client.post("/api/proxies/assignments/bulk", json=bulk_payload(school, [item(school, school.p1, school.vikram)]))

    response = client.get(f"/api/proxies/teacher-load/{school.vikram}")

    assert response.status_code == 200
    body = response.json()
    assert body["proxy_count"] == 1
    assert body["proxies"][0]["substitute_teacher_name"] == "Vikram Das"


def test_storage_failure_maps_to_503(client, school, monkeypatch):
    def broken(*args, **kwargs):
        raise OperationalError("SELECT 1", {}, Exception("connection refused"))

    monkeypatch.setattr("app.api.routes.proxies.ranked_available_teachers", broken)

    response = client.get(
        "/api/proxies/available-teachers",
        params={"date": MONDAY.isoformat(), "period_id": school.p1},
    )

    assert response.status_code == 503
    assert "Storage temporarily unavailable" in response.json()["message"]
