from models.audit_log import AuditLog
from conftest import as_user

TRAINER = as_user(100, "ENTRENADOR")
OTHER_TRAINER = as_user(101, "ENTRENADOR")
ALICE = as_user(1, "CLIENTE")
BOB = as_user(2, "CLIENTE")
ADMIN = as_user(900, "ADMIN")


def _publish(client, capacity=1, start="10:00", end="11:00", date="2030-10-21"):
    resp = client.post("/sessions", json={
        "date": date, "start_time": start, "end_time": end, "capacity": capacity,
    }, headers=TRAINER)
    assert resp.status_code == 201
    return resp.get_json()["id"]


def _book(client, session_id, headers=ALICE, **extra):
    return client.post("/reservations", json={"session_id": session_id, **extra}, headers=headers)


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.headers["X-Frame-Options"] == "DENY"


def test_requires_identity(client):
    assert client.get("/sessions").status_code == 401
    assert client.post("/reservations", json={"session_id": 1}, headers={"X-User-Id": "abc"}).status_code == 401


def test_template_flow(client):
    resp = client.post("/templates", json={
        "day_of_week": "MON", "start_time": "07:00", "end_time": "08:00", "default_capacity": 5,
    }, headers=TRAINER)
    assert resp.status_code == 201
    template_id = resp.get_json()["id"]

    resp = client.post(f"/templates/{template_id}/materialize", json={"date": "2030-10-21"}, headers=TRAINER)
    assert resp.status_code == 200
    [session] = resp.get_json()
    assert session["capacity"] == 5
    assert session["start_time"] == "07:00"

    again = client.post(f"/templates/{template_id}/materialize", json={"date": "2030-10-21"}, headers=TRAINER)
    assert again.get_json()[0]["id"] == session["id"]

    resp = client.post(f"/templates/{template_id}/materialize", json={"date": "2030-10-22"}, headers=TRAINER)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_DATE"

    resp = client.get("/templates?trainer_id=100", headers=ALICE)
    assert [t["id"] for t in resp.get_json()] == [template_id]


def test_trainers_only_touch_their_own_templates(client):
    template_id = client.post("/templates", json={
        "day_of_week": "TUE", "start_time": "07:00", "end_time": "08:00",
    }, headers=TRAINER).get_json()["id"]

    assert client.patch(f"/templates/{template_id}", json={"end_time": "09:00"}, headers=OTHER_TRAINER).status_code == 404
    assert client.delete(f"/templates/{template_id}", headers=ALICE).status_code == 403
    assert client.delete(f"/templates/{template_id}", headers=ADMIN).status_code == 200


def test_template_validation_error_shape(client):
    resp = client.post("/templates", json={
        "day_of_week": "MON", "start_time": "11:00", "end_time": "10:00",
    }, headers=TRAINER)
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "end_time must be after start_time", "code": "VALIDATION_ERROR"}


def test_booking_lifecycle(client, app):
    session_id = _publish(client, capacity=1)

    resp = _book(client, session_id)
    assert resp.status_code == 201
    reservation = resp.get_json()
    assert reservation["status"] == "PENDIENTE"

    resp = _book(client, session_id, headers=BOB)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "CAPACITY_EXCEEDED"

    # clients cannot confirm, the session's trainer can
    assert client.post(f"/reservations/{reservation['id']}/confirm", headers=ALICE).status_code == 403
    resp = client.post(f"/reservations/{reservation['id']}/confirm", headers=TRAINER)
    assert resp.get_json()["status"] == "CONFIRMADA"

    resp = client.get(f"/sessions/{session_id}", headers=BOB)
    assert resp.get_json()["confirmed_count"] == 1
    assert resp.get_json()["remaining"] == 0

    assert client.delete(f"/reservations/{reservation['id']}", headers=ALICE).status_code == 200
    assert client.delete(f"/reservations/{reservation['id']}", headers=ALICE).status_code == 200
    assert client.get(f"/sessions/{session_id}", headers=BOB).get_json()["confirmed_count"] == 0

    assert _book(client, session_id, headers=BOB).status_code == 201

    with app.app_context():
        actions = [row.action for row in AuditLog.query.order_by(AuditLog.id).all()]
    assert "RESERVATION_REJECTED" in actions
    assert actions.count("RESERVATION_CANCEL") == 2


def test_schedule_conflict_over_http(client):
    a = _publish(client, capacity=3, start="10:00", end="11:00")
    b = _publish(client, capacity=3, start="10:30", end="11:30")
    c = _publish(client, capacity=3, start="11:00", end="12:00")

    assert _book(client, a).status_code == 201
    resp = _book(client, b)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "SCHEDULE_CONFLICT"
    assert _book(client, c).status_code == 201


def test_clients_book_only_for_themselves(client):
    session_id = _publish(client, capacity=2)

    assert _book(client, session_id, client_id=2).status_code == 403
    assert _book(client, session_id, headers=TRAINER).status_code == 403
    resp = _book(client, session_id, headers=ADMIN, client_id=2)
    assert resp.status_code == 201
    assert resp.get_json()["client_id"] == 2


def test_status_patch(client):
    session_id = _publish(client, capacity=1)
    reservation_id = _book(client, session_id).get_json()["id"]

    assert client.patch(f"/reservations/{reservation_id}", json={"status": "CONFIRMADA"}, headers=ALICE).status_code == 403
    assert client.patch(f"/reservations/{reservation_id}", json={"status": "CANCELADA"}, headers=ALICE).status_code == 200

    resp = client.patch(f"/reservations/{reservation_id}", json={"status": "PENDIENTE"}, headers=ADMIN)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "INVALID_TRANSITION"


def test_reservations_hidden_from_strangers(client):
    session_id = _publish(client, capacity=2)
    reservation_id = _book(client, session_id).get_json()["id"]

    assert client.get(f"/reservations/{reservation_id}", headers=BOB).status_code == 404
    assert client.get(f"/reservations/{reservation_id}", headers=TRAINER).status_code == 200
    assert client.get("/clients/1/reservations", headers=BOB).status_code == 403

    resp = client.get("/clients/1/reservations", headers=ALICE)
    assert resp.get_json()[0]["session"]["id"] == session_id

    resp = client.get(f"/sessions/{session_id}/reservations", headers=TRAINER)
    assert [r["id"] for r in resp.get_json()] == [reservation_id]
    assert client.get(f"/sessions/{session_id}/reservations", headers=OTHER_TRAINER).status_code == 404


def test_unknown_reservation(client):
    resp = client.delete("/reservations/777", headers=ALICE)
    assert resp.status_code == 404
    assert resp.get_json()["code"] == "NOT_FOUND"


def test_session_management(client):
    session_id = _publish(client, capacity=2)
    reservation_id = _book(client, session_id).get_json()["id"]

    resp = client.patch(f"/sessions/{session_id}", json={"capacity": 0}, headers=TRAINER)
    assert resp.status_code == 400
    resp = client.post(f"/sessions/{session_id}/withdraw", headers=TRAINER)
    assert resp.status_code == 409
    assert resp.get_json()["code"] == "SESSION_IN_USE"

    client.delete(f"/reservations/{reservation_id}", headers=ALICE)
    assert client.post(f"/sessions/{session_id}/withdraw", headers=TRAINER).get_json()["is_active"] is False
    assert client.get("/sessions?trainer_id=100", headers=ALICE).get_json() == []


def test_payments_over_http(client):
    session_id = _publish(client, capacity=1)
    reservation_id = _book(client, session_id).get_json()["id"]

    resp = client.post("/payments", json={"reservation_id": reservation_id, "amount": 25, "method": "EFECTIVO"}, headers=BOB)
    assert resp.status_code == 404

    resp = client.post("/payments", json={"reservation_id": reservation_id, "amount": 25, "method": "EFECTIVO"}, headers=ALICE)
    assert resp.status_code == 201
    payment = resp.get_json()
    assert payment["amount"] == "25.00"

    assert client.post(f"/payments/{payment['id']}/complete", headers=ALICE).status_code == 403
    assert client.post(f"/payments/{payment['id']}/complete", headers=ADMIN).get_json()["status"] == "COMPLETADO"

    resp = client.get(f"/reservations/{reservation_id}/payments", headers=ALICE)
    assert [p["status"] for p in resp.get_json()] == ["COMPLETADO"]


def test_audit_log_listing(client):
    session_id = _publish(client)
    _book(client, session_id)

    assert client.get("/audit-logs", headers=TRAINER).status_code == 403
    resp = client.get("/audit-logs?entity=reservation", headers=ADMIN)
    [row] = resp.get_json()
    assert row["action"] == "RESERVATION_CREATE"
    assert row["user_id"] == 1
    assert row["roles"] == "CLIENTE"


def test_create_status_is_case_insensitive(client):
    session_id = _publish(client, capacity=2)

    resp = _book(client, session_id, status=" confirmada ")
    assert resp.status_code == 201
    assert resp.get_json()["status"] == "CONFIRMADA"

    resp = _book(client, session_id, headers=BOB, status="cancelada")
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"


def test_session_catalog_filters(client):
    full = _publish(client, capacity=1, start="08:00", end="09:00")
    open_monday = _publish(client, capacity=2)
    open_tuesday = _publish(client, capacity=2, date="2030-10-22")
    assert _book(client, full).status_code == 201

    resp = client.get("/sessions?from_date=2030-10-22", headers=BOB)
    assert [s["id"] for s in resp.get_json()] == [open_tuesday]

    resp = client.get("/sessions?available=1", headers=BOB)
    assert [s["id"] for s in resp.get_json()] == [open_monday, open_tuesday]

    assert client.get("/sessions?from_date=next-week", headers=BOB).status_code == 400


def test_past_sessions_cannot_be_booked_over_http(client):
    session_id = _publish(client, capacity=2, date="2020-01-06")

    resp = _book(client, session_id)
    assert resp.status_code == 400
    assert resp.get_json()["code"] == "VALIDATION_ERROR"
