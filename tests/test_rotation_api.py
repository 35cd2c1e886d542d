from __future__ import annotations
from datetime import time
import pytest

from app import create_app
from extensions import db
from models import FixedAssignment, Participant, ScheduleEntry, TimeSlot
from blueprints.rotation import services as rotation_svc

MON = "2026-10-19"
WED = "2026-10-21"

@pytest.fixture()
def app_ctx():
    app = create_app("dev")
    app.config.update(TESTING=True, SQLALCHEMY_DATABASE_URI="sqlite:///:memory:")
    with app.app_context():
        db.create_all()
        db.session.add_all([
            TimeSlot(name="Mañana", time=time(9, 30), order_no=1),
            TimeSlot(name="Tarde", time=time(16, 0), order_no=2),
        ])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

def _add_captains(*surnames):
    for s in surnames:
        db.session.add(Participant(given_name="N", surname=s, is_captain=True))
    db.session.commit()
    return [Participant.query.filter_by(surname=s).first().id for s in surnames]

def _slot(name):
    return TimeSlot.query.filter_by(name=name).first().id

def test_no_captains_is_a_conflict(app_ctx):
    client = app_ctx.test_client()
    r = client.post("/api/v1/admin/rotation/preview", json={"date_from": MON, "date_to": WED})
    assert r.status_code == 409
    assert r.get_json()["errors"][0]["code"] == "NO_ELIGIBLE_CAPTAINS"

def test_no_time_slots_is_a_conflict(app_ctx):
    client = app_ctx.test_client()
    _add_captains("A")
    for ts in TimeSlot.query.all():
        ts.active = False
    db.session.commit()
    r = client.post("/api/v1/admin/rotation/assign", json={"date_from": MON, "date_to": MON})
    assert r.status_code == 409
    assert r.get_json()["errors"][0]["code"] == "NO_TIME_SLOTS"

def test_bad_range_is_rejected(app_ctx):
    client = app_ctx.test_client()
    r = client.post("/api/v1/admin/rotation/preview", json={"date_from": WED, "date_to": MON})
    assert r.status_code == 422
    assert client.post("/api/v1/admin/rotation/preview", json={}).status_code == 422

def test_preview_then_assign_then_idempotent(app_ctx):
    client = app_ctx.test_client()
    a, b, c = _add_captains("Alvarez", "Benitez", "Castro")

    r = client.post("/api/v1/admin/rotation/preview", json={"date_from": MON, "date_to": WED})
    assert r.status_code == 200
    js = r.get_json()
    assert len(js["proposed"]) == 6
    assert [p["captain_id"] for p in js["proposed"]] == [a, b, c, a, b, c]
    # la vista previa no escribe nada
    assert ScheduleEntry.query.count() == 0

    r = client.post("/api/v1/admin/rotation/assign", json={"preview_id": js["preview_id"]})
    assert r.status_code == 200
    assert r.get_json()["applied"] == 6
    assert ScheduleEntry.query.filter(ScheduleEntry.captain_id.isnot(None)).count() == 6

    # la vista previa se consume al aplicarla
    again = client.post("/api/v1/admin/rotation/assign", json={"preview_id": js["preview_id"]})
    assert again.status_code == 404

    r = client.post("/api/v1/admin/rotation/assign", json={"date_from": MON, "date_to": WED})
    assert r.get_json()["applied"] == 0

def test_assign_rechecks_slots_taken_after_preview(app_ctx):
    client = app_ctx.test_client()
    a, b = _add_captains("Alvarez", "Benitez")
    js = client.post("/api/v1/admin/rotation/preview", json={"date_from": MON, "date_to": MON}).get_json()
    assert len(js["proposed"]) == 2

    # mañana tomada a mano con capitán, tarde creada vacía
    client.post("/api/v1/program/entries", json={"date": MON, "time_slot_id": _slot("Mañana"), "captain_id": b})
    tarde = client.post("/api/v1/program/entries", json={"date": MON, "time_slot_id": _slot("Tarde")}).get_json()["id"]

    r = client.post("/api/v1/admin/rotation/assign", json={"preview_id": js["preview_id"]})
    assert r.status_code == 200
    assert r.get_json()["applied"] == 1

    morning = ScheduleEntry.query.filter_by(time_slot_id=_slot("Mañana"), active=True).all()
    assert [e.captain_id for e in morning] == [b]
    afternoon = ScheduleEntry.query.filter_by(time_slot_id=_slot("Tarde"), active=True).all()
    assert [(e.id, e.captain_id) for e in afternoon] == [(tarde, b)]

def test_assign_drops_update_for_deleted_entry(app_ctx):
    client = app_ctx.test_client()
    _add_captains("Alvarez")
    eid = client.post("/api/v1/program/entries", json={"date": MON, "time_slot_id": _slot("Mañana")}).get_json()["id"]
    js = client.post("/api/v1/admin/rotation/preview", json={"date_from": MON, "date_to": MON}).get_json()
    assert js["proposed"][0]["entry_id"] == eid

    client.delete(f"/api/v1/program/entries/{eid}")
    r = client.post("/api/v1/admin/rotation/assign", json={"preview_id": js["preview_id"]})
    assert r.get_json()["applied"] == 0
    assert ScheduleEntry.query.filter_by(active=True).count() == 0

def test_assign_fills_existing_entries_and_skips_meeting_days(app_ctx):
    client = app_ctx.test_client()
    a, b = _add_captains("Alvarez", "Benitez")
    client.put("/directory/api/settings/meeting-days", json={"weekday_meeting_day": "martes"})
    r = client.post("/api/v1/program/entries", json={"date": MON, "time_slot_id": _slot("Tarde")})
    eid = r.get_json()["id"]

    r = client.post("/api/v1/admin/rotation/assign", json={"date_from": MON, "date_to": WED})
    assert r.status_code == 200
    assert r.get_json()["applied"] == 4

    entry = db.session.get(ScheduleEntry, eid)
    assert entry.captain_id == b
    tuesday = [e for e in ScheduleEntry.query.all() if e.date.isoformat() == "2026-10-20"]
    assert tuesday == []

def test_fixed_assignments_reactivate(app_ctx):
    client = app_ctx.test_client()
    a, b = _add_captains("Alvarez", "Benitez")
    slot = _slot("Mañana")

    r = client.post("/api/v1/admin/fixed-assignments", json={"day_of_week": 0, "time_slot_id": slot, "captain_id": a})
    assert r.status_code == 201
    fid = r.get_json()["id"]

    assert client.delete(f"/api/v1/admin/fixed-assignments/{fid}").status_code == 204
    assert client.get("/api/v1/admin/fixed-assignments").get_json()["items"] == []
    assert client.delete(f"/api/v1/admin/fixed-assignments/{fid}").status_code == 404

    r = client.post("/api/v1/admin/fixed-assignments", json={"day_of_week": 0, "time_slot_id": slot, "captain_id": b})
    assert r.get_json()["id"] == fid
    assert r.get_json()["captain_id"] == b
    assert FixedAssignment.query.count() == 1

    assert client.post("/api/v1/admin/fixed-assignments",
                       json={"day_of_week": 7, "time_slot_id": slot, "captain_id": b}).status_code == 422

def test_fixed_assignment_used_by_rotation(app_ctx):
    client = app_ctx.test_client()
    a, b, f = _add_captains("Alvarez", "Benitez", "Fernandez")
    client.post("/api/v1/admin/fixed-assignments", json={"day_of_week": 0, "time_slot_id": _slot("Mañana"), "captain_id": f})
    js = client.post("/api/v1/admin/rotation/preview", json={"date_from": MON, "date_to": MON}).get_json()
    assert [(p["source"], p["captain_id"]) for p in js["proposed"]] == [("fixed", f), ("rotation", a)]

def test_apply_failure_reports_applied_count(app_ctx, monkeypatch):
    client = app_ctx.test_client()
    _add_captains("Alvarez", "Benitez")
    calls = {"n": 0}
    original = rotation_svc.entry_store.create_entry

    def flaky(fields):
        calls["n"] += 1
        if calls["n"] == 2:
            raise RuntimeError("db down")
        return original(fields)

    monkeypatch.setattr(rotation_svc.entry_store, "create_entry", flaky)
    r = client.post("/api/v1/admin/rotation/assign", json={"date_from": MON, "date_to": MON})
    assert r.status_code == 500
    js = r.get_json()
    assert js["applied"] == 1
    assert js["errors"][0]["code"] == "APPLY_FAILED"
    # lo aplicado antes del fallo queda
    assert ScheduleEntry.query.count() == 1
