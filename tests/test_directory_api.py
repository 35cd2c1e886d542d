from __future__ import annotations
import pytest
from app import create_app
from extensions import db

@pytest.fixture()
def client():
    app = create_app("dev")
    app.config.update(TESTING=True, SQLALCHEMY_DATABASE_URI="sqlite:///:memory:")
    with app.app_context():
        db.create_all()
        with app.test_client() as c:
            yield c
        db.session.remove()
        db.drop_all()

def test_participant_crud_and_captain_filter(client):
    r = client.post("/directory/api/participants", json={"given_name": "Juan", "surname": "Pérez", "is_captain": True})
    assert r.status_code == 201
    pid = r.get_json()["id"]
    client.post("/directory/api/participants", json={"given_name": "Marta", "surname": "Ruiz"})

    r = client.get("/directory/api/participants?captains=1")
    data = r.get_json()
    assert data["meta"]["total"] == 1
    assert data["items"][0]["availability_restriction"] == "sin_restriccion"

    r = client.put(f"/directory/api/participants/{pid}", json={
        "given_name": "Juan", "surname": "Pérez", "is_captain": True,
        "availability_restriction": "solo_sabados",
    })
    assert r.status_code == 200
    assert client.get(f"/directory/api/participants/{pid}").get_json()["availability_restriction"] == "solo_sabados"

    bad = client.post("/directory/api/participants", json={"given_name": "X", "surname": "Y",
                                                           "availability_restriction": "nunca"})
    assert bad.status_code == 422

    # borrado lógico
    assert client.delete(f"/directory/api/participants/{pid}").status_code == 204
    assert client.get(f"/directory/api/participants/{pid}").status_code == 404
    assert client.get("/directory/api/participants?q=Pérez").get_json()["meta"]["total"] == 0

def test_territories_natural_order_and_uniqueness(client):
    for n in ("10", "2", "15A", "1"):
        assert client.post("/directory/api/territories", json={"number": n}).status_code == 201
    r = client.post("/directory/api/territories", json={"number": "2"})
    assert r.status_code == 409
    items = client.get("/directory/api/territories").get_json()["items"]
    assert [t["number"] for t in items] == ["1", "2", "10", "15A"]

def test_time_slots_and_meeting_points(client):
    r = client.post("/directory/api/time-slots", json={"name": "Mañana", "time": "09:30"})
    assert r.status_code == 201
    assert r.get_json()["time"] == "09:30:00"
    assert client.post("/directory/api/time-slots", json={"name": "X", "time": "25:00"}).status_code == 422

    r = client.post("/directory/api/meeting-points", json={"name": "Zoom"})
    assert r.status_code == 201
    assert r.get_json()["is_zoom"] is True

def test_groups_unique_number(client):
    assert client.post("/directory/api/groups", json={"number": 1, "name": "Grupo 1"}).status_code == 201
    assert client.post("/directory/api/groups", json={"number": 1}).status_code == 409
    assert client.post("/directory/api/groups", json={"number": 0}).status_code == 422

def test_special_days(client):
    r = client.post("/directory/api/special-days", json={"name": "Asamblea", "date": "2026-11-15"})
    assert r.status_code == 201
    sid = r.get_json()["id"]
    assert r.get_json()["block_type"] == "completo"
    assert client.post("/directory/api/special-days", json={"name": "X", "block_type": "noche"}).status_code == 422
    assert client.delete(f"/directory/api/special-days/{sid}").status_code == 204
    assert client.get("/directory/api/special-days").get_json()["items"] == []

def test_meeting_days_settings(client):
    r = client.get("/directory/api/settings/meeting-days")
    assert r.get_json()["weekday_meeting_day"] is None

    r = client.put("/directory/api/settings/meeting-days", json={
        "weekday_meeting_day": "Miércoles", "weekday_meeting_time": "19:30",
        "weekend_meeting_day": "domingo", "weekend_meeting_time": "10:00",
    })
    assert r.status_code == 200
    js = client.get("/directory/api/settings/meeting-days").get_json()
    assert js["weekday_meeting_day"] == "miércoles"
    assert js["weekend_meeting_time"] == "10:00"

    assert client.put("/directory/api/settings/meeting-days", json={"weekday_meeting_day": "funday"}).status_code == 422
    assert client.put("/directory/api/settings/meeting-days", json={"weekday_meeting_time": "7pm"}).status_code == 422
