from __future__ import annotations
from datetime import date
import pytest

from app import create_app
from extensions import db
from models import AvailabilityRestriction, DayBlock, Participant
from blueprints.availability.services import (
    AvailabilityResolver, allowed_weekdays, restriction_allows,
)
from blueprints.program.entries import AvailabilityOverride, CaptainInfo

MON = date(2026, 10, 19)
TUE = date(2026, 10, 20)
SAT = date(2026, 10, 24)
SUN = date(2026, 10, 25)

def _captain(cid=1, restriction=AvailabilityRestriction.NONE):
    return CaptainInfo(id=cid, given_name="Juan", surname="Pérez", restriction=restriction)

def test_no_overrides_means_always_available():
    res = AvailabilityResolver()
    c = _captain()
    for d in (MON, TUE, SAT, SUN):
        assert res.is_available(c, d, DayBlock.MORNING)
        assert res.is_available(c, d, DayBlock.AFTERNOON)

def test_weekday_restrictions():
    assert allowed_weekdays("solo_fines_semana") == frozenset({5, 6})
    assert allowed_weekdays("solo_sabados") == frozenset({5})
    assert restriction_allows(_captain(restriction=AvailabilityRestriction.WEEKENDS_ONLY), SAT)
    assert not restriction_allows(_captain(restriction=AvailabilityRestriction.WEEKENDS_ONLY), MON)
    assert restriction_allows(_captain(restriction=AvailabilityRestriction.WEEKDAYS_ONLY), TUE)
    assert not restriction_allows(_captain(restriction=AvailabilityRestriction.SUNDAYS_ONLY), SAT)

def test_unknown_restriction_is_unrestricted():
    assert AvailabilityRestriction.parse("cualquier_cosa") is AvailabilityRestriction.NONE
    assert AvailabilityRestriction.parse(None) is AvailabilityRestriction.NONE
    assert allowed_weekdays("") == frozenset(range(7))

def test_override_rows_restrict_days_and_blocks():
    res = AvailabilityResolver([
        AvailabilityOverride(captain_id=1, day_of_week=0, block=DayBlock.MORNING),
        AvailabilityOverride(captain_id=1, day_of_week=5, block=DayBlock.BOTH),
    ])
    c = _captain()
    assert res.is_available(c, MON, DayBlock.MORNING)
    assert not res.is_available(c, MON, DayBlock.AFTERNOON)
    # martes sin fila -> no disponible
    assert not res.is_available(c, TUE, DayBlock.MORNING)
    assert res.is_available(c, SAT, DayBlock.AFTERNOON)
    # otro capitán sin filas no se ve afectado
    assert res.is_available(_captain(cid=2), TUE, DayBlock.AFTERNOON)

def test_restriction_and_overrides_must_both_pass():
    res = AvailabilityResolver([AvailabilityOverride(captain_id=1, day_of_week=0, block=DayBlock.BOTH)])
    c = _captain(restriction=AvailabilityRestriction.WEEKENDS_ONLY)
    assert not res.is_available(c, MON, DayBlock.MORNING)


# ---------- API ----------
@pytest.fixture()
def app_ctx():
    app = create_app("dev")
    app.config.update(TESTING=True, SQLALCHEMY_DATABASE_URI="sqlite:///:memory:")
    with app.app_context():
        db.create_all()
        db.session.add_all([
            Participant(given_name="Juan", surname="Pérez", is_captain=True),
            Participant(given_name="Marta", surname="Ruiz", is_captain=False),
        ])
        db.session.commit()
        yield app
        db.session.remove()
        db.drop_all()

def _id_of(surname):
    return Participant.query.filter_by(surname=surname).first().id

def test_availability_replace_all(app_ctx):
    client = app_ctx.test_client()
    cid = _id_of("Pérez")

    r = client.get(f"/api/v1/admin/captains/{cid}/availability")
    assert r.status_code == 200
    js = r.get_json()
    assert js["always_available"] is True
    assert js["overrides"] == []

    r = client.put(f"/api/v1/admin/captains/{cid}/availability", json={"overrides": [
        {"day_of_week": 0, "block": "manana"},
        {"day_of_week": 6},
    ]})
    assert r.status_code == 200
    assert len(r.get_json()["overrides"]) == 2

    # reemplaza, no acumula
    r = client.put(f"/api/v1/admin/captains/{cid}/availability", json={"overrides": [
        {"day_of_week": 2, "block": "tarde"},
    ]})
    assert r.status_code == 200
    js = client.get(f"/api/v1/admin/captains/{cid}/availability").get_json()
    assert js["always_available"] is False
    assert js["overrides"] == [{"day_of_week": 2, "block": "tarde"}]

def test_availability_validation_and_errors(app_ctx):
    client = app_ctx.test_client()
    cid = _id_of("Pérez")

    bad = client.put(f"/api/v1/admin/captains/{cid}/availability", json={"overrides": [{"day_of_week": 7}]})
    assert bad.status_code == 422

    bad_block = client.put(f"/api/v1/admin/captains/{cid}/availability",
                           json={"overrides": [{"day_of_week": 1, "block": "noche"}]})
    assert bad_block.status_code == 422

    not_captain = client.put(f"/api/v1/admin/captains/{_id_of('Ruiz')}/availability", json={"overrides": []})
    assert not_captain.status_code == 409
    assert not_captain.get_json()["errors"][0]["code"] == "NOT_A_CAPTAIN"

    assert client.get("/api/v1/admin/captains/999/availability").status_code == 404
