from __future__ import annotations
import logging
from typing import Any, Dict, List

from flask import abort, request, url_for
from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Query

from . import bp
from .schemas import (
    MeetingDaysIn,
    MeetingPointIn, MeetingPointOut,
    ParticipantIn, ParticipantOut,
    PreachingGroupIn, PreachingGroupOut,
    SpecialDayIn, SpecialDayOut,
    TerritoryIn, TerritoryOut,
    TimeSlotIn, TimeSlotOut,
)
from blueprints.core.responses import created, handle_integrity_error, ok
from blueprints.program.calendar import MeetingDays
from blueprints.program.grid import territory_sort_key
from blueprints.program.settings import load_meeting_days, save_meeting_days
from extensions import db
from models import (
    MeetingPoint,
    Participant,
    PreachingGroup,
    SpecialDay,
    Territory,
    TimeSlot,
)

log = logging.getLogger(__name__)

# ----------------------- Helpers -----------------------
def _paginate(query: Query, serializer, *, page: int, per_page: int, endpoint_fields: List):
    total = query.count()
    rows = query.offset((page - 1) * per_page).limit(per_page).all()
    items = [
        serializer.model_validate(_row_to_dict(r, endpoint_fields)).model_dump(mode="json")
        for r in rows
    ]
    return {"items": items, "meta": {"page": page, "per_page": per_page, "total": total}}

def _row_to_dict(row, fields: List[str]) -> Dict[str, Any]:
    return {f: getattr(row, f) for f in fields}

def _page_args(default_per_page: int = 20):
    page = max(1, int(request.args.get("page", 1)))
    per_page = min(100, int(request.args.get("per_page", default_per_page)))
    return page, per_page

def _search_filter(model, q: str):
    fields_map = {
        Participant: [Participant.given_name, Participant.surname],
        Territory: [Territory.number],
        MeetingPoint: [MeetingPoint.name, MeetingPoint.address],
        SpecialDay: [SpecialDay.name],
    }
    cols = fields_map.get(model, [])
    t = str(q).strip()
    conds = [col.like(f"%{t}%") for col in cols]
    return or_(*conds) if conds else None

def _active_or_404(model, id: int):
    row = db.session.get(model, id)
    if row is None or not getattr(row, "active", True):
        abort(404)
    return row

def _commit_or_409():
    try:
        db.session.commit()
    except IntegrityError as ex:
        db.session.rollback()
        return handle_integrity_error(ex)
    return None

# ---- Participants ----
_PARTICIPANT_FIELDS = ["id", "given_name", "surname", "is_captain", "availability_restriction"]

@bp.get("/api/participants")
def api_participants_list():
    q = request.args.get("q", "")
    page, per_page = _page_args()
    s = db.session.query(Participant).filter(Participant.active.is_(True))
    if request.args.get("captains") in ("1", "true"):
        s = s.filter(Participant.is_captain.is_(True))
    if q:
        cond = _search_filter(Participant, q)
        if cond is not None: s = s.filter(cond)
    s = s.order_by(Participant.surname.asc(), Participant.given_name.asc())
    data = _paginate(s, ParticipantOut, page=page, per_page=per_page, endpoint_fields=_PARTICIPANT_FIELDS)
    return ok(data)

@bp.post("/api/participants")
def api_participants_create():
    parsed = ParticipantIn.model_validate(request.get_json(silent=True) or {})
    p = Participant(**parsed.model_dump())
    db.session.add(p)
    db.session.commit()
    out = ParticipantOut.model_validate(_row_to_dict(p, _PARTICIPANT_FIELDS))
    return created(url_for("directory.api_participants_get", id=p.id), out.model_dump(mode="json"))

@bp.get("/api/participants/<int:id>")
def api_participants_get(id: int):
    p = _active_or_404(Participant, id)
    return ok(ParticipantOut.model_validate(_row_to_dict(p, _PARTICIPANT_FIELDS)).model_dump(mode="json"))

@bp.put("/api/participants/<int:id>")
def api_participants_update(id: int):
    parsed = ParticipantIn.model_validate(request.get_json(silent=True) or {})
    p = _active_or_404(Participant, id)
    for k, v in parsed.model_dump().items():
        setattr(p, k, v)
    db.session.commit()
    return ok({"ok": True})

@bp.delete("/api/participants/<int:id>")
def api_participants_delete(id: int):
    p = _active_or_404(Participant, id)
    p.active = False
    db.session.commit()
    return "", 204

# ---- Time Slots ----
_SLOT_FIELDS = ["id", "name", "time", "order_no"]

@bp.get("/api/time-slots")
def api_time_slots_list():
    page, per_page = _page_args(50)
    s = (db.session.query(TimeSlot).filter(TimeSlot.active.is_(True))
         .order_by(TimeSlot.time.asc(), TimeSlot.order_no.asc()))
    data = _paginate(s, TimeSlotOut, page=page, per_page=per_page, endpoint_fields=_SLOT_FIELDS)
    return ok(data)

@bp.post("/api/time-slots")
def api_time_slots_create():
    parsed = TimeSlotIn.model_validate(request.get_json(silent=True) or {})
    ts = TimeSlot(name=parsed.name, time=parsed.time, order_no=parsed.order_no)
    db.session.add(ts)
    db.session.commit()
    out = TimeSlotOut.model_validate(_row_to_dict(ts, _SLOT_FIELDS))
    return created(url_for("directory.api_time_slots_get", id=ts.id), out.model_dump(mode="json"))

@bp.get("/api/time-slots/<int:id>")
def api_time_slots_get(id: int):
    ts = _active_or_404(TimeSlot, id)
    return ok(TimeSlotOut.model_validate(_row_to_dict(ts, _SLOT_FIELDS)).model_dump(mode="json"))

@bp.put("/api/time-slots/<int:id>")
def api_time_slots_update(id: int):
    parsed = TimeSlotIn.model_validate(request.get_json(silent=True) or {})
    ts = _active_or_404(TimeSlot, id)
    ts.name = parsed.name
    ts.time = parsed.time
    ts.order_no = parsed.order_no
    db.session.commit()
    return ok({"ok": True})

@bp.delete("/api/time-slots/<int:id>")
def api_time_slots_delete(id: int):
    ts = _active_or_404(TimeSlot, id)
    ts.active = False
    db.session.commit()
    return "", 204

# ---- Territories ----
_TERRITORY_FIELDS = ["id", "number", "image_url"]

@bp.get("/api/territories")
def api_territories_list():
    q = request.args.get("q", "")
    s = db.session.query(Territory).filter(Territory.active.is_(True))
    if q:
        cond = _search_filter(Territory, q)
        if cond is not None: s = s.filter(cond)
    # orden natural: 2 antes que 10, los alfanuméricos al final
    rows = sorted(s.all(), key=lambda t: territory_sort_key(t.number))
    items = [TerritoryOut.model_validate(_row_to_dict(t, _TERRITORY_FIELDS)).model_dump(mode="json") for t in rows]
    return ok({"items": items, "meta": {"total": len(items)}})

@bp.post("/api/territories")
def api_territories_create():
    parsed = TerritoryIn.model_validate(request.get_json(silent=True) or {})
    t = Territory(number=parsed.number.strip(), image_url=parsed.image_url)
    db.session.add(t)
    err = _commit_or_409()
    if err:
        return err
    out = TerritoryOut.model_validate(_row_to_dict(t, _TERRITORY_FIELDS))
    return created(url_for("directory.api_territories_get", id=t.id), out.model_dump(mode="json"))

@bp.get("/api/territories/<int:id>")
def api_territories_get(id: int):
    t = _active_or_404(Territory, id)
    return ok(TerritoryOut.model_validate(_row_to_dict(t, _TERRITORY_FIELDS)).model_dump(mode="json"))

@bp.put("/api/territories/<int:id>")
def api_territories_update(id: int):
    parsed = TerritoryIn.model_validate(request.get_json(silent=True) or {})
    t = _active_or_404(Territory, id)
    t.number = parsed.number.strip()
    t.image_url = parsed.image_url
    err = _commit_or_409()
    if err:
        return err
    return ok({"ok": True})

@bp.delete("/api/territories/<int:id>")
def api_territories_delete(id: int):
    t = _active_or_404(Territory, id)
    t.active = False
    db.session.commit()
    return "", 204

# ---- Meeting Points ----
_POINT_FIELDS = ["id", "name", "address", "maps_url", "is_zoom"]

@bp.get("/api/meeting-points")
def api_meeting_points_list():
    q = request.args.get("q", "")
    page, per_page = _page_args()
    s = db.session.query(MeetingPoint).filter(MeetingPoint.active.is_(True))
    if q:
        cond = _search_filter(MeetingPoint, q)
        if cond is not None: s = s.filter(cond)
    s = s.order_by(MeetingPoint.name.asc())
    data = _paginate(s, MeetingPointOut, page=page, per_page=per_page, endpoint_fields=_POINT_FIELDS)
    return ok(data)

@bp.post("/api/meeting-points")
def api_meeting_points_create():
    parsed = MeetingPointIn.model_validate(request.get_json(silent=True) or {})
    m = MeetingPoint(**parsed.model_dump())
    db.session.add(m)
    db.session.commit()
    out = MeetingPointOut.model_validate(_row_to_dict(m, _POINT_FIELDS))
    return created(url_for("directory.api_meeting_points_get", id=m.id), out.model_dump(mode="json"))

@bp.get("/api/meeting-points/<int:id>")
def api_meeting_points_get(id: int):
    m = _active_or_404(MeetingPoint, id)
    return ok(MeetingPointOut.model_validate(_row_to_dict(m, _POINT_FIELDS)).model_dump(mode="json"))

@bp.put("/api/meeting-points/<int:id>")
def api_meeting_points_update(id: int):
    parsed = MeetingPointIn.model_validate(request.get_json(silent=True) or {})
    m = _active_or_404(MeetingPoint, id)
    for k, v in parsed.model_dump().items():
        setattr(m, k, v)
    db.session.commit()
    return ok({"ok": True})

@bp.delete("/api/meeting-points/<int:id>")
def api_meeting_points_delete(id: int):
    m = _active_or_404(MeetingPoint, id)
    m.active = False
    db.session.commit()
    return "", 204

# ---- Preaching Groups ----
_GROUP_FIELDS = ["id", "number", "name"]

@bp.get("/api/groups")
def api_groups_list():
    rows = db.session.query(PreachingGroup).order_by(PreachingGroup.number.asc()).all()
    items = [PreachingGroupOut.model_validate(_row_to_dict(g, _GROUP_FIELDS)).model_dump(mode="json") for g in rows]
    return ok({"items": items, "meta": {"total": len(items)}})

@bp.post("/api/groups")
def api_groups_create():
    parsed = PreachingGroupIn.model_validate(request.get_json(silent=True) or {})
    g = PreachingGroup(number=parsed.number, name=parsed.name)
    db.session.add(g)
    err = _commit_or_409()
    if err:
        return err
    out = PreachingGroupOut.model_validate(_row_to_dict(g, _GROUP_FIELDS))
    return created(url_for("directory.api_groups_get", id=g.id), out.model_dump(mode="json"))

@bp.get("/api/groups/<int:id>")
def api_groups_get(id: int):
    g = db.session.get(PreachingGroup, id) or abort(404)
    return ok(PreachingGroupOut.model_validate(_row_to_dict(g, _GROUP_FIELDS)).model_dump(mode="json"))

@bp.put("/api/groups/<int:id>")
def api_groups_update(id: int):
    parsed = PreachingGroupIn.model_validate(request.get_json(silent=True) or {})
    g = db.session.get(PreachingGroup, id) or abort(404)
    g.number = parsed.number
    g.name = parsed.name
    err = _commit_or_409()
    if err:
        return err
    return ok({"ok": True})

@bp.delete("/api/groups/<int:id>")
def api_groups_delete(id: int):
    g = db.session.get(PreachingGroup, id) or abort(404)
    db.session.delete(g)
    db.session.commit()
    return "", 204

# ---- Special Days ----
_SPECIAL_FIELDS = ["id", "name", "date", "block_type", "color"]

@bp.get("/api/special-days")
def api_special_days_list():
    q = request.args.get("q", "")
    s = db.session.query(SpecialDay).filter(SpecialDay.active.is_(True))
    if q:
        cond = _search_filter(SpecialDay, q)
        if cond is not None: s = s.filter(cond)
    rows = s.order_by(SpecialDay.date.asc(), SpecialDay.name.asc()).all()
    items = [SpecialDayOut.model_validate(_row_to_dict(d, _SPECIAL_FIELDS)).model_dump(mode="json") for d in rows]
    return ok({"items": items, "meta": {"total": len(items)}})

@bp.post("/api/special-days")
def api_special_days_create():
    parsed = SpecialDayIn.model_validate(request.get_json(silent=True) or {})
    d = SpecialDay(**parsed.model_dump())
    db.session.add(d)
    db.session.commit()
    out = SpecialDayOut.model_validate(_row_to_dict(d, _SPECIAL_FIELDS))
    return created(url_for("directory.api_special_days_get", id=d.id), out.model_dump(mode="json"))

@bp.get("/api/special-days/<int:id>")
def api_special_days_get(id: int):
    d = _active_or_404(SpecialDay, id)
    return ok(SpecialDayOut.model_validate(_row_to_dict(d, _SPECIAL_FIELDS)).model_dump(mode="json"))

@bp.put("/api/special-days/<int:id>")
def api_special_days_update(id: int):
    parsed = SpecialDayIn.model_validate(request.get_json(silent=True) or {})
    d = _active_or_404(SpecialDay, id)
    for k, v in parsed.model_dump().items():
        setattr(d, k, v)
    db.session.commit()
    return ok({"ok": True})

@bp.delete("/api/special-days/<int:id>")
def api_special_days_delete(id: int):
    d = _active_or_404(SpecialDay, id)
    d.active = False
    db.session.commit()
    return "", 204

# ---- Settings ----
@bp.get("/api/settings/meeting-days")
def api_meeting_days_get():
    return ok(load_meeting_days().to_setting())

@bp.put("/api/settings/meeting-days")
def api_meeting_days_put():
    parsed = MeetingDaysIn.model_validate(request.get_json(silent=True) or {})
    md = save_meeting_days(MeetingDays(**parsed.model_dump()))
    log.info("meeting days updated", extra={"event": "settings_updated", "path": request.path})
    return ok(md.to_setting())
