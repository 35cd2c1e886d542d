# blueprints/program/services.py
from __future__ import annotations
import logging
from datetime import date
from typing import Any, Dict, List, Optional

from flask import current_app
from werkzeug.exceptions import NotFound

from extensions import db
from models import (
    ExtraMessage, MeetingPoint, Participant, PreachingGroup, SpecialDay, Territory, TimeSlot,
)
from .calendar import WEEKDAYS_ES, daterange, fmt_hhmm
from .entries import (
    Catalog, GroupFanoutEntry, OutingEntry, build_catalog, entry_from_model,
    slot_from_model, special_day_from_model,
)
from .grid import ExtraMessageInfo, PrintRow, materialize_rows, territory_label
from .settings import load_meeting_days
from . import store

log = logging.getLogger(__name__)


def load_catalog() -> Catalog:
    return build_catalog(
        territories=Territory.query.all(),
        meeting_points=MeetingPoint.query.all(),
        participants=Participant.query.all(),
        groups=PreachingGroup.query.all(),
    )


def load_grid(date_from: date, date_to: date) -> List[PrintRow]:
    cfg = current_app.config
    slots = [slot_from_model(s) for s in TimeSlot.query.filter_by(active=True).order_by(TimeSlot.time).all()]
    entries = [entry_from_model(r) for r in store.list_entries(date_from, date_to)]
    rows = materialize_rows(
        entries,
        slots,
        daterange(date_from, date_to),
        special_days=[special_day_from_model(s) for s in SpecialDay.query.filter_by(active=True).all()],
        meeting_days=load_meeting_days(),
        extra_messages=[ExtraMessageInfo(m.date, m.message, m.color) for m in list_extra_messages(date_from, date_to)],
        catalog=load_catalog(),
        afternoon_from_hour=cfg.get("GRID_AFTERNOON_FROM_HOUR", 14),
        groups_per_line=cfg.get("GRID_GROUPS_PER_LINE", 6),
        default_weekday_time=cfg.get("DEFAULT_WEEKDAY_MEETING_TIME", "19:30"),
        default_weekend_time=cfg.get("DEFAULT_WEEKEND_MEETING_TIME", "18:00"),
    )
    log.info("grid materialized", extra={"event": "grid_materialized", "count": len(rows)})
    return rows


# ---------- my assignments ----------
def my_assignments(participant_id: int, date_from: date, date_to: date) -> List[Dict[str, Any]]:
    """Salidas donde el participante es capitán: entradas simples y asignaciones por grupo."""
    catalog = load_catalog()
    slots = {s.id: s for s in TimeSlot.query.all()}
    out: List[Dict[str, Any]] = []
    for row in store.list_entries(date_from, date_to):
        e = entry_from_model(row)
        slot = slots.get(e.time_slot_id)
        base = {
            "entry_id": e.id,
            "date": e.date.isoformat(),
            "weekday": WEEKDAYS_ES[e.date.weekday()],
            "time": fmt_hhmm(slot.time) if slot else "",
            "time_slot": slot.name if slot else "",
        }
        if isinstance(e, OutingEntry) and e.captain_id == participant_id:
            point = catalog.meeting_points.get(e.meeting_point_id)
            territory, _ = territory_label(e.territory_ids, catalog)
            out.append({**base, "meeting_point": point.name if point else "",
                        "territory": territory, "group": None})
        elif isinstance(e, GroupFanoutEntry):
            for a in e.assignments:
                if a.captain_id != participant_id:
                    continue
                point = catalog.meeting_points.get(a.meeting_point_id or e.meeting_point_id)
                territory, _ = territory_label([a.territory_id] if a.territory_id else [], catalog)
                out.append({**base, "meeting_point": point.name if point else "",
                            "territory": territory, "group": catalog.groups.get(a.group_id)})
    return out


# ---------- extra messages ----------
def list_extra_messages(date_from: Optional[date] = None, date_to: Optional[date] = None) -> List[ExtraMessage]:
    q = ExtraMessage.query.filter_by(active=True)
    if date_from:
        q = q.filter(ExtraMessage.date >= date_from)
    if date_to:
        q = q.filter(ExtraMessage.date <= date_to)
    return q.order_by(ExtraMessage.date.asc(), ExtraMessage.id.asc()).all()


def extra_message_to_dict(m: ExtraMessage) -> Dict[str, Any]:
    return {"id": m.id, "date": m.date.isoformat(), "message": m.message, "color": m.color}


def save_extra_message(fields: Dict[str, Any], message_id: Optional[int] = None) -> ExtraMessage:
    if message_id is None:
        m = ExtraMessage()
        db.session.add(m)
    else:
        m = db.session.get(ExtraMessage, message_id)
        if m is None or not m.active:
            raise NotFound(f"extra message {message_id} not found")
    for key in ("date", "message", "color"):
        if fields.get(key) is not None:
            setattr(m, key, fields[key])
    db.session.commit()
    return m


def delete_extra_message(message_id: int) -> None:
    m = db.session.get(ExtraMessage, message_id)
    if m is None or not m.active:
        raise NotFound(f"extra message {message_id} not found")
    m.active = False
    db.session.commit()
